"""Shared fixtures: a fake people API and a telemetry recorder."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from effects_as_data import HandlerContext, InvocationConfig, TelemetryRecorder

PEOPLE = {
    "/people": {"results": [{"name": "Luke"}]},
    "/people/1": {"name": "Luke"},
    "/people/2": {"name": "C-3PO"},
}


async def http_get(command: Any, ctx: HandlerContext) -> Any:
    await asyncio.sleep(command.get("delay", 0))
    try:
        return PEOPLE[command["url"]]
    except KeyError:
        raise ConnectionError(f"404 {command['url']}") from None


def fail(command: Any, ctx: HandlerContext) -> Any:
    raise ConnectionError(command.get("message", "boom"))


@pytest.fixture
def handlers() -> dict[str, Any]:
    return {"httpGet": http_get, "fail": fail}


@pytest.fixture
def recorder() -> TelemetryRecorder:
    return TelemetryRecorder()


@pytest.fixture
def config(recorder: TelemetryRecorder) -> InvocationConfig:
    return InvocationConfig(name="test", **recorder.callbacks())
