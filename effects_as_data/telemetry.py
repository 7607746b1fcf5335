"""
Telemetry records and emission.

Four records are emitted per invocation boundary:

    CallRecord             before the top-level computation starts
    CallCompleteRecord     after it settles
    CommandRecord          before a command is dispatched
    CommandCompleteRecord  after the command settles

Each record names the config callback it is delivered to through ``kind``
(``on_call``, ``on_call_complete``, ``on_command``, ``on_command_complete``).
``to_dict()`` is the stable wire format for external monitoring sinks.

Emission is fire-and-forget: nothing in the interpreter depends on it. Async
callbacks run as tasks on the current loop; ``drain()`` waits for them, and
``run_sync`` does so before its loop closes.

Example:
    >>> recorder = TelemetryRecorder()
    >>> config = InvocationConfig(**recorder.callbacks())
    >>> await run(handlers, my_fn, config=config)
    >>> [r.kind for r in recorder.records]
    ['call', 'command', 'command_complete', 'call_complete']
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, TypeAlias

from effects_as_data.config import InvocationConfig, TelemetryCallback

logger = logging.getLogger(__name__)

# Strong references to callback tasks until they finish, per event loop.
_pending_tasks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, set[asyncio.Future[Any]]] = (
    weakref.WeakKeyDictionary()
)


def now() -> float:
    return time.monotonic()


@dataclass(frozen=True)
class _Record:
    kind: ClassVar[str] = ""

    def to_dict(self) -> dict[str, Any]:
        """Flatten the record into plain field names."""

        data: dict[str, Any] = {"kind": self.kind}
        for f in fields(self):
            data[f.name] = getattr(self, f.name)
        return data


@dataclass(frozen=True)
class CallRecord(_Record):
    kind: ClassVar[str] = "call"

    fn: Callable[..., Any]
    args: tuple[Any, ...]
    start: float
    config: InvocationConfig = field(repr=False)


@dataclass(frozen=True)
class CallCompleteRecord(_Record):
    kind: ClassVar[str] = "call_complete"

    fn: Callable[..., Any]
    args: tuple[Any, ...]
    start: float
    end: float
    latency: float
    success: bool
    result: Any
    error: BaseException | None
    config: InvocationConfig = field(repr=False)


@dataclass(frozen=True)
class CommandRecord(_Record):
    kind: ClassVar[str] = "command"

    command: Any
    step: int
    index: int
    start: float
    config: InvocationConfig = field(repr=False)


@dataclass(frozen=True)
class CommandCompleteRecord(_Record):
    kind: ClassVar[str] = "command_complete"

    command: Any
    step: int
    index: int
    start: float
    end: float
    latency: float
    success: bool
    result: Any
    error: BaseException | None
    config: InvocationConfig = field(repr=False)


TelemetryRecord: TypeAlias = CallRecord | CallCompleteRecord | CommandRecord | CommandCompleteRecord

RECORD_KINDS = (
    CallRecord.kind,
    CallCompleteRecord.kind,
    CommandRecord.kind,
    CommandCompleteRecord.kind,
)


def emit(config: InvocationConfig, record: TelemetryRecord) -> None:
    """Deliver ``record`` to the matching config callback, if one is set.

    A callback returning an awaitable is scheduled on the running loop and
    not awaited. A failing callback is logged and never reaches the caller.
    """

    callback = config.callback(record.kind)
    if callback is None:
        return
    try:
        outcome = callback(record)
    except Exception:
        logger.exception("telemetry callback on_%s failed", record.kind)
        return
    if inspect.isawaitable(outcome):
        task = asyncio.ensure_future(outcome)
        _pending_tasks.setdefault(task.get_loop(), set()).add(task)
        task.add_done_callback(_finish_callback_task)


def _finish_callback_task(task: asyncio.Future[Any]) -> None:
    _pending_tasks.get(task.get_loop(), set()).discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("async telemetry callback failed", exc_info=error)


async def drain() -> None:
    """Wait for the async callbacks scheduled on the running loop to finish.

    Their failures are already logged when they settle.
    """

    loop = asyncio.get_running_loop()
    while True:
        tasks = [t for t in _pending_tasks.get(loop, ()) if not t.done()]
        if not tasks:
            return
        await asyncio.gather(*tasks, return_exceptions=True)


@dataclass
class TelemetryRecorder:
    """Collects every record it is given, in emission order."""

    records: list[TelemetryRecord] = field(default_factory=list)

    def __call__(self, record: TelemetryRecord) -> None:
        self.records.append(record)

    def callbacks(self) -> dict[str, TelemetryCallback]:
        """Config keyword arguments routing all four kinds to this recorder."""

        return {f"on_{kind}": self for kind in RECORD_KINDS}

    def of_kind(self, kind: str) -> list[TelemetryRecord]:
        return [r for r in self.records if r.kind == kind]

    def clear(self) -> None:
        self.records.clear()


def logging_callbacks(
    log: logging.Logger | None = None, level: int = logging.DEBUG
) -> dict[str, TelemetryCallback]:
    """Config keyword arguments logging every record through ``log``."""

    target = log or logger

    def on_call(record: CallRecord) -> None:
        target.log(
            level,
            "call start cid=%s depth=%d fn=%s",
            record.config.cid,
            record.config.depth,
            _fn_name(record.fn),
        )

    def on_call_complete(record: CallCompleteRecord) -> None:
        target.log(
            level,
            "call done cid=%s fn=%s success=%s latency=%.6fs error=%r",
            record.config.cid,
            _fn_name(record.fn),
            record.success,
            record.latency,
            record.error,
        )

    def on_command(record: CommandRecord) -> None:
        target.log(
            level,
            "command start cid=%s step=%d index=%d command=%r",
            record.config.cid,
            record.step,
            record.index,
            record.command,
        )

    def on_command_complete(record: CommandCompleteRecord) -> None:
        target.log(
            level,
            "command done cid=%s step=%d index=%d success=%s latency=%.6fs error=%r",
            record.config.cid,
            record.step,
            record.index,
            record.success,
            record.latency,
            record.error,
        )

    return {
        "on_call": on_call,
        "on_call_complete": on_call_complete,
        "on_command": on_command,
        "on_command_complete": on_command_complete,
    }


def _fn_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", repr(fn))


__all__ = [
    "CallCompleteRecord",
    "CallRecord",
    "CommandCompleteRecord",
    "CommandRecord",
    "RECORD_KINDS",
    "TelemetryRecord",
    "TelemetryRecorder",
    "drain",
    "emit",
    "logging_callbacks",
    "now",
]
