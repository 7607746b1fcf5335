"""Handlers for the built-in ``call`` and ``echo`` commands."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from effects_as_data.dispatch import Handler, HandlerContext


async def call_handler(command: Mapping[str, Any], ctx: HandlerContext) -> Any:
    # Runs under the caller's config, so the nested frame lands on its stack.
    return await ctx.call(command["fn"], *command.get("args", ()))


def echo_handler(command: Mapping[str, Any], ctx: HandlerContext) -> Any:
    return command["value"]


def builtin_handlers() -> dict[str, Handler]:
    return {
        "call": call_handler,
        "echo": echo_handler,
    }


def with_builtins(handlers: Mapping[str, Handler]) -> dict[str, Handler]:
    """Merge ``handlers`` over the built-in handlers."""

    return {**builtin_handlers(), **handlers}


__all__ = ["builtin_handlers", "call_handler", "echo_handler", "with_builtins"]
