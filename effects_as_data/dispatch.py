"""
Command dispatch and fan-out.

``CommandDispatcher.dispatch`` resolves the handler for one command by its
``type`` tag, invokes it, and collapses its outcome (plain value, awaitable,
or raised exception) into one awaited result. ``dispatch_all`` runs a batch
of commands concurrently and returns their results in input order.

Fan-out failure semantics: every dispatch in a batch runs to completion and
emits its telemetry. When any of them failed, the batch then fails with the
first failure observed in settlement order; the other results are dropped and
the raised exception carries no partial results.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias

from effects_as_data.commands import command_type
from effects_as_data.config import InvocationConfig
from effects_as_data.errors import UnhandledCommandError
from effects_as_data.telemetry import CommandCompleteRecord, CommandRecord, emit, now

logger = logging.getLogger(__name__)

RunFunction: TypeAlias = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class HandlerContext:
    """Second argument passed to every handler.

    ``run`` is the re-entrant interpreter entry point; ``config`` already
    carries the caller's stack so nested runs push onto it.
    """

    run: RunFunction
    config: InvocationConfig = field(repr=False)
    handlers: Mapping[str, Handler] = field(repr=False)

    async def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run ``fn`` as a nested computation sharing this config and handlers."""

        return await self.run(self.handlers, fn, *args, config=self.config, **kwargs)


Handler: TypeAlias = Callable[[Any, HandlerContext], Any]


class Dispatcher(Protocol):
    """What the interpreter needs from a dispatcher."""

    async def dispatch(
        self,
        command: Any,
        handlers: Mapping[str, Handler],
        step: int,
        index: int,
        config: InvocationConfig,
    ) -> Any: ...

    async def dispatch_all(
        self,
        commands: Sequence[Any],
        handlers: Mapping[str, Handler],
        step: int,
        config: InvocationConfig,
    ) -> list[Any]: ...


class CommandDispatcher:
    """Dispatcher invoking real handlers."""

    def __init__(self, run: RunFunction) -> None:
        self._run = run

    async def dispatch(
        self,
        command: Any,
        handlers: Mapping[str, Handler],
        step: int,
        index: int,
        config: InvocationConfig,
    ) -> Any:
        start = now()
        emit(config, CommandRecord(command=command, step=step, index=index, start=start, config=config))
        try:
            handler = resolve_handler(command, handlers)
            logger.debug("dispatch step=%d index=%d command=%r", step, index, command)
            outcome = handler(command, HandlerContext(run=self._run, config=config, handlers=handlers))
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            end = now()
            logger.debug("command failed step=%d index=%d error=%r", step, index, exc)
            emit(
                config,
                CommandCompleteRecord(
                    command=command,
                    step=step,
                    index=index,
                    start=start,
                    end=end,
                    latency=end - start,
                    success=False,
                    result=None,
                    error=exc,
                    config=config,
                ),
            )
            raise

        end = now()
        emit(
            config,
            CommandCompleteRecord(
                command=command,
                step=step,
                index=index,
                start=start,
                end=end,
                latency=end - start,
                success=True,
                result=outcome,
                error=None,
                config=config,
            ),
        )
        return outcome

    async def dispatch_all(
        self,
        commands: Sequence[Any],
        handlers: Mapping[str, Handler],
        step: int,
        config: InvocationConfig,
    ) -> list[Any]:
        tasks = [
            asyncio.ensure_future(self.dispatch(command, handlers, step, index, config))
            for index, command in enumerate(commands)
        ]
        if not tasks:
            return []

        failures: list[BaseException] = []

        def settled(task: asyncio.Future[Any]) -> None:
            if task.cancelled():
                failures.append(asyncio.CancelledError())
            elif task.exception() is not None:
                failures.append(task.exception())

        for task in tasks:
            task.add_done_callback(settled)

        # Every dispatch runs to completion before the batch settles.
        results = await asyncio.gather(*tasks, return_exceptions=True)
        if failures:
            raise failures[0]
        return list(results)


def resolve_handler(command: Any, handlers: Mapping[str, Handler]) -> Handler:
    """Return the handler registered for ``command``'s type tag."""

    tag = command_type(command)
    handler = handlers.get(tag)
    if handler is None:
        logger.warning("No handler found for command type %s", tag)
        raise UnhandledCommandError(command, tag)
    return handler


__all__ = [
    "CommandDispatcher",
    "Dispatcher",
    "Handler",
    "HandlerContext",
    "RunFunction",
    "resolve_handler",
]
