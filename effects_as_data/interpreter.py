"""
Effect interpreter.

The interpreter is the only place where handlers are invoked. It starts a
business computation, routes each suspension to its dispatcher (a single
command to ``dispatch``, a list to ``dispatch_all``), and resumes the
computation with the result or throws the failure back into it. Whether a
failure is recovered is decided entirely inside the business function.

Example:
    >>> def get_names():
    ...     people = yield cmd("httpGet", url="/people")
    ...     return [p["name"] for p in people["results"]]
    >>>
    >>> names = await run({"httpGet": http_get}, get_names)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from effects_as_data.computation import Computation, Done, Failed, Suspended
from effects_as_data.config import Frame, InvocationConfig, default_config
from effects_as_data.dispatch import CommandDispatcher, Dispatcher, Handler, RunFunction
from effects_as_data.errors import InterpreterAbort
from effects_as_data.result import Err, Ok, Result
from effects_as_data.telemetry import CallCompleteRecord, CallRecord, drain, emit, now

T = TypeVar("T")

logger = logging.getLogger(__name__)

DispatcherFactory = Callable[[RunFunction], Dispatcher]


@dataclass(frozen=True)
class RunResult(Generic[T]):
    """Outcome of ``run_safe``: the result plus the config the run used."""

    result: Result[T]
    config: InvocationConfig

    @property
    def is_ok(self) -> bool:
        return isinstance(self.result, Ok)

    @property
    def is_err(self) -> bool:
        return isinstance(self.result, Err)

    @property
    def value(self) -> T:
        return self.result.unwrap()

    @property
    def error(self) -> BaseException:
        return self.result.unwrap_err()


class Interpreter:
    """Drives business computations against a handler map.

    Args:
        dispatcher_factory: Builds the dispatcher from the interpreter's
            re-entrant ``run``. Defaults to ``CommandDispatcher``, which
            invokes real handlers; the verifier supplies a scripted one.
    """

    def __init__(self, dispatcher_factory: DispatcherFactory | None = None) -> None:
        factory = dispatcher_factory or CommandDispatcher
        self.dispatcher: Dispatcher = factory(self.run)

    async def run(
        self,
        handlers: Mapping[str, Handler],
        fn: Callable[..., Any],
        *args: Any,
        config: InvocationConfig | None = None,
        **kwargs: Any,
    ) -> Any:
        """Run ``fn(*args, **kwargs)`` to completion.

        Returns the computation's return value or raises its failure.
        """

        parent = (config or default_config()).with_cid()
        config = parent.push(Frame(fn=fn, args=args, handlers=handlers, config=parent))
        start = now()
        emit(config, CallRecord(fn=fn, args=args, start=start, config=config))

        computation = Computation(fn, args, kwargs)
        state = computation.start()
        step = 0
        while True:
            match state:
                case Done(value=value):
                    self._complete(config, fn, args, start, Ok(value))
                    return value

                case Failed(error=error):
                    self._complete(config, fn, args, start, Err(error))
                    raise error

                case Suspended(commands=commands, batch=batch):
                    logger.debug(
                        "suspended cid=%s depth=%d step=%d commands=%r",
                        config.cid,
                        config.depth,
                        step,
                        commands,
                    )
                    try:
                        if batch:
                            value = await self.dispatcher.dispatch_all(commands, handlers, step, config)
                        else:
                            value = await self.dispatcher.dispatch(commands, handlers, step, 0, config)
                    except InterpreterAbort as abort:
                        try:
                            computation.close()
                        finally:
                            self._complete(config, fn, args, start, Err(abort))
                        raise
                    except Exception as exc:
                        step += 1
                        state = computation.resume_error(exc)
                    else:
                        step += 1
                        state = computation.resume(value)

    async def run_safe(
        self,
        handlers: Mapping[str, Handler],
        fn: Callable[..., Any],
        *args: Any,
        config: InvocationConfig | None = None,
        **kwargs: Any,
    ) -> RunResult[Any]:
        """Like ``run`` but returns ``RunResult`` instead of raising."""

        config = (config or default_config()).with_cid()
        try:
            value = await self.run(handlers, fn, *args, config=config, **kwargs)
        except InterpreterAbort:
            raise
        except Exception as exc:
            return RunResult(Err(exc), config)
        return RunResult(Ok(value), config)

    def run_sync(
        self,
        handlers: Mapping[str, Handler],
        fn: Callable[..., Any],
        *args: Any,
        config: InvocationConfig | None = None,
        **kwargs: Any,
    ) -> Any:
        """Synchronous ``run`` for callers without an event loop.

        Async telemetry callbacks finish before the loop is closed.
        """

        async def run_and_drain() -> Any:
            try:
                return await self.run(handlers, fn, *args, config=config, **kwargs)
            finally:
                await drain()

        return asyncio.run(run_and_drain())

    @staticmethod
    def _complete(
        config: InvocationConfig,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        start: float,
        outcome: Result[Any],
    ) -> None:
        end = now()
        emit(
            config,
            CallCompleteRecord(
                fn=fn,
                args=args,
                start=start,
                end=end,
                latency=end - start,
                success=outcome.is_ok(),
                result=outcome.ok(),
                error=outcome.err(),
                config=config,
            ),
        )


default_interpreter = Interpreter()


async def run(
    handlers: Mapping[str, Handler],
    fn: Callable[..., Any],
    *args: Any,
    config: InvocationConfig | None = None,
    **kwargs: Any,
) -> Any:
    """Run ``fn`` with the default interpreter."""

    return await default_interpreter.run(handlers, fn, *args, config=config, **kwargs)


async def run_safe(
    handlers: Mapping[str, Handler],
    fn: Callable[..., Any],
    *args: Any,
    config: InvocationConfig | None = None,
    **kwargs: Any,
) -> RunResult[Any]:
    return await default_interpreter.run_safe(handlers, fn, *args, config=config, **kwargs)


def run_sync(
    handlers: Mapping[str, Handler],
    fn: Callable[..., Any],
    *args: Any,
    config: InvocationConfig | None = None,
    **kwargs: Any,
) -> Any:
    return default_interpreter.run_sync(handlers, fn, *args, config=config, **kwargs)


__all__ = [
    "DispatcherFactory",
    "Interpreter",
    "RunResult",
    "default_interpreter",
    "run",
    "run_safe",
    "run_sync",
]
