"""
Protocol verifier for business functions.

A business function only yields commands and reacts to their results, so it
can be tested without any handler: declare the commands it must yield, the
results (or failures) to inject, and what it must finally return or raise.
The script runs through the same ``Interpreter`` as production code, with a
``ScriptedDispatcher`` in place of real handlers.

Example:
    >>> def get_names():
    ...     people = yield cmd("httpGet", url="/people")
    ...     return [p["name"] for p in people["results"]]
    >>>
    >>> (
    ...     verify(get_names)
    ...     .yield_cmd(cmd("httpGet", url="/people"))
    ...     .yield_returns({"results": [{"name": "Luke"}]})
    ...     .returns(["Luke"])
    ...     .check_sync()
    ... )

Short return: ``yield_cmd(c).returns(v)`` without an injected outcome means
the function yields ``c`` and returns whatever ``c`` produced, untouched.

Every mismatch raises a ``ProtocolViolation`` (an ``AssertionError``). It is
never thrown into the business function, so the function cannot swallow it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from effects_as_data.config import InvocationConfig
from effects_as_data.dispatch import Handler, RunFunction
from effects_as_data.equality import first_difference
from effects_as_data.errors import (
    CommandMismatch,
    OutcomeMismatch,
    ProtocolViolation,
    ScriptDefinitionError,
    ScriptExhausted,
    UnconsumedExpectations,
)
from effects_as_data.interpreter import Interpreter
from effects_as_data.result import Err, Ok, Result

_NOTHING = object()


@dataclass(frozen=True)
class Expectation:
    """One scripted suspension: the expected command and what to inject."""

    command: Any
    outcome: Result[Any]


@dataclass(frozen=True)
class Returns:
    value: Any

    def verify(self, outcome: Result[Any]) -> None:
        if isinstance(outcome, Err):
            raise OutcomeMismatch(
                f"Expected return {self.value!r} but the function raised {outcome.error!r}"
            ) from outcome.error
        path = first_difference(self.value, outcome.value)
        if path is not None:
            where = "".join(f"[{p!r}]" for p in path) or "<root>"
            raise OutcomeMismatch(
                f"Return value mismatch at {where}\n"
                f"  expected: {self.value!r}\n"
                f"  actual:   {outcome.value!r}"
            )


@dataclass(frozen=True)
class Raises:
    error: BaseException | type[BaseException]

    def verify(self, outcome: Result[Any]) -> None:
        if isinstance(outcome, Ok):
            raise OutcomeMismatch(
                f"Expected the function to raise {self.error!r} but it returned {outcome.value!r}"
            )
        if not self.matches(outcome.error):
            raise OutcomeMismatch(
                f"Expected failure {self.error!r} but the function raised {outcome.error!r}"
            ) from outcome.error

    def matches(self, actual: BaseException) -> bool:
        if isinstance(self.error, type):
            return isinstance(actual, self.error)
        return type(actual) is type(self.error) and first_difference(self.error.args, actual.args) is None


class ScriptedDispatcher:
    """Dispatcher that asserts each suspension instead of performing it."""

    def __init__(self, expectations: Sequence[Expectation]) -> None:
        self._expectations = list(expectations)
        self.position = 0

    @property
    def remaining(self) -> list[Expectation]:
        return self._expectations[self.position :]

    async def dispatch(
        self,
        command: Any,
        handlers: Mapping[str, Handler],
        step: int,
        index: int,
        config: InvocationConfig,
    ) -> Any:
        return self._consume(command, step)

    async def dispatch_all(
        self,
        commands: Sequence[Any],
        handlers: Mapping[str, Handler],
        step: int,
        config: InvocationConfig,
    ) -> list[Any]:
        return self._consume(list(commands), step)

    def _consume(self, actual: Any, step: int) -> Any:
        if self.position >= len(self._expectations):
            raise ScriptExhausted(step, actual)
        expectation = self._expectations[self.position]
        path = first_difference(expectation.command, actual)
        if path is not None:
            raise CommandMismatch(step, expectation.command, actual, path)
        self.position += 1
        return expectation.outcome.unwrap()


class Script:
    """Fluent declaration of the steps a business function must take."""

    def __init__(self, fn: Callable[..., Any]) -> None:
        self.fn = fn
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}
        self._expectations: list[Expectation] = []
        self._pending: Any = _NOTHING
        self._terminal: Returns | Raises | None = None

    @property
    def expectations(self) -> tuple[Expectation, ...]:
        return tuple(self._expectations)

    @property
    def terminal(self) -> Returns | Raises | None:
        return self._terminal

    def args(self, *args: Any, **kwargs: Any) -> Script:
        self._args = args
        self._kwargs = kwargs
        return self

    def yield_cmd(self, command: Any) -> Script:
        """Expect the next suspension to be ``command`` (or this list of commands)."""

        self._ensure_open("yield_cmd")
        if self._pending is not _NOTHING:
            raise ScriptDefinitionError(
                f"yield_cmd({command!r}) follows yield_cmd({self._pending!r}) "
                "without yield_returns() or yield_throws()"
            )
        self._pending = command
        return self

    def yield_returns(self, value: Any) -> Script:
        """Inject ``value`` as the result of the pending command."""

        self._expectations.append(Expectation(self._take_pending("yield_returns"), Ok(value)))
        return self

    def yield_throws(self, error: BaseException) -> Script:
        """Raise ``error`` at the pending ``yield``."""

        if not isinstance(error, BaseException):
            raise ScriptDefinitionError(f"yield_throws() needs an exception instance, got {error!r}")
        self._expectations.append(Expectation(self._take_pending("yield_throws"), Err(error)))
        return self

    def returns(self, value: Any) -> Script:
        self._finish(Returns(value), lambda: Ok(value))
        return self

    def throws(self, error: BaseException | type[BaseException]) -> Script:
        def injected() -> Result[Any]:
            if not isinstance(error, BaseException):
                raise ScriptDefinitionError(
                    "a short-return throws() injects the failure and needs an exception instance"
                )
            return Err(error)

        self._finish(Raises(error), injected)
        return self

    async def check(self, config: InvocationConfig | None = None) -> None:
        """Run the function against the script; raise ``ProtocolViolation`` on any deviation."""

        if self._pending is not _NOTHING:
            raise ScriptDefinitionError(f"yield_cmd({self._pending!r}) has no injected outcome")
        if self._terminal is None:
            raise ScriptDefinitionError("script needs a terminal returns() or throws()")

        dispatcher = ScriptedDispatcher(self._expectations)
        interpreter = Interpreter(_fixed(dispatcher))
        try:
            value = await interpreter.run({}, self.fn, *self._args, config=config, **self._kwargs)
        except ProtocolViolation:
            raise
        except Exception as exc:
            outcome: Result[Any] = Err(exc)
        else:
            outcome = Ok(value)

        if dispatcher.remaining:
            raise UnconsumedExpectations(dispatcher.position, [e.command for e in dispatcher.remaining])
        self._terminal.verify(outcome)

    def check_sync(self, config: InvocationConfig | None = None) -> None:
        asyncio.run(self.check(config))

    def _ensure_open(self, method: str) -> None:
        if self._terminal is not None:
            raise ScriptDefinitionError(f"{method}() after the terminal expectation")

    def _take_pending(self, method: str) -> Any:
        self._ensure_open(method)
        if self._pending is _NOTHING:
            raise ScriptDefinitionError(f"{method}() must follow yield_cmd()")
        command, self._pending = self._pending, _NOTHING
        return command

    def _finish(self, terminal: Returns | Raises, injected: Callable[[], Result[Any]]) -> None:
        self._ensure_open("returns" if isinstance(terminal, Returns) else "throws")
        if self._pending is not _NOTHING:
            self._expectations.append(Expectation(self._pending, injected()))
            self._pending = _NOTHING
        self._terminal = terminal


def _fixed(dispatcher: ScriptedDispatcher) -> Callable[[RunFunction], ScriptedDispatcher]:
    def factory(run: RunFunction) -> ScriptedDispatcher:
        return dispatcher

    return factory


def verify(fn: Callable[..., Any]) -> Script:
    """Start a verifier script for ``fn``."""

    return Script(fn)


__all__ = [
    "Expectation",
    "Raises",
    "Returns",
    "Script",
    "ScriptedDispatcher",
    "verify",
]
