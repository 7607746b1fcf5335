"""
Resumable computations.

A business function is a generator function: every ``yield`` hands a command
(or a list of commands) to the interpreter and receives the result back, or
has the failure raised at the ``yield`` expression. ``Computation`` wraps the
generator in an explicit step machine so the interpreter and the verifier can
drive it without touching the generator protocol directly:

    start()            -> Suspended | Done | Failed
    resume(value)      -> Suspended | Done | Failed
    resume_error(exc)  -> Suspended | Done | Failed
    close()

Once a terminal state is reached, or the computation is closed, every further
resumption raises ``ComputationFinishedError``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from effects_as_data.commands import is_batch
from effects_as_data.errors import ComputationFinishedError


@dataclass(frozen=True)
class Suspended:
    """The computation is waiting on a command or an ordered batch of commands."""

    commands: Any
    batch: bool = False


@dataclass(frozen=True)
class Done:
    """Terminal: the computation returned ``value``."""

    value: Any


@dataclass(frozen=True)
class Failed:
    """Terminal: the computation raised ``error``."""

    error: BaseException


Terminal: TypeAlias = Done | Failed
StepResult: TypeAlias = Suspended | Done | Failed


@dataclass
class Computation:
    """Single-use step machine around one business function invocation."""

    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    state: StepResult | None = field(default=None, init=False)
    _gen: Generator[Any, Any, Any] | None = field(default=None, init=False, repr=False)

    @property
    def finished(self) -> bool:
        return isinstance(self.state, (Done, Failed))

    def start(self) -> StepResult:
        """Invoke the business function and run it to its first suspension."""

        if self.state is not None:
            raise ComputationFinishedError(f"{self._name()} was already started")
        try:
            gen_or_value = self.fn(*self.args, **self.kwargs)
        except Exception as exc:
            return self._settle(Failed(exc))

        # Plain functions complete immediately, like a generator with no yields.
        if not inspect.isgenerator(gen_or_value):
            return self._settle(Done(gen_or_value))

        self._gen = gen_or_value
        return self._advance(lambda: next(gen_or_value))

    def resume(self, value: Any) -> StepResult:
        """Normal resumption: ``value`` becomes the result of the pending ``yield``."""

        gen = self._expect_suspended()
        return self._advance(lambda: gen.send(value))

    def resume_error(self, error: BaseException) -> StepResult:
        """Exceptional resumption: ``error`` is raised at the pending ``yield``."""

        gen = self._expect_suspended()
        return self._advance(lambda: gen.throw(error))

    def close(self) -> None:
        """Close a suspended computation without resuming it.

        The generator's ``finally`` blocks run now. Any further resumption
        raises ``ComputationFinishedError``.
        """

        gen, self._gen = self._gen, None
        if gen is not None:
            gen.close()

    def _expect_suspended(self) -> Generator[Any, Any, Any]:
        if self.finished:
            raise ComputationFinishedError(
                f"{self._name()} already finished as {type(self.state).__name__}; "
                "it accepts no further resumption"
            )
        if self._gen is None:
            if self.state is None:
                raise ComputationFinishedError(f"{self._name()} has not been started")
            raise ComputationFinishedError(f"{self._name()} was closed while suspended")
        return self._gen

    def _advance(self, step: Callable[[], Any]) -> StepResult:
        try:
            yielded = step()
        except StopIteration as stop:
            return self._settle(Done(stop.value))
        except Exception as exc:
            return self._settle(Failed(exc))
        self.state = Suspended(commands=yielded, batch=is_batch(yielded))
        return self.state

    def _settle(self, terminal: Terminal) -> Terminal:
        self.state = terminal
        self._gen = None
        return terminal

    def _name(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))


__all__ = [
    "Computation",
    "Done",
    "Failed",
    "StepResult",
    "Suspended",
    "Terminal",
]
