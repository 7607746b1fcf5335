"""Exception types raised by the interpreter and the protocol verifier."""

from __future__ import annotations

from typing import Any


class EffectsAsDataError(Exception):
    """Base class for errors raised by the library itself."""


class UnhandledCommandError(EffectsAsDataError, LookupError):
    """Raised when no handler is registered for a command's ``type``.

    Delivered into the computation like any handler failure, so business
    logic may catch it and recover.
    """

    def __init__(self, command: Any, command_type: str) -> None:
        self.command = command
        self.command_type = command_type
        super().__init__(f"No handler registered for command type {command_type!r}")


class InvalidCommandError(EffectsAsDataError, TypeError):
    """Raised when a computation yields a value that carries no ``type`` tag."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Yielded value is not a command (missing string 'type'): {value!r}"
        )


class ComputationFinishedError(EffectsAsDataError):
    """Raised when a completed or failed computation is resumed again."""


class InterpreterAbort(Exception):
    """Raised by a dispatcher to stop a run without resuming the computation.

    The interpreter records the abort as a failed call and re-raises it instead
    of throwing it into the business generator.
    """


class ProtocolViolation(InterpreterAbort, AssertionError):
    """A computation deviated from the script it was verified against."""


class CommandMismatch(ProtocolViolation):
    """The actual suspension differs from the expected command."""

    def __init__(self, step: int, expected: Any, actual: Any, path: tuple[Any, ...]) -> None:
        self.step = step
        self.expected = expected
        self.actual = actual
        self.path = path
        where = "".join(f"[{p!r}]" for p in path) or "<root>"
        super().__init__(
            f"Step {step}: command mismatch at {where}\n"
            f"  expected: {expected!r}\n"
            f"  actual:   {actual!r}"
        )


class ScriptExhausted(ProtocolViolation):
    """The computation suspended after every expectation was consumed."""

    def __init__(self, step: int, actual: Any) -> None:
        self.step = step
        self.actual = actual
        super().__init__(f"Step {step}: unexpected command, script has no entries left: {actual!r}")


class OutcomeMismatch(ProtocolViolation):
    """The computation's terminal value or failure differs from the script."""


class UnconsumedExpectations(ProtocolViolation):
    """The computation finished before consuming every scripted step."""

    def __init__(self, consumed: int, remaining: list[Any]) -> None:
        self.consumed = consumed
        self.remaining = remaining
        super().__init__(
            f"Computation finished after {consumed} step(s) but {len(remaining)} "
            f"expectation(s) were never reached; next expected: {remaining[0]!r}"
        )


class ScriptDefinitionError(EffectsAsDataError, ValueError):
    """Raised when a verifier script is declared out of order."""


__all__ = [
    "CommandMismatch",
    "ComputationFinishedError",
    "EffectsAsDataError",
    "InterpreterAbort",
    "InvalidCommandError",
    "OutcomeMismatch",
    "ProtocolViolation",
    "ScriptDefinitionError",
    "ScriptExhausted",
    "UnconsumedExpectations",
    "UnhandledCommandError",
]
