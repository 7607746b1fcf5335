"""
Settled outcomes.

``Ok`` holds the value a step or invocation produced, ``Err`` the exception
it raised. The interpreter reports call outcomes and ``run_safe`` results
with them; the verifier stores the outcome it injects at each scripted step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def ok(self) -> T:
        return self.value

    def err(self) -> None:
        return None

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> BaseException:
        raise ValueError(f"{self!r} settled without an error")


@dataclass(frozen=True)
class Err:
    error: BaseException

    def is_ok(self) -> bool:
        return False

    def ok(self) -> None:
        return None

    def err(self) -> BaseException:
        return self.error

    def unwrap(self) -> Any:
        """Re-raise the stored exception."""

        raise self.error

    def unwrap_err(self) -> BaseException:
        return self.error


Result: TypeAlias = Union[Ok[T], Err]


__all__ = ["Err", "Ok", "Result"]
