"""
Invocation configuration.

An ``InvocationConfig`` travels with a top-level invocation and every nested
invocation it triggers. It is frozen: nested calls derive a new value with
one more ``Frame`` on the stack and share every other field by reference.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from effects_as_data.telemetry import TelemetryRecord

TelemetryCallback = Callable[["TelemetryRecord"], Any]

DEBUG_ENV_VAR = "EFFECTS_AS_DATA_DEBUG"


def debug_enabled() -> bool:
    """Return ``True`` when ``EFFECTS_AS_DATA_DEBUG`` asks for telemetry logging."""

    return os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")


def new_cid() -> str:
    """Generate a correlation id for a top-level invocation."""

    return uuid.uuid4().hex


@dataclass(frozen=True)
class Frame:
    """One entry of the invocation stack.

    ``config`` is the config the invocation was started with, i.e. the
    caller's view before this frame was pushed.
    """

    fn: Callable[..., Any]
    args: tuple[Any, ...]
    handlers: Mapping[str, Any] = field(repr=False)
    config: InvocationConfig | None = field(default=None, repr=False, compare=False)

    @property
    def name(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))


@dataclass(frozen=True)
class InvocationConfig:
    """Lifecycle callbacks, correlation id and invocation stack."""

    name: str | None = None
    cid: str | None = None
    on_call: TelemetryCallback | None = None
    on_call_complete: TelemetryCallback | None = None
    on_command: TelemetryCallback | None = None
    on_command_complete: TelemetryCallback | None = None
    stack: tuple[Frame, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.stack)

    def with_cid(self) -> InvocationConfig:
        """Return this config, with a fresh ``cid`` if it has none yet."""

        if self.cid is not None:
            return self
        return replace(self, cid=new_cid())

    def push(self, frame: Frame) -> InvocationConfig:
        """Return a config whose stack is extended by ``frame``."""

        return replace(self, stack=self.stack + (frame,))

    def callback(self, kind: str) -> TelemetryCallback | None:
        return getattr(self, f"on_{kind}", None)


def default_config(**overrides: Any) -> InvocationConfig:
    """Build the config used when a caller supplies none.

    With ``EFFECTS_AS_DATA_DEBUG`` set, every telemetry record is logged
    unless the caller overrides that callback.
    """

    if debug_enabled():
        from effects_as_data.telemetry import logging_callbacks

        overrides = {**logging_callbacks(), **overrides}
    return InvocationConfig(**overrides)


__all__ = [
    "DEBUG_ENV_VAR",
    "Frame",
    "InvocationConfig",
    "TelemetryCallback",
    "debug_enabled",
    "default_config",
    "new_cid",
]
