"""
Command descriptors.

A command is plain data: a mapping with a ``type`` key naming the handler
that performs it, plus any payload keys. Business functions yield commands
(or lists of commands) and never perform the effect themselves.

Example:
    >>> get = cmd("httpGet", url="/people")
    >>> get["type"], get["url"]
    ('httpGet', '/people')
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

from frozendict import frozendict

from effects_as_data.errors import InvalidCommandError

Command: TypeAlias = Mapping[str, Any]
Commands: TypeAlias = list[Command] | tuple[Command, ...]

TYPE_KEY = "type"


def cmd(type_: str, **payload: Any) -> frozendict:
    """Build an immutable command descriptor."""

    if not isinstance(type_, str) or not type_:
        raise InvalidCommandError(type_)
    if TYPE_KEY in payload:
        raise ValueError("'type' is reserved and cannot appear in the payload")
    return frozendict({TYPE_KEY: type_, **payload})


def command_type(command: Any) -> str:
    """Return the handler tag of ``command``.

    Mappings are read by key; other objects (e.g. frozen dataclasses) by
    attribute.
    """

    if isinstance(command, Mapping):
        tag = command.get(TYPE_KEY)
    else:
        tag = getattr(command, TYPE_KEY, None)
    if not isinstance(tag, str):
        raise InvalidCommandError(command)
    return tag


def is_batch(value: Any) -> bool:
    """Return ``True`` when a suspension holds an ordered collection of commands."""

    return isinstance(value, (list, tuple))


def call(fn: Callable[..., Any], *args: Any) -> frozendict:
    """Command running ``fn(*args)`` as a nested computation."""

    return cmd("call", fn=fn, args=tuple(args))


def echo(value: Any) -> frozendict:
    """Command whose result is ``value`` itself."""

    return cmd("echo", value=value)


__all__ = [
    "Command",
    "Commands",
    "TYPE_KEY",
    "call",
    "cmd",
    "command_type",
    "echo",
    "is_batch",
]
