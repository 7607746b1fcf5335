"""
Plain async functions from business functions.

``build_functions`` binds a map of business functions to a handler map so
callers outside the library can use them like ordinary coroutines:

    >>> api = build_functions({"httpGet": http_get}, {"get_names": get_names})
    >>> await api["get_names"]()
    ['Luke']
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from functools import wraps
from typing import Any

from effects_as_data.config import InvocationConfig, default_config
from effects_as_data.dispatch import Handler
from effects_as_data.interpreter import Interpreter, default_interpreter


def build_functions(
    handlers: Mapping[str, Handler],
    functions: Mapping[str, Callable[..., Any]],
    config: InvocationConfig | None = None,
    interpreter: Interpreter | None = None,
) -> dict[str, Callable[..., Awaitable[Any]]]:
    """Return one async callable per entry of ``functions``.

    Every call is a fresh top-level invocation named after its entry; the
    shared ``config`` supplies callbacks, a ``cid`` is generated per call
    unless ``config`` pins one.
    """

    base = config or default_config()
    engine = interpreter or default_interpreter
    return {name: _bind(engine, handlers, name, fn, base) for name, fn in functions.items()}


def _bind(
    engine: Interpreter,
    handlers: Mapping[str, Handler],
    name: str,
    fn: Callable[..., Any],
    base: InvocationConfig,
) -> Callable[..., Awaitable[Any]]:
    named = replace(base, name=name)

    @wraps(fn)
    async def invoke(*args: Any, **kwargs: Any) -> Any:
        return await engine.run(handlers, fn, *args, config=named, **kwargs)

    return invoke


__all__ = ["build_functions"]
