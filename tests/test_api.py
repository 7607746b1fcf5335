"""
Tests for build_functions and the built-in handlers.
"""

import pytest

from effects_as_data import (
    InvocationConfig,
    build_functions,
    builtin_handlers,
    call,
    cmd,
    echo,
    with_builtins,
)


def get_names():
    people = yield cmd("httpGet", url="/people")
    return [p["name"] for p in people["results"]]


def get_person(person_id):
    """Fetch one person by id."""
    person = yield cmd("httpGet", url=f"/people/{person_id}")
    return person["name"]


@pytest.mark.asyncio
async def test_build_functions_exposes_plain_coroutines(handlers, config, recorder):
    api = build_functions(handlers, {"getNames": get_names, "getPerson": get_person}, config=config)

    assert set(api) == {"getNames", "getPerson"}
    assert await api["getNames"]() == ["Luke"]
    assert await api["getPerson"](2) == "C-3PO"

    names = [r.config.name for r in recorder.of_kind("call")]
    assert names == ["getNames", "getPerson"]
    assert config.name == "test"


@pytest.mark.asyncio
async def test_each_call_gets_its_own_cid(handlers, config, recorder):
    api = build_functions(handlers, {"getNames": get_names}, config=config)

    await api["getNames"]()
    await api["getNames"]()

    cids = [r.config.cid for r in recorder.of_kind("call")]
    assert len(set(cids)) == 2


def test_built_functions_keep_metadata(handlers):
    api = build_functions(handlers, {"getPerson": get_person})
    assert api["getPerson"].__doc__ == "Fetch one person by id."
    assert api["getPerson"].__wrapped__ is get_person


@pytest.mark.asyncio
async def test_build_functions_without_config(handlers):
    api = build_functions(handlers, {"getNames": get_names})
    assert await api["getNames"]() == ["Luke"]


@pytest.mark.asyncio
async def test_echo_and_call_builtins(handlers, config):
    def program():
        value = yield echo({"a": 1})
        name = yield call(get_person, 1)
        return value, name

    result = await build_functions(with_builtins(handlers), {"program": program}, config=config)["program"]()
    assert result == ({"a": 1}, "Luke")


def test_with_builtins_lets_callers_override():
    def my_echo(command, ctx):
        return "overridden"

    merged = with_builtins({"echo": my_echo})
    assert merged["echo"] is my_echo
    assert merged["call"] is builtin_handlers()["call"]
    assert set(builtin_handlers()) == {"call", "echo"}


@pytest.mark.asyncio
async def test_pinned_cid_is_shared_by_every_call(handlers, recorder):
    config = InvocationConfig(cid="fixed", **recorder.callbacks())
    api = build_functions(handlers, {"a": get_names, "b": get_names}, config=config)

    await api["a"]()
    await api["b"]()

    assert {r.config.cid for r in recorder.records} == {"fixed"}
