"""
Tests for command descriptors and the Result type.
"""

from dataclasses import dataclass

import pytest

from effects_as_data import (
    Err,
    InvalidCommandError,
    Ok,
    call,
    cmd,
    command_type,
    echo,
    is_batch,
)


@dataclass(frozen=True)
class Notify:
    message: str
    type: str = "notify"


def test_cmd_builds_an_immutable_mapping():
    command = cmd("httpGet", url="/people")

    assert command == {"type": "httpGet", "url": "/people"}
    assert command_type(command) == "httpGet"
    with pytest.raises(TypeError):
        command["url"] = "/planets"  # type: ignore[index]


def test_cmd_is_hashable_and_compares_by_value():
    assert cmd("a", x=1) == cmd("a", x=1)
    assert hash(cmd("a", x=1)) == hash(cmd("a", x=1))
    assert cmd("a", x=1) != cmd("a", x=2)


@pytest.mark.parametrize("bad", ["", None, 3])
def test_cmd_rejects_invalid_type(bad):
    with pytest.raises(InvalidCommandError):
        cmd(bad)


def test_cmd_rejects_type_in_payload():
    with pytest.raises(ValueError):
        cmd("a", **{"type": "b"})


def test_command_type_reads_mappings_and_attributes():
    assert command_type({"type": "plain"}) == "plain"
    assert command_type(Notify("hi")) == "notify"


@pytest.mark.parametrize("bad", [{"url": "/people"}, {"type": 1}, object(), 42])
def test_command_type_rejects_untagged_values(bad):
    with pytest.raises(InvalidCommandError) as excinfo:
        command_type(bad)
    assert isinstance(excinfo.value, TypeError)


def test_is_batch():
    assert is_batch([cmd("a")])
    assert is_batch((cmd("a"), cmd("b")))
    assert is_batch([])
    assert not is_batch(cmd("a"))
    assert not is_batch("a")


def test_builtin_command_shapes():
    def fn(x, y):
        return x + y

    assert call(fn, 1, 2) == {"type": "call", "fn": fn, "args": (1, 2)}
    assert echo([1]) == {"type": "echo", "value": [1]}


def test_result_accessors():
    ok = Ok(3)
    err = Err(ValueError("bad"))

    assert ok.is_ok() and not err.is_ok()
    assert ok.ok() == 3 and ok.err() is None
    assert err.ok() is None and isinstance(err.err(), ValueError)
    assert ok.unwrap() == 3
    assert err.unwrap_err() is err.error

    with pytest.raises(ValueError, match="bad"):
        err.unwrap()
    with pytest.raises(ValueError, match="without an error"):
        ok.unwrap_err()
