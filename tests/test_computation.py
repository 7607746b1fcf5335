"""
Tests for the Computation step machine.
"""

import pytest

from effects_as_data import (
    Computation,
    ComputationFinishedError,
    Done,
    Failed,
    Suspended,
    cmd,
)


def two_steps(prefix):
    first = yield cmd("echo", value=1)
    second = yield [cmd("echo", value=2), cmd("echo", value=3)]
    return f"{prefix}:{first}:{second}"


def test_suspends_on_single_and_batch_commands():
    computation = Computation(two_steps, ("p",))

    state = computation.start()
    assert state == Suspended(commands=cmd("echo", value=1), batch=False)

    state = computation.resume(1)
    assert isinstance(state, Suspended)
    assert state.batch is True
    assert len(state.commands) == 2

    state = computation.resume([2, 3])
    assert state == Done("p:1:[2, 3]")
    assert computation.finished


def test_exceptional_resumption_can_be_recovered():
    def recovering():
        try:
            yield cmd("fail")
        except ValueError as exc:
            return f"recovered {exc}"
        return "unreachable"

    computation = Computation(recovering)
    computation.start()
    state = computation.resume_error(ValueError("oops"))

    assert state == Done("recovered oops")


def test_unrecovered_failure_becomes_terminal():
    def not_recovering():
        yield cmd("fail")
        return "unreachable"

    computation = Computation(not_recovering)
    computation.start()
    error = ValueError("oops")
    state = computation.resume_error(error)

    assert isinstance(state, Failed)
    assert state.error is error


def test_failure_raised_while_starting():
    def broken(x):
        raise RuntimeError(f"bad {x}")

    state = Computation(broken, (1,)).start()

    assert isinstance(state, Failed)
    assert str(state.error) == "bad 1"


def test_plain_function_completes_immediately():
    state = Computation(lambda a, b: a + b, (1, 2)).start()
    assert state == Done(3)


def test_kwargs_are_passed_through():
    def greet(name, greeting="hi"):
        yield cmd("echo", value=name)
        return f"{greeting} {name}"

    computation = Computation(greet, ("Luke",), {"greeting": "hello"})
    computation.start()
    assert computation.resume(None) == Done("hello Luke")


@pytest.mark.parametrize("resume", ["value", "error"])
def test_no_resumption_after_completion(resume):
    def one_step():
        yield cmd("echo", value=1)
        return "done"

    computation = Computation(one_step)
    computation.start()
    computation.resume(1)

    with pytest.raises(ComputationFinishedError):
        if resume == "value":
            computation.resume(2)
        else:
            computation.resume_error(ValueError("late"))

    assert computation.state == Done("done")


def test_no_resumption_after_failure():
    def failing():
        yield cmd("echo", value=1)
        raise KeyError("x")

    computation = Computation(failing)
    computation.start()
    assert isinstance(computation.resume(None), Failed)

    with pytest.raises(ComputationFinishedError):
        computation.resume(None)


def test_cannot_start_twice():
    computation = Computation(two_steps, ("p",))
    computation.start()
    with pytest.raises(ComputationFinishedError):
        computation.start()


def test_resume_before_start_is_rejected():
    with pytest.raises(ComputationFinishedError):
        Computation(two_steps, ("p",)).resume(None)


def test_close_runs_cleanup_and_rejects_resumption():
    cleaned = []

    def holds_resource():
        try:
            yield cmd("echo", value=1)
        finally:
            cleaned.append("released")
        return "unreachable"

    computation = Computation(holds_resource)
    computation.start()
    computation.close()

    assert cleaned == ["released"]
    with pytest.raises(ComputationFinishedError, match="closed"):
        computation.resume(None)


def test_close_before_start_or_after_completion_is_a_no_op():
    Computation(two_steps, ("p",)).close()

    computation = Computation(lambda: 1)
    computation.start()
    computation.close()
    assert computation.state == Done(1)
