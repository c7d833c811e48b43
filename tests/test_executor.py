from __future__ import annotations

import asyncio

import pytest

from fake_states import FakeState, goes_to
from flow.errors import ConfigurationError, TransitionError
from flow.executor import TransitionExecutor


def _run(coro):
    return asyncio.run(coro)


def test_execute_returns_updated_session_and_next_state():
    end = FakeState("end", uri="/end")
    start = FakeState("start", process_transition_uri="/start", transition=goes_to(end, step=1))

    transition = _run(TransitionExecutor().execute(start, {"step": 0}, {"Digits": "1"}))

    assert transition.session == {"step": 1}
    assert transition.next_state is end
    assert start.transitions == [{"session": {"step": 0}, "raw_input": {"Digits": "1"}}]


def test_execute_does_not_mutate_callers_session():
    end = FakeState("end", uri="/end")
    start = FakeState("start", process_transition_uri="/start", transition=goes_to(end, step=5))
    session = {"step": 0, "history": ["a"]}

    _run(TransitionExecutor().execute(start, session, {}))

    assert session == {"step": 0, "history": ["a"]}


def test_non_routable_next_state_is_a_configuration_error():
    dead_end = FakeState("dead_end", process_transition_uri="/dead-end")
    start = FakeState("start", process_transition_uri="/start", transition=goes_to(dead_end))

    with pytest.raises(ConfigurationError, match="non-routable state dead_end"):
        _run(TransitionExecutor().execute(start, {}, {}))


def test_transition_must_return_a_pair():
    async def bad(session, raw_input):
        return session

    start = FakeState("start", process_transition_uri="/start", transition=bad)
    with pytest.raises(ConfigurationError, match=r"\(session, next_state\)"):
        _run(TransitionExecutor().execute(start, {}, {}))


def test_failing_transition_logic_is_wrapped():
    async def explode(session, raw_input):
        raise ValueError("bad digits")

    start = FakeState("start", process_transition_uri="/start", transition=explode)
    with pytest.raises(TransitionError, match="bad digits") as exc_info:
        _run(TransitionExecutor().execute(start, {}, {}))
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_only_normal_states_can_be_executed():
    routable = FakeState("routable", uri="/routable")
    with pytest.raises(ConfigurationError, match="cannot process input"):
        _run(TransitionExecutor().execute(routable, {}, {}))
