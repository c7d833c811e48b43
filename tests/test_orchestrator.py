from __future__ import annotations

import asyncio

import pytest

from fake_states import FakeState, goes_to
from flow.assets import build_asset_url_resolver
from flow.errors import RenderError, SessionConflictError, TransitionError
from flow.orchestrator import RequestOrchestrator

ASSET_URL = build_asset_url_resolver("https://calls.example.com")


def _run(coro):
    return asyncio.run(coro)


def test_direct_route_renders_with_input_and_starts_session(store, context):
    state = FakeState("greeting", uri="/greeting")
    orchestrator = RequestOrchestrator(store)

    xml = _run(orchestrator.run_direct(state, context, {"CallSid": "CA123", "From": "+41791234567"}, ASSET_URL))

    assert "greeting step None" in xml
    assert state.renders[0]["raw_input"] == {"CallSid": "CA123", "From": "+41791234567"}
    record = _run(store.get("CA123"))
    assert record.data == {}
    assert record.version == 1


def test_direct_route_leaves_existing_session_alone(store, context):
    _run(store.set("CA123", {"step": 4}))
    state = FakeState("greeting", uri="/greeting")

    _run(RequestOrchestrator(store).run_direct(state, context, {}, ASSET_URL))

    record = _run(store.get("CA123"))
    assert record.data == {"step": 4}
    assert record.version == 1
    assert state.renders[0]["session"] == {"step": 4}


def test_transition_renders_next_state_without_input_and_persists(store, context):
    b = FakeState("b", uri="/b")
    a = FakeState("a", uri="/a", process_transition_uri="/a/next", transition=goes_to(b, step=1))
    _run(store.set("CA123", {"step": 0}))

    xml = _run(RequestOrchestrator(store).run_transition(a, context, {"choice": "1"}, ASSET_URL))

    assert "b step 1" in xml
    assert b.renders[0]["raw_input"] is None
    assert a.renders == []
    assert _run(store.get("CA123")).data == {"step": 1}


def test_failed_transition_persists_nothing(store, context):
    async def explode(session, raw_input):
        session["step"] = 99
        raise ValueError("caller said something odd")

    a = FakeState("a", process_transition_uri="/a/next", transition=explode)
    _run(store.set("CA123", {"step": 0}))

    with pytest.raises(TransitionError):
        _run(RequestOrchestrator(store).run_transition(a, context, {}, ASSET_URL))

    record = _run(store.get("CA123"))
    assert record.data == {"step": 0}
    assert record.version == 1


def test_failed_render_after_transition_persists_nothing(store, context):
    broken = FakeState("broken", uri="/broken", render_error=RuntimeError("boom"))
    a = FakeState("a", process_transition_uri="/a/next", transition=goes_to(broken, step=1))
    _run(store.set("CA123", {"step": 0}))

    with pytest.raises(RenderError):
        _run(RequestOrchestrator(store).run_transition(a, context, {}, ASSET_URL))

    assert _run(store.get("CA123")).data == {"step": 0}


def test_idempotent_state_yields_same_session_for_same_input(store, context):
    async def stay(session, raw_input):
        session["last"] = raw_input["Digits"]
        return session, loop

    loop = FakeState("loop", uri="/loop", process_transition_uri="/loop/next", transition=stay)
    orchestrator = RequestOrchestrator(store)

    seen = []
    for _ in range(3):
        _run(orchestrator.run_transition(loop, context, {"Digits": "7"}, ASSET_URL))
        seen.append(_run(store.get("CA123")).data)

    assert seen == [{"last": "7"}] * 3


def test_concurrent_requests_for_one_call_are_serialised(store, context):
    async def advance(session, raw_input):
        step = session.get("step", 0)
        await asyncio.sleep(0)
        session["step"] = step + 1
        return session, end

    end = FakeState("end", uri="/end")
    counter = FakeState("counter", process_transition_uri="/count", transition=advance)

    async def scenario():
        await store.set("CA123", {"step": 0})
        orchestrator = RequestOrchestrator(store)
        await asyncio.gather(
            orchestrator.run_transition(counter, context, {}, ASSET_URL),
            orchestrator.run_transition(counter, context, {}, ASSET_URL),
        )
        return await store.get("CA123")

    record = _run(scenario())
    assert record.data == {"step": 2}
    assert [t["session"] for t in counter.transitions] == [{"step": 0}, {"step": 1}]


def test_racing_workers_store_exactly_one_update(store, context):
    """Two workers (no shared lock) both load step 0; one write wins, never a merge."""

    end = FakeState("end", uri="/end")

    async def scenario():
        both_loaded = asyncio.Event()
        arrived = 0

        async def race(session, raw_input):
            nonlocal arrived
            arrived += 1
            if arrived == 2:
                both_loaded.set()
            await both_loaded.wait()
            session["step"] = 1
            session["writer"] = raw_input["writer"]
            return session, end

        racer = FakeState("racer", process_transition_uri="/race", transition=race)
        await store.set("CA123", {"step": 0})

        results = await asyncio.gather(
            RequestOrchestrator(store).run_transition(racer, context, {"writer": "a"}, ASSET_URL),
            RequestOrchestrator(store).run_transition(racer, context, {"writer": "b"}, ASSET_URL),
            return_exceptions=True,
        )
        return results, racer, await store.get("CA123")

    results, racer, record = _run(scenario())

    assert [t["session"] for t in racer.transitions] == [{"step": 0}, {"step": 0}]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], SessionConflictError)
    assert record.data["step"] == 1
    assert record.data["writer"] in {"a", "b"}
    assert set(record.data) == {"step", "writer"}
    assert record.version == 2
