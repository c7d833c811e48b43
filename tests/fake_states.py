"""Configurable states for exercising the flow engine."""

from __future__ import annotations

from typing import Any

from twilio.twiml.voice_response import VoiceResponse


class FakeState:
    """Routable when given a ``uri``, normal when given a ``process_transition_uri``."""

    def __init__(
        self,
        name: str,
        *,
        uri: str | None = None,
        process_transition_uri: str | None = None,
        transition=None,
        render_error: Exception | None = None,
    ) -> None:
        self.name = name
        self.uri = uri
        self.process_transition_uri = process_transition_uri
        self._transition = transition
        self._render_error = render_error
        self.renders: list[dict[str, Any]] = []
        self.transitions: list[dict[str, Any]] = []

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        self.renders.append({"context": context, "session": session, "raw_input": raw_input})
        if self._render_error is not None:
            raise self._render_error
        response = VoiceResponse()
        response.say(f"{self.name} step {session.get('step')}")
        return response

    async def transition_out(self, session, raw_input):
        self.transitions.append({"session": dict(session), "raw_input": raw_input})
        return await self._transition(session, raw_input)

    def __repr__(self) -> str:
        return f"FakeState({self.name!r})"


def goes_to(next_state, **updates):
    """Transition that merges ``updates`` into the session and moves to ``next_state``."""

    async def transition(session, raw_input):
        session.update(updates)
        return session, next_state

    return transition
