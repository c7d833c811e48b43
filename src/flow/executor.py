"""Run a normal state's transition logic."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from flow.classifier import describe_state, is_normal_state, is_routable_state
from flow.errors import ConfigurationError, FlowError, TransitionError
from flow.states import RawInput, SessionData, Transition

LOGGER = logging.getLogger(__name__)


class TransitionExecutor:
    """Ask a normal state where the call goes next.

    The executor does no I/O of its own and never retries. The state gets a
    copy of the session, so a transition that fails halfway leaves the
    caller's session untouched.
    """

    async def execute(self, state: Any, session: SessionData, raw_input: RawInput) -> Transition:
        if not is_normal_state(state):
            raise ConfigurationError(f"State {describe_state(state)} cannot process input")

        try:
            result = await state.transition_out(copy.deepcopy(session), raw_input)
        except FlowError:
            raise
        except Exception as exc:
            raise TransitionError(f"Transition out of {state.name} failed: {exc}") from exc

        updated, next_state = self._unpack(state, result)
        if not is_routable_state(next_state):
            raise ConfigurationError(
                f"Transition out of {state.name} returned non-routable state "
                f"{describe_state(next_state)}"
            )

        LOGGER.debug("Transition %s -> %s", state.name, next_state.name)
        return Transition(session=dict(updated), next_state=next_state)

    @staticmethod
    def _unpack(state: Any, result: Any) -> tuple[Mapping[str, Any], Any]:
        try:
            updated, next_state = result
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Transition out of {state.name} must return (session, next_state)"
            ) from None
        if not isinstance(updated, Mapping):
            raise ConfigurationError(
                f"Transition out of {state.name} returned a session of type {type(updated).__name__}"
            )
        return updated, next_state
