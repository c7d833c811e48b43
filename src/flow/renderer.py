"""Turn a routable state into the TwiML document sent back to Twilio."""

from __future__ import annotations

import copy
from typing import Any

from flow.classifier import describe_state, is_routable_state
from flow.errors import ConfigurationError, FlowError, RenderError
from flow.states import AssetUrlResolver, RawInput, RequestContext, SessionData


class Renderer:
    """Render a state and normalise its result to an XML string.

    ``raw_input`` is only passed on direct routes. On transition routes the
    input has already been consumed by the transition and must not be seen a
    second time.
    """

    async def render(
        self,
        state: Any,
        context: RequestContext,
        session: SessionData,
        asset_url: AssetUrlResolver,
        raw_input: RawInput | None = None,
    ) -> str:
        if not is_routable_state(state):
            raise ConfigurationError(f"State {describe_state(state)} cannot be rendered")

        try:
            document = await state.render(context, copy.deepcopy(session), asset_url, raw_input)
        except FlowError:
            raise
        except Exception as exc:
            raise RenderError(f"Rendering {state.name} failed: {exc}") from exc

        return self._to_xml(state, document)

    @staticmethod
    def _to_xml(state: Any, document: Any) -> str:
        if isinstance(document, str):
            return document
        to_xml = getattr(document, "to_xml", None)
        if callable(to_xml):
            return to_xml()
        raise RenderError(
            f"Rendering {state.name} produced {type(document).__name__}, expected TwiML"
        )
