"""Shapes a call-flow state can take, and the values passed between stages."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, NamedTuple, Protocol

SessionData = dict[str, Any]
RawInput = Mapping[str, str]
AssetUrlResolver = Callable[[str], str]


class UsableState(Protocol):
    """Anything with a name can be declared in a flow."""

    name: str


class RoutableState(UsableState, Protocol):
    """A state that can be reached directly and rendered into TwiML."""

    uri: str

    async def render(
        self,
        context: RequestContext,
        session: SessionData,
        asset_url: AssetUrlResolver,
        raw_input: RawInput | None,
    ) -> Any:
        """Return a ``VoiceResponse`` (or raw TwiML string) for this state."""


class NormalState(UsableState, Protocol):
    """A state that consumes caller input and decides where the call goes next."""

    process_transition_uri: str

    async def transition_out(
        self,
        session: SessionData,
        raw_input: RawInput,
    ) -> tuple[SessionData, RoutableState]:
        """Return the updated session and the state to render next."""


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class RequestContext:
    """Read-only request facts a state may need while rendering."""

    call_sid: str
    protocol: str
    host: str
    query: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", _freeze(self.query))

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}"


class Transition(NamedTuple):
    """Result of the transition stage, consumed by the render stage."""

    session: SessionData
    next_state: RoutableState
