"""Compile declared states into webhook routes.

This runs once, while the app is being built and before it accepts any
request. For every routable state we bind ``POST <uri>`` that renders the
state directly. For every normal state we bind
``POST <process_transition_uri>`` that feeds the caller's input into the
state's transition and renders whatever state comes next.

Both kinds are POST-only: Twilio sends the caller's answer in the form body,
and a GET with query parameters would make the responses cacheable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, Response
from fastapi.params import Depends

from flow.classifier import classify_state
from flow.errors import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover
    from flow.orchestrator import RequestOrchestrator

LOGGER = logging.getLogger(__name__)


class BindingKind(str, Enum):
    DIRECT = "direct"
    TRANSITION = "transition"


@dataclass(frozen=True)
class RouteBinding:
    path: str
    state: Any
    kind: BindingKind
    method: str = "POST"

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def endpoint_name(self) -> str:
        return f"{self.state.name}:{self.kind.value}"


def compile_routes(states: Iterable[Any]) -> list[RouteBinding]:
    """Validate every state and return its bindings in declaration order.

    All states are classified before any binding is produced, so a single
    invalid entry aborts the whole compile.

    Raises:
        ConfigurationError: on an invalid state or a path bound twice.
    """

    classified = [classify_state(state) for state in states]

    bindings: list[RouteBinding] = []
    seen: dict[str, RouteBinding] = {}
    for item in classified:
        candidates = []
        if item.kind.routable:
            candidates.append(RouteBinding(item.state.uri, item.state, BindingKind.DIRECT))
        if item.kind.normal:
            candidates.append(
                RouteBinding(item.state.process_transition_uri, item.state, BindingKind.TRANSITION)
            )

        for binding in candidates:
            previous = seen.get(binding.path)
            if previous is not None:
                raise ConfigurationError(
                    f"Path {binding.path} is bound by both "
                    f"{previous.endpoint_name} and {binding.endpoint_name}"
                )
            seen[binding.path] = binding
            bindings.append(binding)
            LOGGER.debug("Bound POST %s -> %s", binding.path, binding.endpoint_name)

    LOGGER.info("Compiled %d states into %d routes", len(classified), len(bindings))
    return bindings


def build_flow_router(
    bindings: Sequence[RouteBinding],
    orchestrator: RequestOrchestrator,
    *,
    dependencies: Sequence[Depends] | None = None,
) -> APIRouter:
    """Register every binding as a POST endpoint on a fresh router."""

    router = APIRouter(tags=["flow"], dependencies=list(dependencies or []))
    for binding in bindings:
        router.add_api_route(
            binding.path,
            _make_endpoint(binding, orchestrator),
            methods=[binding.method],
            name=binding.endpoint_name,
            response_class=Response,
        )
    return router


def _make_endpoint(binding: RouteBinding, orchestrator: RequestOrchestrator):
    async def endpoint(request: Request) -> Response:
        return await orchestrator.handle(binding, request)

    endpoint.__name__ = f"{binding.state.name}_{binding.kind.value}"
    return endpoint
