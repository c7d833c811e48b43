"""Structural classification of declared call-flow states.

States are not required to inherit from anything. What a state can do is
decided by which attributes it exposes, and one state may be both routable
and normal at the same time.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any

from flow.errors import ConfigurationError


class StateKind(str, Enum):
    ROUTABLE_ONLY = "routable_only"
    NORMAL_ONLY = "normal_only"
    BOTH = "both"

    @property
    def routable(self) -> bool:
        return self in (StateKind.ROUTABLE_ONLY, StateKind.BOTH)

    @property
    def normal(self) -> bool:
        return self in (StateKind.NORMAL_ONLY, StateKind.BOTH)


@dataclass(frozen=True)
class ClassifiedState:
    state: Any
    kind: StateKind

    @property
    def name(self) -> str:
        return self.state.name


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_usable_state(candidate: Any) -> bool:
    return candidate is not None and _non_empty_str(getattr(candidate, "name", None))


def is_routable_state(candidate: Any) -> bool:
    return (
        is_usable_state(candidate)
        and _non_empty_str(getattr(candidate, "uri", None))
        and inspect.iscoroutinefunction(getattr(candidate, "render", None))
    )


def is_normal_state(candidate: Any) -> bool:
    return (
        is_usable_state(candidate)
        and _non_empty_str(getattr(candidate, "process_transition_uri", None))
        and inspect.iscoroutinefunction(getattr(candidate, "transition_out", None))
    )


def describe_state(candidate: Any) -> str:
    name = getattr(candidate, "name", None) if candidate is not None else None
    if _non_empty_str(name):
        return name
    return str(candidate)


def _require_async(candidate: Any, path_attr: str, operation: str) -> None:
    if candidate is None or not _non_empty_str(getattr(candidate, path_attr, None)):
        return
    method = getattr(candidate, operation, None)
    if callable(method) and not inspect.iscoroutinefunction(method):
        raise ConfigurationError(
            f"State {describe_state(candidate)} must define {operation} as an async function"
        )


def classify_state(candidate: Any) -> ClassifiedState:
    """Return the capability set ``candidate`` satisfies.

    Raises:
        ConfigurationError: if the candidate is neither routable nor normal,
            or declares ``render``/``transition_out`` as a plain function.
    """

    _require_async(candidate, "uri", "render")
    _require_async(candidate, "process_transition_uri", "transition_out")

    routable = is_routable_state(candidate)
    normal = is_normal_state(candidate)

    if routable and normal:
        kind = StateKind.BOTH
    elif routable:
        kind = StateKind.ROUTABLE_ONLY
    elif normal:
        kind = StateKind.NORMAL_ONLY
    else:
        raise ConfigurationError(f"Invalid state provided: {describe_state(candidate)}")

    return ClassifiedState(state=candidate, kind=kind)
