"""Contract between the call-flow core and wherever sessions are persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol

SetResult = Literal["created", "updated"]


@dataclass
class SessionRecord:
    """Session data for one call plus the metadata the store keeps with it."""

    call_sid: str
    data: dict[str, Any] = field(default_factory=dict)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SessionStore(Protocol):
    """Atomic single-key get/set/destroy keyed by Twilio's CallSid.

    ``set`` takes an optional ``expected_version``: the version the caller
    loaded (0 when there was no record). If the stored version differs, the
    write is rejected with ``SessionConflictError`` instead of silently
    overwriting someone else's update.
    """

    async def get(self, call_sid: str) -> SessionRecord | None:
        ...

    async def set(
        self,
        call_sid: str,
        data: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> SetResult:
        ...

    async def destroy(self, call_sid: str) -> bool:
        ...
