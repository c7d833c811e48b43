from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any

from flow.errors import SessionConflictError
from session.store import SessionRecord, SetResult


class InMemorySessionStore:
    """In-memory session store.

    Note: This is a single-process store. For multi-worker deployments, use
    the SQL store.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._records: dict[str, SessionRecord] = {}

    async def get(self, call_sid: str) -> SessionRecord | None:
        async with self._lock:
            record = self._records.get(call_sid)
            return copy.deepcopy(record) if record else None

    async def set(
        self,
        call_sid: str,
        data: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> SetResult:
        now = datetime.now(timezone.utc)
        async with self._lock:
            current = self._records.get(call_sid)
            current_version = current.version if current else 0
            if expected_version is not None and expected_version != current_version:
                raise SessionConflictError(
                    f"Session {call_sid} is at version {current_version}, expected {expected_version}"
                )

            if current is None:
                self._records[call_sid] = SessionRecord(
                    call_sid=call_sid,
                    data=copy.deepcopy(data),
                    version=1,
                    created_at=now,
                    updated_at=now,
                )
                return "created"

            current.data = copy.deepcopy(data)
            current.version += 1
            current.updated_at = now
            return "updated"

    async def destroy(self, call_sid: str) -> bool:
        async with self._lock:
            return self._records.pop(call_sid, None) is not None
