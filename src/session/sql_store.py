"""Session store backed by the ``call_sessions`` table."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from db.base import build_session_factory, init_db
from db.models import CallSession
from flow.errors import SessionConflictError, StoreError
from session.store import SessionRecord, SetResult


class SqlSessionStore:
    """Async repository implementing the session store contract."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = build_session_factory(engine)

    async def create_schema(self, *, auto_create: bool = True) -> None:
        await init_db(self._engine, auto_create=auto_create)

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def get(self, call_sid: str) -> SessionRecord | None:
        try:
            async with self._session_factory() as session:
                row = await self._get_row(session, call_sid)
        except SQLAlchemyError as exc:
            raise StoreError(f"Loading session {call_sid} failed: {exc}") from exc

        if row is None:
            return None
        return SessionRecord(
            call_sid=row.call_sid,
            data=dict(row.data or {}),
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def set(
        self,
        call_sid: str,
        data: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> SetResult:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                if expected_version is None:
                    result = await self._upsert(session, call_sid, data, now)
                else:
                    result = await self._compare_and_set(session, call_sid, data, expected_version, now)
                await session.commit()
                return result
        except SessionConflictError:
            raise
        except SQLAlchemyError as exc:
            raise StoreError(f"Saving session {call_sid} failed: {exc}") from exc

    async def destroy(self, call_sid: str) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(CallSession).where(CallSession.call_sid == call_sid))
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Deleting session {call_sid} failed: {exc}") from exc
        return result.rowcount > 0

    async def _get_row(self, session: AsyncSession, call_sid: str) -> CallSession | None:
        query = select(CallSession).where(CallSession.call_sid == call_sid)
        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def _upsert(
        self,
        session: AsyncSession,
        call_sid: str,
        data: dict[str, Any],
        now: datetime,
    ) -> SetResult:
        row = await self._get_row(session, call_sid)
        if row is None:
            session.add(CallSession(call_sid=call_sid, data=dict(data), version=1, created_at=now, updated_at=now))
            return "created"

        row.data = dict(data)
        row.version += 1
        row.updated_at = now
        return "updated"

    async def _compare_and_set(
        self,
        session: AsyncSession,
        call_sid: str,
        data: dict[str, Any],
        expected_version: int,
        now: datetime,
    ) -> SetResult:
        if expected_version == 0:
            session.add(CallSession(call_sid=call_sid, data=dict(data), version=1, created_at=now, updated_at=now))
            try:
                await session.flush()
            except IntegrityError as exc:
                raise SessionConflictError(f"Session {call_sid} was created concurrently") from exc
            return "created"

        stmt = (
            update(CallSession)
            .where(CallSession.call_sid == call_sid, CallSession.version == expected_version)
            .values(data=dict(data), version=CallSession.version + 1, updated_at=now)
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            raise SessionConflictError(
                f"Session {call_sid} is no longer at version {expected_version}"
            )
        return "updated"
