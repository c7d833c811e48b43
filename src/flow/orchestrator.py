"""Per-request coordination between the session store and the flow stages."""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any

from fastapi import Request, Response

from flow.assets import build_asset_url_resolver
from flow.compiler import BindingKind, RouteBinding
from flow.errors import FlowError, MissingCallIdentifierError, SessionConflictError, StoreError
from flow.executor import TransitionExecutor
from flow.renderer import Renderer
from flow.states import AssetUrlResolver, RawInput, RequestContext
from session.store import SessionRecord, SessionStore

LOGGER = logging.getLogger(__name__)


class RequestOrchestrator:
    """Load the session, run the flow stages, save the session.

    Requests for the same CallSid are serialised by a per-call lock inside
    this process. Across processes, saves carry the version that was loaded
    so a stale write fails with ``SessionConflictError`` instead of silently
    discarding the other request's update.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        public_base_url: str | None = None,
        asset_version: str | None = None,
        executor: TransitionExecutor | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self._store = store
        self._public_base_url = public_base_url
        self._asset_version = asset_version
        self._executor = executor or TransitionExecutor()
        self._renderer = renderer or Renderer()
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def handle(self, binding: RouteBinding, request: Request) -> Response:
        form = await request.form()
        raw_input = {key: str(value) for key, value in form.items()}

        call_sid = raw_input.get("CallSid", "").strip()
        if not call_sid:
            raise MissingCallIdentifierError()

        context = RequestContext(
            call_sid=call_sid,
            protocol=request.url.scheme,
            host=request.headers.get("host") or request.url.netloc,
            query=dict(request.query_params),
        )
        asset_url = build_asset_url_resolver(
            self._public_base_url or context.base_url,
            self._asset_version,
        )

        if binding.kind is BindingKind.TRANSITION:
            twiml = await self.run_transition(binding.state, context, raw_input, asset_url)
        else:
            twiml = await self.run_direct(binding.state, context, raw_input, asset_url)

        # Twilio expects application/xml
        return Response(content=twiml, media_type="application/xml")

    async def run_direct(
        self,
        state: Any,
        context: RequestContext,
        raw_input: RawInput,
        asset_url: AssetUrlResolver,
    ) -> str:
        async with self._lock_for(context.call_sid):
            record = await self._load(context.call_sid)
            session = record.data if record else {}
            twiml = await self._renderer.render(state, context, session, asset_url, raw_input)

            # First contact for this call: start an empty session.
            if record is None:
                try:
                    await self._save(context.call_sid, {}, expected_version=0)
                except SessionConflictError:
                    LOGGER.debug("Session %s was created by a concurrent request", context.call_sid)
            return twiml

    async def run_transition(
        self,
        state: Any,
        context: RequestContext,
        raw_input: RawInput,
        asset_url: AssetUrlResolver,
    ) -> str:
        async with self._lock_for(context.call_sid):
            record = await self._load(context.call_sid)
            session = record.data if record else {}
            version = record.version if record else 0

            transition = await self._executor.execute(state, session, raw_input)
            # The input was consumed by the transition; never render with it again.
            twiml = await self._renderer.render(
                transition.next_state, context, transition.session, asset_url, None
            )

            await self._save(context.call_sid, transition.session, expected_version=version)
            LOGGER.info(
                "Call %s moved %s -> %s", context.call_sid, state.name, transition.next_state.name
            )
            return twiml

    def _lock_for(self, call_sid: str) -> asyncio.Lock:
        lock = self._locks.get(call_sid)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[call_sid] = lock
        return lock

    async def _load(self, call_sid: str) -> SessionRecord | None:
        try:
            return await self._store.get(call_sid)
        except FlowError:
            raise
        except Exception as exc:
            raise StoreError(f"Loading session {call_sid} failed: {exc}") from exc

    async def _save(self, call_sid: str, data: dict[str, Any], *, expected_version: int) -> None:
        try:
            result = await self._store.set(call_sid, data, expected_version=expected_version)
        except FlowError:
            raise
        except Exception as exc:
            raise StoreError(f"Saving session {call_sid} failed: {exc}") from exc

        if result not in ("created", "updated"):
            raise StoreError(f"Session store did not confirm saving {call_sid}")
