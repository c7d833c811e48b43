"""Entry point for the Twilio call-flow service."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import twilio_signature_guard
from api.routes import health_router, router as api_router
from config.settings import Settings, get_settings
from flow.compiler import build_flow_router, compile_routes
from flow.errors import FlowError
from flow.orchestrator import RequestOrchestrator
from ivr.flow import build_states
from session.factory import build_session_store
from session.sql_store import SqlSessionStore
from session.store import SessionStore

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.state.session_store
    if isinstance(store, SqlSessionStore):
        await store.create_schema(auto_create=app.state.settings.auto_create_db_schema)
    yield
    if isinstance(store, SqlSessionStore):
        await store.dispose()


async def flow_error_handler(request: Request, exc: FlowError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc)
    else:
        LOGGER.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(
    states: Iterable[Any],
    *,
    settings: Settings | None = None,
    store: SessionStore | None = None,
) -> FastAPI:
    """Compile ``states`` into a ready-to-serve app.

    Raises:
        ConfigurationError: if any state is invalid or two states share a path.
            Nothing is served in that case.
    """

    settings = settings or get_settings()
    bindings = compile_routes(states)

    store = store or build_session_store(settings)
    orchestrator = RequestOrchestrator(
        store,
        public_base_url=settings.public_base_url,
        asset_version=settings.asset_version,
    )

    dependencies = []
    if settings.validate_twilio_requests:
        dependencies.append(Depends(twilio_signature_guard(settings)))

    app = FastAPI(
        title="Twilio Call Flow",
        description="Drives phone calls through a compiled state machine of TwiML states.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_store = store
    app.state.orchestrator = orchestrator
    app.state.route_bindings = bindings

    app.add_exception_handler(FlowError, flow_error_handler)
    app.include_router(health_router)
    app.include_router(api_router, dependencies=dependencies)
    app.include_router(build_flow_router(bindings, orchestrator, dependencies=dependencies))
    return app


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app(build_states(), settings=settings)


def run() -> None:
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
