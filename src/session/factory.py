"""Factory returning the configured session store implementation."""

from __future__ import annotations

from config.settings import Settings
from db.base import build_engine
from session.memory_store import InMemorySessionStore
from session.sql_store import SqlSessionStore
from session.store import SessionStore


def build_session_store(settings: Settings) -> SessionStore:
    """Instantiate the configured session backend."""

    if settings.session_backend == "memory":
        return InMemorySessionStore()
    if settings.session_backend == "sql":
        return SqlSessionStore(build_engine(settings.database_url))
    raise ValueError(f"Unsupported session_backend: {settings.session_backend}")
