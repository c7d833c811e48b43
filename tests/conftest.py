from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from config.settings import Settings  # noqa: E402
from flow.states import RequestContext  # noqa: E402
from session.memory_store import InMemorySessionStore  # noqa: E402


@pytest.fixture(scope="session")
def create_app(tmp_path_factory: pytest.TempPathFactory):
    tmp_dir = tmp_path_factory.mktemp("runtime")

    # Must be set before importing main, which builds the default app at import time.
    os.environ["ENVIRONMENT"] = "local"
    os.environ["SESSION_BACKEND"] = "memory"
    os.environ["DATA_DIR"] = str(tmp_dir)
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{(tmp_dir / 'callflow_test.db').as_posix()}"

    from config.settings import get_settings

    get_settings.cache_clear()
    sys.modules.pop("main", None)
    main = importlib.import_module("main")
    return main.create_app


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        session_backend="memory",
        data_dir=tmp_path,
        database_url=f"sqlite+aiosqlite:///{(tmp_path / 'callflow.db').as_posix()}",
    )


@pytest.fixture()
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def context() -> RequestContext:
    return RequestContext(call_sid="CA123", protocol="https", host="calls.example.com")
