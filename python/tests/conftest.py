"""Pytest configuration and fixtures for Quotary tests.

Test isolation strategy:
- DATABASE_URL defaults to a temporary SQLite file; point it at PostgreSQL
  to also run the multi-connection concurrency tests
- Tests that use db_session get a transaction that is rolled back afterwards
  (service commits release savepoints)
- Tests needing multiple connections use direct_db and register cleanup
- Route tests use app_client, which shares db_session with the app and
  authenticates with MockJwtVerifier tokens
"""

import os
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path
from uuid import UUID

_TEST_DB_DIR = tempfile.mkdtemp(prefix="quotary-tests-")

# Defaults must be in place before any quotary module reads settings
os.environ.setdefault("QUOTARY_ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB_DIR}/quotary_test.db")
os.environ.setdefault("AUTH_JWKS_URL", "http://localhost:9999/.well-known/jwks.json")
os.environ.setdefault("AUTH_ISSUER", "test-issuer")
os.environ.setdefault("AUTH_AUDIENCES", "test-audience")

# Repo root on sys.path for top-level packages (apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from quotary.app import create_app
from quotary.config import clear_settings_cache
from quotary.db.models import Base
from tests.helpers import build_test_app, create_test_user_id
from tests.support.test_verifier import MockJwtVerifier
from tests.utils.db import DirectSessionManager, TestDatabaseManager, create_test_engine


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    """Engine shared by the session; the schema is created once."""
    engine = create_test_engine(os.environ["DATABASE_URL"])
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Session whose work is rolled back after the test.

    Not for tests that need several independent connections; use direct_db.
    """
    with TestDatabaseManager(engine) as session:
        yield session


@pytest.fixture
def direct_db(engine: Engine) -> Generator[DirectSessionManager, None, None]:
    """Committed sessions; registered rows are deleted after the test."""
    manager = DirectSessionManager(engine)
    yield manager
    manager.cleanup()


@pytest.fixture
def test_verifier() -> MockJwtVerifier:
    return MockJwtVerifier()


@pytest.fixture
def app_client(
    db_session: Session, test_verifier: MockJwtVerifier
) -> Generator[TestClient, None, None]:
    """Authenticating client; pass auth_headers(user_id) per request."""
    with TestClient(build_test_app(db_session, test_verifier)) as client:
        yield client


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Client without auth middleware, for public endpoints."""
    with TestClient(create_app(skip_auth_middleware=True)) as client:
        yield client


@pytest.fixture
def test_user_id() -> UUID:
    return create_test_user_id()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()
