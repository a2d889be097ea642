import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import rewards.models  # noqa: F401  (registers tables on Base.metadata)
from rewards.core.config import Settings
from rewards.db.base import Base
from rewards.db.session import build_sessionmaker


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        airtable_api_key="key",
        loops_api_key="loops",
        sessions_secret="test-sessions-secret-0123",
        admin_key="admin-key",
        slack_client_id="client-id",
        slack_client_secret="client-secret",
    )
