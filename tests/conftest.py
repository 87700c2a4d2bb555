import os

os.environ["ENV"] = "test"

import pytest
from sqlalchemy.orm import sessionmaker

import callrelay.models  # noqa: F401
from callrelay.db import Base, build_engine

pytest_plugins = [
    "tests.fixtures.backend_fixtures",
    "tests.fixtures.call_fixtures",
    "tests.fixtures.service_fixtures",
]


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
