"""
Shared fixtures: an in-memory database per test and a seeded user.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobcopilot.database import Base
from jobcopilot import models  # noqa: F401  registers the tables
from jobcopilot.store import AgentCapability, Store

USER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    """A user who knows Java and AWS."""
    return Store(db, USER_ID, AgentCapability.USER).create_user("jane@example.com", "Jane Doe", ["Java", "AWS"])


@pytest.fixture
def user_store(db, user):
    return Store(db, USER_ID, AgentCapability.USER)
