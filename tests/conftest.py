"""Shared test configuration and fixtures for Paper Intake tests"""

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from paper_intake.logging_config import setup_logging
from paper_intake.main import create_app
from paper_intake.models.database import create_db_engine
from paper_intake.services.migration_manager import MigrationManager
from paper_intake.services.registration_store import RegistrationStore
from tests.config import LEGACY_REGISTRATIONS_DDL, VALID_SUBMISSION, test_config

setup_logging(test_config["log_level"])
logger = logging.getLogger(__name__)


@pytest.fixture
def engine(tmp_path):
    """Engine over a fresh SQLite file, with no tables yet"""
    database_url = f"sqlite:///{tmp_path / 'data' / 'registrations.sqlite'}"
    engine = create_db_engine(database_url, echo=False)

    yield engine

    engine.dispose()


@pytest.fixture
def migrated_engine(engine):
    """Engine whose store has been brought up to the latest schema"""
    MigrationManager(engine).ensure_latest_schema()
    return engine


@pytest.fixture
def legacy_engine(engine):
    """Engine over a store created by a release without receipt columns"""
    with engine.begin() as connection:
        connection.execute(text(LEGACY_REGISTRATIONS_DDL))
    return engine


@pytest.fixture
def registration_store(migrated_engine):
    """Create a RegistrationStore over a migrated database"""
    return RegistrationStore(migrated_engine)


@pytest.fixture
def valid_submission():
    """A fresh copy of a minimal valid submission"""
    return dict(VALID_SUBMISSION)


@pytest.fixture
def app(engine):
    """Application wired to the test engine; migrations run on client start"""
    return create_app(engine=engine)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running"""
    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def fetch_row(engine):
    """Read a registrations row straight from the database, bypassing the store"""

    def _fetch_row(registration_id: str):
        with engine.connect() as connection:
            row = (
                connection.execute(
                    text("SELECT * FROM registrations WHERE id = :id"),
                    {"id": registration_id},
                )
                .mappings()
                .first()
            )
        return dict(row) if row is not None else None

    return _fetch_row
