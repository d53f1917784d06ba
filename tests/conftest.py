"""Pytest configuration for recruiting portal tests."""

import os

# Settings are read on import; point them at throwaway resources first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RETRY_BASE_DELAY", "0")
os.environ.setdefault("AUTOSAVE_DEBOUNCE_SECONDS", "0.05")

import pytest
from fastapi.testclient import TestClient

# Configure Hypothesis before importing test modules
from tests.property_based.config import PropertyTestConfig
PropertyTestConfig.configure_hypothesis()

from portal_backend.core.database import get_db
from portal_backend.main import create_app
from tests import factories


@pytest.fixture
def engine():
    """In-memory database with the full schema, one per test."""
    engine = factories.make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Database session for a test."""
    session = factories.make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher():
    """Event publisher that records what services emit."""
    return factories.recording_publisher()


@pytest.fixture
def retry_manager():
    return factories.fast_retry_manager()


@pytest.fixture
def organization(db):
    return factories.create_organization(db)


@pytest.fixture
def cycle(db, organization):
    return factories.create_cycle(db, organization)


@pytest.fixture
def client(db):
    """HTTP client whose requests share the test's session."""
    app = create_app(initialize_database=False)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


# Pytest markers for organizing tests
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "property_test: mark test as a property-based test"
    )
    config.addinivalue_line(
        "markers", "database: mark test as requiring database access"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test location."""
    for item in items:
        # Add property_test marker to tests in property_based directory
        if "property_based" in str(item.fspath):
            item.add_marker(pytest.mark.property_test)
        elif "test_api" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
