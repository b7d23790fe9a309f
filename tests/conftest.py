"""Global test fixtures and utilities for care-tracker tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime, timezone

from tests.fakes import InMemoryTracking


# ============================================================================
# Clock Fixtures
# ============================================================================

FIXED_NOW = datetime(2024, 3, 4, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    """Timestamp returned by the pinned clock"""
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    """Clock pinned to fixed_now"""
    return lambda: fixed_now


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db():
    """Mock Database handle (services never touch it when queries are patched)"""
    db = MagicMock()
    db.run_query = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value=0)
    return db


@pytest.fixture
def mock_db_cursor():
    """Mock psycopg cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    cursor.rowcount = 0
    return cursor


@pytest.fixture
def store():
    """
    In-memory tracking tables patched over the query module of every service
    """
    tracking = InMemoryTracking()
    with patch('care_tracker.services.track_service.queries', tracking), \
            patch('care_tracker.services.subscription_service.queries', tracking), \
            patch('care_tracker.services.custom_goal_service.queries', tracking):
        yield tracking


# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest.fixture
def patient_id(store):
    """Patient registered in the in-memory store"""
    return store.add_patient("user-1")


@pytest.fixture
def health_category(store):
    """Active, non-custom category"""
    return store.add_category("Health")


@pytest.fixture
def custom_category(store):
    """Reserved category for custom goals"""
    return store.add_category("Custom")
