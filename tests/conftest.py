"""Pytest configuration for availability engine tests."""

import pytest

from fluxos_availability import AvailabilityEngine
from fluxos_availability.mock import MockCalendarSource, owner_factory


@pytest.fixture(autouse=True)
def configure_structlog():
    """Configure structlog for testing."""
    import structlog

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@pytest.fixture
def owner():
    """Create a test calendar owner."""
    return owner_factory(grant_id="grant-test-0001")


@pytest.fixture
def mock_source() -> MockCalendarSource:
    """Create an in-memory calendar source."""
    return MockCalendarSource()


@pytest.fixture
def engine(mock_source: MockCalendarSource) -> AvailabilityEngine:
    """Create an engine backed by the in-memory source."""
    return AvailabilityEngine(mock_source, mock_source)
