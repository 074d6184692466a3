"""Test fixtures and configuration."""

import logging
import os
import sys
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient

# Set ENVIRONMENT for pydantic settings before the app is imported
os.environ["ENVIRONMENT"] = "testing"

from cashflow_report.database import get_db  # noqa: E402
from cashflow_report.main import app  # noqa: E402


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


@pytest.fixture
def db_session() -> AsyncMock:
    """Stand-in AsyncSession; tests replace the store built on top of it."""
    return AsyncMock()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncIterator[AsyncClient]:
    """Async test client with the database dependency overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client_instance:
            yield client_instance
    finally:
        app.dependency_overrides.pop(get_db, None)
