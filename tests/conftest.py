"""
Pytest Configuration and Shared Fixtures

Provides settings, storage, application and HTTP client fixtures plus PDF
payload factories for unit and integration tests.
"""

from pathlib import Path
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app import create_app
from config.settings import Settings, StorageSettings, reload_settings
from data.storage import LocalFileStorage

TEST_MAX_UPLOAD_BYTES = 4096


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test component interactions"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    """Create temporary storage directory."""
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir(parents=True, exist_ok=True)
    return storage_dir


@pytest.fixture
def test_settings(temp_storage_dir: Path) -> Settings:
    """Settings pointing at a temporary storage root with a small upload limit."""
    return Settings(
        environment="test",
        storage=StorageSettings(
            upload_dir=temp_storage_dir,
            max_upload_bytes=TEST_MAX_UPLOAD_BYTES,
        ),
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset cached settings after each test."""
    yield
    reload_settings()


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def storage(temp_storage_dir: Path) -> LocalFileStorage:
    return LocalFileStorage(temp_storage_dir)


@pytest.fixture
def pdf_bytes() -> Callable[[int], bytes]:
    """Factory for byte strings of an exact size that carry the PDF signature."""
    def _make(size: int = 2048) -> bytes:
        header = b"%PDF-1.4\n"
        if size <= len(header):
            return header[:size]
        return header + b"0" * (size - len(header))
    return _make


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(test_settings: Settings):
    """Create test FastAPI application."""
    return create_app(test_settings)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
