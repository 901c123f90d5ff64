"""Test fixtures for notes client tests."""

from collections.abc import AsyncIterator, Iterator
from typing import Any

import httpx
import pytest
import respx

from notes_client.api_client import NotesApiClient

API_URL = "http://localhost:8000/api"


@pytest.fixture
def mock_api() -> Iterator[respx.MockRouter]:
    """Context manager for mocking API responses."""
    with respx.mock(base_url=API_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def api_client() -> AsyncIterator[NotesApiClient]:
    """NotesApiClient pointed at the mocked API with a bearer token."""
    async with NotesApiClient(httpx.AsyncClient(base_url=API_URL), token="nt_test_token") as client:
        yield client


@pytest.fixture
def sample_note() -> dict[str, Any]:
    """Sample note response data."""
    return {
        "id": 1,
        "title": "Groceries",
        "content": "eggs, milk, bread",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def sample_notes(sample_note: dict[str, Any]) -> list[dict[str, Any]]:
    """Sample list response data."""
    return [sample_note, {"id": 2, "title": "Ideas", "content": ""}]
