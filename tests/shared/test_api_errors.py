"""Tests for API error parsing."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from shared.api_errors import parse_http_error

_RAISE_VALUE_ERROR = object()  # Sentinel to indicate json() should raise


def _make_http_error(status_code: int, json_body: Any = _RAISE_VALUE_ERROR) -> MagicMock:
    """Create a mock HTTPStatusError for testing."""
    mock_response = MagicMock()
    mock_response.status_code = status_code
    if json_body is _RAISE_VALUE_ERROR:
        mock_response.json.side_effect = ValueError("No JSON")
    else:
        mock_response.json.return_value = json_body

    mock_error = MagicMock()
    mock_error.response = mock_response
    return mock_error


class TestParseHttpError:
    """Tests for parse_http_error function."""

    def test__parse_http_error__401_returns_auth_category(self) -> None:
        error = _make_http_error(401, {"detail": "Invalid token"})
        result = parse_http_error(error)

        assert result.category == "auth"
        assert result.message == "Invalid or expired token"

    def test__parse_http_error__403_returns_forbidden_category(self) -> None:
        error = _make_http_error(403, {"detail": "Access denied"})
        result = parse_http_error(error)

        assert result.category == "forbidden"
        assert "access denied" in result.message.lower()

    def test__parse_http_error__404_with_entity_id(self) -> None:
        """Test 404 names the note that wasn't found."""
        error = _make_http_error(404, {"detail": "Not found"})
        result = parse_http_error(error, entity_id="42")

        assert result.category == "not_found"
        assert result.message == "Note '42' not found"

    def test__parse_http_error__404_without_entity_id(self) -> None:
        error = _make_http_error(404, {"detail": "Not found"})
        result = parse_http_error(error)

        assert result.category == "not_found"
        assert result.message == "Note not found"

    def test__parse_http_error__404_without_entity_type(self) -> None:
        error = _make_http_error(404)
        result = parse_http_error(error, entity_type="", entity_id="abc")

        assert result.message == "'abc' not found"

    def test__parse_http_error__400_validation_dict_detail(self) -> None:
        """Test 400 with dict detail extracts message."""
        error = _make_http_error(400, {"detail": {"message": "Title is required"}})
        result = parse_http_error(error)

        assert result.category == "validation"
        assert result.message == "Title is required"

    def test__parse_http_error__422_fastapi_validation_list(self) -> None:
        """Test 422 with FastAPI-style list of validation errors."""
        error = _make_http_error(422, {
            "detail": [
                {"loc": ["body", "title"], "msg": "String should have at most 100 characters"},
                {"loc": ["body", "content"], "msg": "field required"},
            ],
        })
        result = parse_http_error(error)

        assert result.category == "validation"
        assert result.message == (
            "title: String should have at most 100 characters; content: field required"
        )

    @pytest.mark.parametrize(
        ("json_body", "expected"),
        [
            ({"detail": "Bad request"}, "Bad request"),
            (_RAISE_VALUE_ERROR, "Validation error"),
            ("Just a string", "Validation error"),
            ({"detail": []}, "Validation error"),
        ],
    )
    def test__parse_http_error__400_body_shapes(self, json_body: Any, expected: str) -> None:
        """Unusual 400 bodies still produce a validation message."""
        result = parse_http_error(_make_http_error(400, json_body))

        assert result.category == "validation"
        assert result.message == expected

    def test__parse_http_error__500_returns_internal(self) -> None:
        error = _make_http_error(500, {"detail": "Internal server error"})
        result = parse_http_error(error)

        assert result.category == "internal"
        assert result.message == "API error 500: Internal server error"

    def test__parse_http_error__502_without_json(self) -> None:
        result = parse_http_error(_make_http_error(502))

        assert result.category == "internal"
        assert result.message == "API error 502"
