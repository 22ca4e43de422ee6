"""
Tests for the query service client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from cb_bootstrap.errors import QueryExecutionError
from cb_bootstrap.query_client import CouchbaseQueryClient


def make_response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.reason = "Error" if status_code >= 400 else "OK"
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def client():
    client = CouchbaseQueryClient(
        "http://localhost:8093", "Administrator", "password", retry_delay=0
    )
    client.session = MagicMock()
    return client


class TestCouchbaseQueryClient:
    """Tests for CouchbaseQueryClient class."""

    def test_execute_success(self, client):
        """Test a successful statement."""
        client.session.request.return_value = make_response(
            json_data={
                "status": "success",
                "results": [],
                "metrics": {"executionTime": "12ms", "resultCount": 0},
            }
        )

        result = client.execute("CREATE PRIMARY INDEX ON `orders`")

        assert result["status"] == "success"
        _, kwargs = client.session.request.call_args
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "http://localhost:8093/query/service"
        assert kwargs["data"] == {"statement": "CREATE PRIMARY INDEX ON `orders`"}

    def test_execute_reports_query_errors(self, client):
        """Test that query service errors carry the server's messages."""
        client.session.request.return_value = make_response(
            500,
            json_data={
                "status": "errors",
                "errors": [{"code": 4300, "msg": "The index #primary already exists."}],
            },
        )

        with pytest.raises(QueryExecutionError) as exc_info:
            client.execute("CREATE PRIMARY INDEX ON `orders`")

        assert "Query errors" in str(exc_info.value)
        assert "The index #primary already exists." in str(exc_info.value)

    def test_execute_fatal_status_with_http_ok(self, client):
        """Test that a non-success status fails even on HTTP 200."""
        client.session.request.return_value = make_response(
            200, json_data={"status": "fatal", "errors": [{"code": 5000, "msg": "boom"}]}
        )

        with pytest.raises(QueryExecutionError, match="boom"):
            client.execute("SELECT 1")

    def test_execute_non_json_error(self, client):
        """Test that a plain-text error response is reported."""
        client.session.request.return_value = make_response(401, text="Unauthorized")

        with pytest.raises(QueryExecutionError, match="HTTP 401: Unauthorized"):
            client.execute("SELECT 1")


class TestQueryRetry:
    """Statements are only re-sent when they never reached the server."""

    def test_read_timeout_not_resent(self, client):
        """Test that a statement whose response timed out is not sent again."""
        client.session.request.side_effect = [
            requests.ReadTimeout("read timed out"),
            make_response(json_data={"status": "success"}),
        ]

        with pytest.raises(requests.ReadTimeout):
            client.execute("CREATE INDEX idx_status ON orders(status)")

        assert client.session.request.call_count == 1

    def test_connect_timeout_retried(self, client):
        """Test that a statement is retried when the connection never opened."""
        client.session.request.side_effect = [
            requests.ConnectTimeout("connect timed out"),
            make_response(json_data={"status": "success"}),
        ]

        result = client.execute("CREATE INDEX idx_status ON orders(status)")

        assert result["status"] == "success"
        assert client.session.request.call_count == 2
