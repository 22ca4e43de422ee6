"""
Couchbase Query Service Client

Executes N1QL statements through the query service REST API.
"""

import logging
from typing import Any, Dict

from .errors import QueryExecutionError
from .rest_client import RestClient

logger = logging.getLogger(__name__)

QUERY_PATH = "/query/service"


class CouchbaseQueryClient(RestClient):
    """Client for the Couchbase query service."""

    def execute(self, statement: str) -> Dict[str, Any]:
        """
        Execute a single N1QL statement.

        Args:
            statement: N1QL statement text

        Returns:
            The decoded query response

        Raises:
            QueryExecutionError: If the query service reports an error
            requests.RequestException: If the service cannot be reached
        """
        response = self._request("POST", QUERY_PATH, data={"statement": statement})

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if response.ok:
                raise QueryExecutionError(
                    f"Unexpected query service response: {response.text[:200]}"
                )
            raise QueryExecutionError(
                f"HTTP {response.status_code}: {self.error_detail(response)}"
            )

        status = body.get("status")
        if not response.ok or status != "success":
            raise QueryExecutionError(
                f"Query {status or 'failed'} (HTTP {response.status_code}): {self.error_detail(response)}",
            )

        metrics = body.get("metrics") or {}
        logger.debug(
            f"Query finished in {metrics.get('executionTime', '?')} "
            f"with {metrics.get('resultCount', 0)} results"
        )
        return body
