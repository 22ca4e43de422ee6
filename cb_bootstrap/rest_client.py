"""
Couchbase REST transport

Shared HTTP plumbing for the cluster management and query service clients.
"""

import logging
import time
from typing import Any, Dict, Optional, Union
from urllib.parse import urljoin

import requests

logger = logging.getLogger(__name__)


class RestClient:
    """Basic-auth REST client with retries on transport failures."""

    def __init__(
        self,
        endpoint: str,
        user: str,
        password: str,
        timeout: int = 30,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        verify: Union[bool, str] = True,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the REST client.

        Args:
            endpoint: Base URL of the service (e.g., http://couchbase:8091)
            user: User name for HTTP basic authentication
            password: Password for HTTP basic authentication
            timeout: Request timeout in seconds
            retry_attempts: Number of attempts for requests that fail in transport
            retry_delay: Delay between retries in seconds
            verify: TLS verification flag or path to a CA bundle
            session: Session to share with other clients
        """
        self.endpoint = endpoint.rstrip("/")
        self.user = user
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.auth = (user, password)
        self.session.verify = verify
        self.session.headers.update({"Accept": "application/json"})

    def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Make a request, retrying transport failures that are safe to repeat.

        GET requests are retried on any connection error or timeout. Other
        methods are retried only when the connection could not be opened,
        since the server may already have acted on a request whose response
        was lost.

        HTTP error statuses are returned to the caller, which decides what
        they mean for its API.

        Args:
            method: HTTP method (GET, POST, ...)
            path: API path relative to the endpoint
            data: Form-encoded request body
            params: Query parameters

        Returns:
            The HTTP response

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        url = urljoin(self.endpoint + "/", path.lstrip("/"))

        for attempt in range(self.retry_attempts):
            try:
                return self.session.request(
                    method=method,
                    url=url,
                    data=data,
                    params=params,
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                retryable = method.upper() == "GET" or isinstance(e, requests.ConnectTimeout)
                if retryable and attempt < self.retry_attempts - 1:
                    logger.warning(
                        f"Request to {url} failed (attempt {attempt + 1}): {e}"
                    )
                    time.sleep(self.retry_delay * (attempt + 1))
                else:
                    logger.error(f"Request to {url} failed after {attempt + 1} attempt(s)")
                    raise

    @staticmethod
    def error_detail(response: requests.Response) -> str:
        """Best-effort human readable body of an error response."""
        try:
            body = response.json()
        except ValueError:
            return response.text.strip() or response.reason or str(response.status_code)

        if isinstance(body, dict):
            if "errors" in body:
                errors = body["errors"]
                if isinstance(errors, list):
                    return "; ".join(
                        e.get("msg", str(e)) if isinstance(e, dict) else str(e) for e in errors
                    )
                if isinstance(errors, dict):
                    return "; ".join(f"{k}: {v}" for k, v in errors.items())
                return str(errors)
            if "message" in body:
                return str(body["message"])
        return str(body)

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()
