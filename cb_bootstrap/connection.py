"""
Cluster connection bootstrap.

Turns declared connection details into live management and query clients
sharing one HTTP session.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import requests

from .admin_client import CouchbaseAdminClient
from .config import ConnectionConfig
from .errors import ClusterConnectionError
from .query_client import CouchbaseQueryClient

logger = logging.getLogger(__name__)

MANAGEMENT_PORT = 8091
MANAGEMENT_TLS_PORT = 18091
QUERY_PORT = 8093
QUERY_TLS_PORT = 18093


@dataclass
class ClusterEndpoints:
    """HTTP endpoints of the services the bootstrap talks to."""

    management: str
    query: str


def resolve_endpoints(url: str, query_url: Optional[str] = None) -> ClusterEndpoints:
    """
    Derive the management and query endpoints from a cluster URL.

    ``couchbase://`` maps to plain HTTP on the default service ports,
    ``couchbases://`` to HTTPS on the TLS ports. An ``http(s)://`` URL is
    used as the management endpoint as given. Only the first host of a
    comma-separated host list is used.

    Args:
        url: Cluster URL from the configuration
        query_url: Explicit query service endpoint, overrides derivation

    Returns:
        Resolved endpoints

    Raises:
        ClusterConnectionError: If the URL scheme is not supported
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    host = parts.netloc.split("@")[-1].split(",")[0]
    hostname = urlsplit(f"//{host}").hostname or ""

    if not hostname:
        raise ClusterConnectionError(f"No host in cluster URL {url!r}")
    if ":" in hostname:
        hostname = f"[{hostname}]"

    if scheme in ("couchbase", "couchbases"):
        secure = scheme == "couchbases"
        management = _service_url(hostname, secure, MANAGEMENT_PORT, MANAGEMENT_TLS_PORT)
    elif scheme in ("http", "https"):
        secure = scheme == "https"
        management = f"{scheme}://{host}"
    else:
        raise ClusterConnectionError(
            f"Unsupported cluster URL scheme {parts.scheme!r} in {url!r}"
        )

    query = (query_url or "").rstrip("/") or _service_url(
        hostname, secure, QUERY_PORT, QUERY_TLS_PORT
    )
    return ClusterEndpoints(management=management, query=query)


def _service_url(hostname: str, secure: bool, port: int, tls_port: int) -> str:
    if secure:
        return f"https://{hostname}:{tls_port}"
    return f"http://{hostname}:{port}"


class ClusterConnection:
    """Management and query handles for one cluster, closed together."""

    def __init__(
        self,
        endpoints: ClusterEndpoints,
        admin: CouchbaseAdminClient,
        query: CouchbaseQueryClient,
    ):
        self.endpoints = endpoints
        self.admin = admin
        self.query = query

    def close(self) -> None:
        """Close the shared HTTP session."""
        self.admin.close()
        logger.debug(f"Closed connection to {self.endpoints.management}")

    def __enter__(self) -> "ClusterConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def connect(
    connection: ConnectionConfig,
    wait_for_ready: bool = False,
    ready_timeout: int = 120,
) -> ClusterConnection:
    """
    Open a connection to the cluster and verify the credentials.

    Args:
        connection: Connection configuration
        wait_for_ready: Keep polling an unreachable cluster until it answers
        ready_timeout: Seconds to wait when wait_for_ready is set

    Returns:
        A live ClusterConnection; the caller must close it

    Raises:
        ClusterConnectionError: If the cluster is unreachable, rejects the
            credentials or fails TLS verification
    """
    endpoints = resolve_endpoints(connection.url, connection.query_url)
    session = requests.Session()
    ca = connection.ca_certificate
    verify = ca.name if ca.enabled else True

    admin = CouchbaseAdminClient(
        endpoints.management,
        connection.user,
        connection.password,
        timeout=connection.timeout,
        verify=verify,
        session=session,
    )
    query = CouchbaseQueryClient(
        endpoints.query,
        connection.user,
        connection.password,
        timeout=connection.timeout,
        verify=verify,
        session=session,
    )
    cluster = ClusterConnection(endpoints, admin, query)

    logger.info(f"Connecting to Couchbase cluster at {endpoints.management} as {connection.user}")
    try:
        if wait_for_ready:
            admin.wait_for_ready(timeout=ready_timeout)
        else:
            admin.health_check()
    except requests.HTTPError as e:
        cluster.close()
        status = e.response.status_code if e.response is not None else None
        if status in (401, 403):
            raise ClusterConnectionError(
                f"Authentication failed for user {connection.user} at {endpoints.management}"
            ) from e
        raise ClusterConnectionError(f"Failed to connect to Couchbase cluster: {e}") from e
    except (requests.RequestException, TimeoutError) as e:
        cluster.close()
        raise ClusterConnectionError(f"Failed to connect to Couchbase cluster: {e}") from e

    logger.info("Connected to Couchbase cluster")
    return cluster
