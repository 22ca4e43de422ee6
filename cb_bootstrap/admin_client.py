"""
Couchbase Admin API Client

Provides a Python interface to the Couchbase cluster management REST API
for bucket lookup, creation and update.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import quote

import requests

from .config import BucketConfig
from .errors import BucketNotFoundError
from .rest_client import RestClient

logger = logging.getLogger(__name__)

BUCKETS_PATH = "/pools/default/buckets"

# The management API reports couchbase buckets by their legacy name.
_BUCKET_TYPE_ALIASES = {"membase": "couchbase"}


@dataclass
class BucketInfo:
    """Settings of a bucket as reported by the cluster."""

    name: str
    bucket_type: str
    storage_backend: str
    ram_quota_mb: int
    num_replicas: int
    flush_enabled: bool

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BucketInfo":
        quota = data.get("quota") or {}
        raw_ram = quota.get("rawRAM", quota.get("ram", 0)) or 0
        bucket_type = data.get("bucketType", "")
        return cls(
            name=data.get("name", ""),
            bucket_type=_BUCKET_TYPE_ALIASES.get(bucket_type, bucket_type),
            storage_backend=data.get("storageBackend") or "",
            ram_quota_mb=int(raw_ram) // (1024 * 1024),
            num_replicas=data.get("replicaNumber", 0),
            flush_enabled="flush" in (data.get("controllers") or {}),
        )


class CouchbaseAdminClient(RestClient):
    """Client for the Couchbase cluster management API."""

    def _check(self, response: requests.Response, action: str) -> None:
        if response.ok:
            return
        detail = self.error_detail(response)
        raise requests.HTTPError(
            f"Failed to {action}: HTTP {response.status_code}: {detail}",
            response=response,
        )

    def health_check(self) -> Dict[str, Any]:
        """
        Fetch the cluster pool details, which requires valid credentials.

        Returns:
            Cluster pool information
        """
        response = self._request("GET", "/pools/default")
        self._check(response, "read cluster details")
        return response.json()

    def get_bucket(self, name: str) -> BucketInfo:
        """
        Get information about a specific bucket.

        Args:
            name: The bucket name

        Returns:
            Bucket information

        Raises:
            BucketNotFoundError: If the cluster has no bucket with this name
            requests.RequestException: On any other failure
        """
        response = self._request("GET", f"{BUCKETS_PATH}/{quote(name, safe='')}")
        if response.status_code == 404:
            raise BucketNotFoundError(name)
        self._check(response, f"get bucket {name}")
        return BucketInfo.from_api(response.json())

    def create_bucket(self, bucket: BucketConfig, conflict_resolution: str = "seqno") -> None:
        """
        Create a new bucket with all declared settings.

        Args:
            bucket: Bucket configuration
            conflict_resolution: Conflict resolution type for the new bucket
        """
        data = {
            "name": bucket.name,
            "bucketType": bucket.bucket_type,
            "ramQuota": bucket.ram_quota_mb,
            "flushEnabled": int(bucket.flush_enabled),
        }
        if bucket.bucket_type != "memcached":
            data["replicaNumber"] = bucket.num_replicas
            data["conflictResolutionType"] = conflict_resolution
        if bucket.storage_backend:
            data["storageBackend"] = bucket.storage_backend

        logger.debug(f"Creating bucket {bucket.name} with {data}")
        response = self._request("POST", BUCKETS_PATH, data=data)
        self._check(response, f"create bucket {bucket.name}")

    def update_bucket(self, bucket: BucketConfig) -> None:
        """
        Update the mutable settings of an existing bucket.

        Args:
            bucket: Bucket configuration
        """
        data = {
            "ramQuota": bucket.ram_quota_mb,
            "flushEnabled": int(bucket.flush_enabled),
        }
        if bucket.bucket_type != "memcached":
            data["replicaNumber"] = bucket.num_replicas

        logger.debug(f"Updating bucket {bucket.name} with {data}")
        response = self._request("POST", f"{BUCKETS_PATH}/{quote(bucket.name, safe='')}", data=data)
        self._check(response, f"update bucket {bucket.name}")

    def wait_for_ready(
        self, timeout: int = 120, check_interval: float = 2.0
    ) -> bool:
        """
        Wait for the Couchbase cluster to answer the management API.

        Args:
            timeout: Maximum time to wait in seconds
            check_interval: Time between health checks

        Returns:
            True once the cluster is ready

        Raises:
            TimeoutError: If the cluster doesn't become ready within timeout
        """
        start_time = time.time()
        while time.time() - start_time < timeout:
            try:
                if self.health_check():
                    logger.info("Couchbase cluster is ready")
                    return True
            except requests.RequestException as e:
                # Bad credentials won't fix themselves.
                response = getattr(e, "response", None)
                if response is not None and response.status_code in (401, 403):
                    raise
                logger.debug(f"Health check failed: {e}")
            time.sleep(check_interval)

        raise TimeoutError(f"Couchbase cluster not ready after {timeout} seconds")
