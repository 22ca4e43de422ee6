"""
Pytest fixtures for Couchbase Bootstrap tests.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from cb_bootstrap.admin_client import BucketInfo
from cb_bootstrap.config import BucketConfig, StatementConfig
from cb_bootstrap.errors import BucketNotFoundError

TEST_CA_PEM = """\
-----BEGIN CERTIFICATE-----
MIIDBzCCAe+gAwIBAgIUPiV0RHFqCCbzinjp2wuDDt9lCTEwDQYJKoZIhvcNAQEL
BQAwEjEQMA4GA1UEAwwHdGVzdC1jYTAgFw0yNjEwMTkxODUyMDFaGA8yMTI2MDky
NTE4NTIwMVowEjEQMA4GA1UEAwwHdGVzdC1jYTCCASIwDQYJKoZIhvcNAQEBBQAD
ggEPADCCAQoCggEBAK/KQTLsCxumdfmaCO2yBXqV43fuYs3RA9n+1zHxsUEIRghx
6l/g3KbKomkJHqoJJl5zv1PhPLdeUucLxXk0t8ZrIVHJk6FaMhUN9CQln3a/kMN/
i7R3mLwA7MTINMNj4Ndg7/tKuj6q73kySX1QtthbC0Gzz7cgpI187Cpr0If+/n4C
gZy/p0MBuah9TM5pLE4GCkmF8NPOPDbA3t1TJTzTM43wLbgY81k8oyml9QRY7gWn
SHBzrS4s/5Y4wiLcJZXCjoxd2T4ndK77xrSfGxxXiX/CKn0SdYb9YDgZSTMAEFtJ
hK2AYgYUhJ+/eY5pyih2Ny1zzii+2PgMfPUoHXcCAwEAAaNTMFEwHQYDVR0OBBYE
FA0fmWVNLTOq1YOI9ZlMIVgsOcAQMB8GA1UdIwQYMBaAFA0fmWVNLTOq1YOI9ZlM
IVgsOcAQMA8GA1UdEwEB/wQFMAMBAf8wDQYJKoZIhvcNAQELBQADggEBAHX4Xs+n
X11r6FpybllkvO2pfgtHsZtPCjjp7RrWnk0YjPAwSZ5dzimbsEBSHPmYxOGtvMhN
ilLjV6ipBeE/fCNhhKBN9SP/XvDhgxlpk/DyLTruv7Fky6fkIAoypeBQxMQrXE/p
Yqhj30Tly3hY6RYOFFTaDcxdrqsq/UmYFvEJevevXX1IolAAJpzfADkH+x1W19z9
EMIRLOlBK9SaP88xfHnYQ8bEEDkV8875a/IeRSat5wfoRv0dFunqUoZeo9X0pWqG
mxiqIuYueDdi8QQ4sDDWv4wI5HJSs9RP/nASjFDB+xYT2bRD5TzOVF0WicxAR6jh
Od11dmpzcggU08o=
-----END CERTIFICATE-----
"""


@pytest.fixture
def ca_pem():
    """A self-signed CA certificate in PEM format."""
    return TEST_CA_PEM


@pytest.fixture
def mock_env_vars():
    """Set up mock environment variables for testing."""
    env_vars = {
        "CB_URL": "couchbase://localhost",
        "CB_USER": "Administrator",
        "CB_PASSWORD": "password",
        "CB_BUCKETS": "test-bucket-1,test-bucket-2",
    }
    with patch.dict(os.environ, env_vars):
        os.environ.pop("CB_BOOTSTRAP_CONFIG", None)
        yield env_vars


@pytest.fixture
def sample_config():
    """Sample bootstrap configuration for testing."""
    return {
        "connection_details": {
            "user": "Administrator",
            "password": "password",
            "url": "couchbase://localhost",
        },
        "buckets": [
            {
                "name": "orders",
                "ram_quota_mb": 512,
                "bucket_type": "couchbase",
                "num_replicas": 1,
                "flush_enabled": False,
                "storage_backend": "magma",
            },
            {
                "name": "sessions",
                "ram_quota_mb": 256,
                "bucket_type": "ephemeral",
                "num_replicas": 0,
                "flush_enabled": True,
            },
        ],
        "pre_ddl_statements": [
            {"query_name": "idx1", "n1ql": "CREATE PRIMARY INDEX ON `default`"},
        ],
        "post_ddl_statements": [
            {"query_name": "orders_idx", "n1ql": "CREATE INDEX idx_status ON orders(status)"},
        ],
    }


@pytest.fixture
def orders_bucket():
    """Declared 'orders' bucket on magma."""
    return BucketConfig(name="orders", ram_quota_mb=512, storage_backend="magma")


class FakeBucketManager:
    """In-memory stand-in for the cluster management API.

    Like the real cluster, it picks ``default_backend`` for couchbase
    buckets created without one and never changes a backend on update.
    """

    def __init__(self, buckets=None, default_backend="couchstore"):
        self.buckets = dict(buckets or {})
        self.default_backend = default_backend
        self.calls = []

    def get_bucket(self, name):
        self.calls.append(("get_bucket", name))
        if name not in self.buckets:
            raise BucketNotFoundError(name)
        return self.buckets[name]

    def create_bucket(self, bucket, conflict_resolution="seqno"):
        self.calls.append(("create_bucket", bucket, conflict_resolution))
        backend = bucket.storage_backend
        if not backend and bucket.bucket_type == "couchbase":
            backend = self.default_backend
        self.buckets[bucket.name] = _info_from_config(bucket, backend)

    def update_bucket(self, bucket):
        self.calls.append(("update_bucket", bucket))
        backend = self.buckets[bucket.name].storage_backend
        self.buckets[bucket.name] = _info_from_config(bucket, backend)

    def call_names(self):
        return [call[0] for call in self.calls]


def _info_from_config(bucket, storage_backend):
    return BucketInfo(
        name=bucket.name,
        bucket_type=bucket.bucket_type,
        storage_backend=storage_backend,
        ram_quota_mb=bucket.ram_quota_mb,
        num_replicas=bucket.num_replicas,
        flush_enabled=bucket.flush_enabled,
    )


@pytest.fixture
def bucket_manager():
    """Empty fake cluster."""
    return FakeBucketManager()


@pytest.fixture
def query_executor():
    """Query handle recording executed statements."""
    executor = MagicMock()
    executor.execute.return_value = {"status": "success", "results": []}
    return executor


def statements(*names):
    return [StatementConfig(name=name, statement=f"SELECT '{name}'") for name in names]


@pytest.fixture
def make_statements():
    """Build named statements in the given order."""
    return statements


@pytest.fixture
def make_bucket_manager():
    """Build a fake cluster holding the given existing buckets."""
    return FakeBucketManager
