"""
Bootstrap Configuration

Declarative description of a Couchbase cluster bootstrap: connection details,
buckets to provision and the N1QL statements to run around provisioning.
"""

import json
import logging
import os
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

BUCKET_TYPES = ("couchbase", "ephemeral", "memcached")
STORAGE_BACKENDS = ("", "couchstore", "magma")


@dataclass
class CaCertificateConfig:
    """CA certificate used to verify the cluster's TLS endpoints."""

    enabled: bool = False
    name: str = ""
    content: str = ""


@dataclass
class ConnectionConfig:
    """How to reach and authenticate against the cluster."""

    url: str
    user: str
    password: str = field(default="", repr=False)
    ca_certificate: CaCertificateConfig = field(default_factory=CaCertificateConfig)
    query_url: Optional[str] = None
    timeout: int = 30


@dataclass
class BucketConfig:
    """Configuration for a bucket to be created or updated."""

    name: str
    ram_quota_mb: int = 100
    bucket_type: str = "couchbase"
    num_replicas: int = 1
    flush_enabled: bool = False
    storage_backend: str = ""


@dataclass
class StatementConfig:
    """A named N1QL statement."""

    name: str
    statement: str


@dataclass
class BootstrapConfig:
    """Complete bootstrap configuration."""

    connection: ConnectionConfig
    buckets: List[BucketConfig] = field(default_factory=list)
    pre_statements: List[StatementConfig] = field(default_factory=list)
    post_statements: List[StatementConfig] = field(default_factory=list)


def load_config_from_file(config_path: str) -> BootstrapConfig:
    """
    Load bootstrap configuration from a YAML or JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed BootstrapConfig object

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        with open(config_path, "r") as f:
            if config_path.endswith((".yml", ".yaml")):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigurationError(f"Cannot parse config file {config_path}: {e}") from e

    return parse_config(data)


def load_config_from_env() -> BootstrapConfig:
    """
    Load bootstrap configuration from environment variables.

    Environment variables:
        CB_BOOTSTRAP_CONFIG: JSON string with full configuration
        CB_URL: Cluster endpoint
        CB_USER: Administrator user name
        CB_PASSWORD: Administrator password
        CB_BUCKETS: Comma-separated list of bucket names

    Returns:
        Parsed BootstrapConfig object
    """
    config_json = os.environ.get("CB_BOOTSTRAP_CONFIG")
    if config_json:
        try:
            data = json.loads(config_json)
        except ValueError as e:
            raise ConfigurationError(f"CB_BOOTSTRAP_CONFIG is not valid JSON: {e}") from e
        return parse_config(data)

    buckets = []
    for name in os.environ.get("CB_BUCKETS", "").split(","):
        name = name.strip()
        if name:
            buckets.append({"name": name})

    return parse_config(
        {
            "connection_details": {
                "url": os.environ.get("CB_URL", ""),
                "user": os.environ.get("CB_USER", ""),
                "password": os.environ.get("CB_PASSWORD", ""),
            },
            "buckets": buckets,
        }
    )


def _section(data: Dict[str, Any], key: str, kind: type, default):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        expected = "a mapping" if kind is dict else "a list"
        raise ConfigurationError(f"{key} must be {expected}, got {type(value).__name__}")
    return value


def _parse_statements(data: Dict[str, Any], key: str) -> List[StatementConfig]:
    statements = []
    for item in _section(data, key, list, []):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Entries of {key} must be mappings, got {item!r}")
        statements.append(
            StatementConfig(
                name=str(item.get("query_name") or ""),
                statement=str(item.get("n1ql") or ""),
            )
        )
    return statements


def parse_config(data: Optional[Dict[str, Any]]) -> BootstrapConfig:
    """
    Parse a configuration dictionary into a BootstrapConfig object.

    Args:
        data: Configuration dictionary

    Returns:
        Validated BootstrapConfig object

    Raises:
        ConfigurationError: If required fields are missing or invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping")

    details = _section(data, "connection_details", dict, {})
    ca_data = _section(details, "ca_certificate", dict, {})
    connection = ConnectionConfig(
        url=str(details.get("url") or ""),
        user=str(details.get("user") or ""),
        password=str(details.get("password") or ""),
        ca_certificate=CaCertificateConfig(
            enabled=ca_data.get("enabled", False),
            name=str(ca_data.get("name") or ""),
            content=str(ca_data.get("content") or ""),
        ),
        query_url=details.get("query_url"),
        timeout=details.get("timeout", 30),
    )

    buckets = []
    for bucket_data in _section(data, "buckets", list, []):
        if isinstance(bucket_data, str):
            buckets.append(BucketConfig(name=bucket_data))
            continue
        if not isinstance(bucket_data, dict) or "name" not in bucket_data:
            raise ConfigurationError(f"Bucket entry must have a name: {bucket_data!r}")
        buckets.append(
            BucketConfig(
                name=bucket_data["name"],
                ram_quota_mb=bucket_data.get("ram_quota_mb", 100),
                bucket_type=bucket_data.get("bucket_type") or "couchbase",
                num_replicas=bucket_data.get("num_replicas", 1),
                flush_enabled=bucket_data.get("flush_enabled", False),
                storage_backend=bucket_data.get("storage_backend") or "",
            )
        )

    config = BootstrapConfig(
        connection=connection,
        buckets=buckets,
        pre_statements=_parse_statements(data, "pre_ddl_statements"),
        post_statements=_parse_statements(data, "post_ddl_statements"),
    )
    validate_config(config)
    return config


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: BootstrapConfig) -> None:
    """
    Check the configuration invariants before any cluster is contacted.

    Raises:
        ConfigurationError: On the first violated invariant
    """
    connection = config.connection
    if not connection.url:
        raise ConfigurationError("connection_details.url is required")
    if not connection.user:
        raise ConfigurationError("connection_details.user is required")
    if not _is_int(connection.timeout) or connection.timeout <= 0:
        raise ConfigurationError(f"connection_details.timeout must be a positive integer, got {connection.timeout!r}")

    if not isinstance(connection.ca_certificate.enabled, bool):
        raise ConfigurationError(
            f"connection_details.ca_certificate.enabled must be true or false, got {connection.ca_certificate.enabled!r}"
        )
    if connection.ca_certificate.enabled:
        validate_ca_certificate(connection.ca_certificate)

    seen = set()
    for bucket in config.buckets:
        if not isinstance(bucket.name, str) or not bucket.name:
            raise ConfigurationError(f"Bucket name must be a non-empty string, got {bucket.name!r}")
        if bucket.name in seen:
            raise ConfigurationError(f"Bucket '{bucket.name}' is declared more than once")
        seen.add(bucket.name)

        if not _is_int(bucket.ram_quota_mb) or bucket.ram_quota_mb <= 0:
            raise ConfigurationError(
                f"Bucket '{bucket.name}': ram_quota_mb must be a positive integer, got {bucket.ram_quota_mb!r}"
            )
        if not _is_int(bucket.num_replicas) or bucket.num_replicas < 0:
            raise ConfigurationError(
                f"Bucket '{bucket.name}': num_replicas must be a non-negative integer, got {bucket.num_replicas!r}"
            )
        if not isinstance(bucket.flush_enabled, bool):
            raise ConfigurationError(
                f"Bucket '{bucket.name}': flush_enabled must be true or false, got {bucket.flush_enabled!r}"
            )
        if bucket.bucket_type not in BUCKET_TYPES:
            raise ConfigurationError(
                f"Bucket '{bucket.name}': bucket_type must be one of {', '.join(BUCKET_TYPES)}, "
                f"got {bucket.bucket_type!r}"
            )
        if bucket.storage_backend not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"Bucket '{bucket.name}': storage_backend must be couchstore or magma, "
                f"got {bucket.storage_backend!r}"
            )

    for key, statements in (
        ("pre_ddl_statements", config.pre_statements),
        ("post_ddl_statements", config.post_statements),
    ):
        for statement in statements:
            if not statement.name:
                raise ConfigurationError(f"Every entry of {key} needs a query_name")
            if not statement.statement.strip():
                raise ConfigurationError(f"Query '{statement.name}' in {key} has an empty n1ql body")


def validate_ca_certificate(ca: CaCertificateConfig) -> None:
    """
    Make sure an enabled CA certificate has a target path and parses as PEM.

    Raises:
        ConfigurationError: If the certificate is missing or unparsable
    """
    if not ca.content.strip():
        raise ConfigurationError("CA certificate is enabled but its content is empty")
    if not ca.name:
        raise ConfigurationError("CA certificate is enabled but no file name is given")
    try:
        ssl.create_default_context(cadata=ca.content)
    except (ssl.SSLError, ValueError) as e:
        raise ConfigurationError(f"Failed to parse CA certificate: {e}") from e


def write_ca_certificate(config: BootstrapConfig) -> Optional[str]:
    """
    Persist the embedded CA certificate where the connection layer expects it.

    Args:
        config: Bootstrap configuration

    Returns:
        Path of the written certificate, or None if CA is disabled
    """
    ca = config.connection.ca_certificate
    if not ca.enabled:
        return None

    try:
        with open(ca.name, "w") as f:
            f.write(ca.content)
    except OSError as e:
        raise ConfigurationError(f"Failed to write CA certificate: {e}") from e

    logger.info(f"Wrote CA certificate to {ca.name}")
    return ca.name
