"""
Couchbase Cluster Bootstrap

Provides functionality for declaratively bootstrapping a Couchbase cluster:
N1QL statements before provisioning, bucket creation and update, and N1QL
statements after provisioning.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .config import (
    BootstrapConfig,
    ConnectionConfig,
    load_config_from_env,
    load_config_from_file,
    write_ca_certificate,
)
from .connection import ClusterConnection, connect
from .errors import BootstrapStageError
from .reconciler import reconcile_bucket
from .statements import run_statements

logger = logging.getLogger(__name__)

STAGE_CONNECT = "connect"
STAGE_PRE_STATEMENTS = "pre_statements"
STAGE_BUCKETS = "buckets"
STAGE_POST_STATEMENTS = "post_statements"

Connector = Callable[[ConnectionConfig], ClusterConnection]


class CouchbaseBootstrap:
    """Bootstrap a Couchbase cluster with declarative configuration."""

    def __init__(self, connector: Optional[Connector] = None):
        """
        Initialize the bootstrap manager.

        Args:
            connector: Callable opening a ClusterConnection, defaults to connect()
        """
        self.connector = connector or connect

    def bootstrap(self, config: BootstrapConfig) -> Dict[str, Any]:
        """
        Bootstrap the cluster with the given configuration.

        Stages run strictly in order and the first failing stage aborts the
        run. The connection is closed on every exit path.

        Args:
            config: Bootstrap configuration

        Returns:
            Dictionary with executed statements and bucket outcomes

        Raises:
            BootstrapStageError: Wrapping the error of the failed stage
        """
        result = {
            "pre_statements": [],
            "buckets": [],
            "post_statements": [],
        }

        try:
            cluster = self.connector(config.connection)
        except Exception as e:
            raise BootstrapStageError(STAGE_CONNECT, e) from e

        with cluster:
            result["pre_statements"] = self._run_stage(
                STAGE_PRE_STATEMENTS,
                lambda: run_statements(cluster.query, config.pre_statements),
            )

            logger.info(f"Reconciling {len(config.buckets)} bucket(s)")
            for bucket_config in config.buckets:
                outcome = self._run_stage(
                    STAGE_BUCKETS,
                    lambda: reconcile_bucket(cluster.admin, bucket_config),
                )
                result["buckets"].append(
                    {"name": outcome.bucket, "outcome": outcome.outcome.value}
                )

            result["post_statements"] = self._run_stage(
                STAGE_POST_STATEMENTS,
                lambda: run_statements(cluster.query, config.post_statements),
            )

        return result

    @staticmethod
    def _run_stage(stage: str, action: Callable[[], Any]) -> Any:
        try:
            return action()
        except Exception as e:
            raise BootstrapStageError(stage, e) from e


def bootstrap_config(
    config: BootstrapConfig,
    wait_for_ready: bool = True,
    ready_timeout: int = 120,
) -> Dict[str, Any]:
    """
    Persist the CA certificate and bootstrap the cluster.

    Args:
        config: Validated bootstrap configuration
        wait_for_ready: Wait for the cluster to answer before bootstrapping
        ready_timeout: Seconds to wait for the cluster

    Returns:
        Bootstrap result
    """
    write_ca_certificate(config)

    def connector(connection: ConnectionConfig) -> ClusterConnection:
        return connect(connection, wait_for_ready=wait_for_ready, ready_timeout=ready_timeout)

    return CouchbaseBootstrap(connector).bootstrap(config)


def bootstrap_from_config_file(
    config_path: str,
    wait_for_ready: bool = True,
    ready_timeout: int = 120,
) -> Dict[str, Any]:
    """
    Bootstrap a Couchbase cluster from a configuration file.

    Args:
        config_path: Path to configuration file
        wait_for_ready: Wait for cluster to be ready
        ready_timeout: Seconds to wait for the cluster

    Returns:
        Bootstrap result
    """
    config = load_config_from_file(config_path)
    return bootstrap_config(config, wait_for_ready, ready_timeout)


def bootstrap_from_env(
    wait_for_ready: bool = True,
    ready_timeout: int = 120,
) -> Dict[str, Any]:
    """
    Bootstrap a Couchbase cluster from environment variables.

    Environment variables:
        CB_BOOTSTRAP_CONFIG: JSON configuration
        CB_URL, CB_USER, CB_PASSWORD: Connection details
        CB_BUCKETS: Comma-separated bucket names

    Returns:
        Bootstrap result
    """
    config = load_config_from_env()
    return bootstrap_config(config, wait_for_ready, ready_timeout)
