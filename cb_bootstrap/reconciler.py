"""
Bucket reconciliation.

Converges one declared bucket onto the cluster: create it when missing,
update its mutable settings when present, refuse when the storage backend
would have to change.
"""

import enum
import logging
from dataclasses import dataclass

from .config import BucketConfig
from .errors import BucketNotFoundError, BucketReconcileError, BucketRejectedError

logger = logging.getLogger(__name__)

# New buckets always use sequence-number based conflict resolution.
CONFLICT_RESOLUTION = "seqno"


class Outcome(enum.Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class ReconciliationOutcome:
    """What reconciling a bucket did."""

    bucket: str
    outcome: Outcome

    @property
    def created(self) -> bool:
        return self.outcome is Outcome.CREATED


def reconcile_bucket(manager, bucket: BucketConfig) -> ReconciliationOutcome:
    """
    Create or update a bucket so that it matches its declaration.

    ``manager`` is anything offering ``get_bucket``, ``create_bucket`` and
    ``update_bucket`` like CouchbaseAdminClient.

    Args:
        manager: Bucket management handle
        bucket: Declared bucket settings

    Returns:
        The reconciliation outcome

    Raises:
        BucketRejectedError: If the existing bucket uses another declared storage backend
        BucketReconcileError: If looking up, creating or updating fails
    """
    try:
        existing = manager.get_bucket(bucket.name)
    except BucketNotFoundError:
        try:
            manager.create_bucket(bucket, conflict_resolution=CONFLICT_RESOLUTION)
        except Exception as e:
            raise BucketReconcileError(
                bucket.name, f"failed to create bucket {bucket.name}: {e}"
            ) from e
        logger.info(f"Bucket '{bucket.name}' created successfully!")
        return ReconciliationOutcome(bucket.name, Outcome.CREATED)
    except Exception as e:
        raise BucketReconcileError(
            bucket.name, f"failed to check bucket existence for {bucket.name}: {e}"
        ) from e

    # An undeclared backend leaves the choice to the server.
    if bucket.storage_backend and existing.storage_backend != bucket.storage_backend:
        raise BucketRejectedError(bucket.name, existing.storage_backend, bucket.storage_backend)

    try:
        manager.update_bucket(bucket)
    except Exception as e:
        raise BucketReconcileError(
            bucket.name, f"failed to update bucket {bucket.name}: {e}"
        ) from e
    logger.info(f"Bucket '{bucket.name}' updated successfully!")
    return ReconciliationOutcome(bucket.name, Outcome.UPDATED)
