"""
Exceptions raised while bootstrapping a Couchbase cluster.
"""


class BootstrapError(Exception):
    """Base class for all bootstrap failures."""


class ConfigurationError(BootstrapError):
    """The configuration is malformed or incomplete."""


class ClusterConnectionError(BootstrapError):
    """The cluster could not be reached or refused the credentials."""


class BucketNotFoundError(BootstrapError):
    """The requested bucket does not exist on the cluster."""

    def __init__(self, bucket: str):
        super().__init__(f"Bucket '{bucket}' not found")
        self.bucket = bucket


class BucketReconcileError(BootstrapError):
    """Looking up, creating or updating a bucket failed."""

    def __init__(self, bucket: str, message: str):
        super().__init__(message)
        self.bucket = bucket


class BucketRejectedError(BootstrapError):
    """An existing bucket cannot be converged to its declaration."""

    def __init__(self, bucket: str, existing_backend: str, declared_backend: str):
        super().__init__(
            f"cannot update bucket {bucket} because storage backend differs: "
            f"existing={existing_backend}, new={declared_backend}"
        )
        self.bucket = bucket
        self.existing_backend = existing_backend
        self.declared_backend = declared_backend


class QueryExecutionError(BootstrapError):
    """The query service reported an error for a statement."""


class StatementExecutionError(BootstrapError):
    """A named statement failed; the rest of its batch was skipped."""

    def __init__(self, name: str, cause: Exception):
        super().__init__(f"Error executing query '{name}': {cause}")
        self.name = name
        self.cause = cause


class BootstrapStageError(BootstrapError):
    """A bootstrap stage failed and the run was aborted."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"Stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause
