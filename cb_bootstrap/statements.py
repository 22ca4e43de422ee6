"""
Ordered execution of named N1QL statements.
"""

import logging
from typing import List, Sequence

from .config import StatementConfig
from .errors import StatementExecutionError

logger = logging.getLogger(__name__)


def run_statements(executor, statements: Sequence[StatementConfig]) -> List[str]:
    """
    Execute statements one after another, stopping at the first failure.

    ``executor`` needs an ``execute(statement)`` method; its result is
    ignored.

    Args:
        executor: Query execution handle, e.g. CouchbaseQueryClient
        statements: Statements in execution order

    Returns:
        Names of the executed statements

    Raises:
        StatementExecutionError: For the first statement that fails
    """
    executed = []
    for statement in statements:
        try:
            executor.execute(statement.statement)
        except Exception as e:
            logger.error(f"Error executing query '{statement.name}': {e}")
            raise StatementExecutionError(statement.name, e) from e
        logger.info(f"Successfully executed query '{statement.name}'")
        executed.append(statement.name)
    return executed
