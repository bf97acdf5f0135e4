"""Transaction boundary for order-mutating commands.

Stock decrements, stock restorations and order-number allocation are the
shared resources contended by concurrent requests. Each command handler runs
inside its own Protean unit of work; this module serialises those units of
work through a process-wide gate so that the read-check-decrement sequence of
one request can never interleave with another's, and retries optimistic
concurrency conflicts raised by the storage layer a bounded number of times.
"""

import threading

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.errors import TransactionAborted
from ordering.shared import settings

# Re-entrant so a handler may issue a nested command through execute()
_gate = threading.RLock()


def execute(command, attempts=None):
    """Process ``command`` synchronously as one atomic, serialised transaction.

    Domain errors propagate untouched (the unit of work has already been rolled
    back). Version conflicts are retried; once ``attempts`` are exhausted the
    failure is surfaced as a retryable ``TransactionAborted``.
    """
    attempts = attempts or settings.TRANSACTION_ATTEMPTS
    command_name = command.__class__.__name__

    for attempt in range(1, attempts + 1):
        try:
            with _gate:
                return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError as exc:
            logger.warning(
                "transaction_conflict",
                command=command_name,
                attempt=attempt,
                max_attempts=attempts,
                error=str(exc),
            )

    logger.error("transaction_aborted", command=command_name, attempts=attempts)
    raise TransactionAborted(attempts=attempts)
