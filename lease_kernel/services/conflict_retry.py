"""
Bounded retry of read-decide-write operations that lose an optimistic race.

Every mutating lease operation is written as a function that loads the
current record, decides, and calls ``LeaseRecordStore.compare_and_swap``.
When the swap reports ``ConcurrencyConflictError`` the whole function runs
again against a fresh read, so the decision is always re-taken on the
latest state.  Domain errors raised while deciding propagate immediately.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from lease_kernel.exceptions import ConcurrencyConflictError
from lease_kernel.logging_config import get_logger

logger = get_logger("services.conflict_retry")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3


def run_with_conflict_retry(
    operation: Callable[[], T],
    *,
    lease_id: str,
    action: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> T:
    """Run ``operation`` up to ``max_attempts`` times while it conflicts.

    Raises:
        ConcurrencyConflictError: every attempt lost its race; ``attempts``
            carries the number of tries made.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last: ConcurrencyConflictError | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except ConcurrencyConflictError as exc:
            last = exc
            logger.warning(
                "lease_write_conflict_retry",
                extra={
                    "lease_id": lease_id,
                    "action": action,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "expected_version": exc.expected_version,
                },
            )

    assert last is not None
    logger.error(
        "lease_write_conflict_exhausted",
        extra={"lease_id": lease_id, "action": action, "attempts": max_attempts},
    )
    raise ConcurrencyConflictError(
        lease_id=lease_id,
        expected_version=last.expected_version,
        attempts=max_attempts,
    ) from last
