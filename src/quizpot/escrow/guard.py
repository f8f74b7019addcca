"""
Concurrency control for escrow mutations.

Every mutating operation runs inside MutationGuard.hold(): one operation at
a time across all sessions, held through ledger transfers and state writes.
Other threads wait; a nested call on the owning thread (a ledger callback
re-entering the engine) is rejected with ReentrantCallError instead of
deadlocking or interleaving.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from quizpot.core.errors import ReentrantCallError
from quizpot.core.logging import get_logger

logger = get_logger(__name__)


class MutationGuard:
    """Process-wide mutual exclusion with reentry detection."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None
        self._operation: str | None = None

    @property
    def active_operation(self) -> str | None:
        return self._operation

    @property
    def is_held(self) -> bool:
        return self._owner is not None

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        """
        Hold the guard for the duration of `operation`.

        Raises:
            ReentrantCallError: If the current thread already holds the guard
        """
        if self._owner == threading.get_ident():
            logger.warning(
                "guard.reentry_rejected",
                operation=operation,
                active_operation=self._operation,
            )
            raise ReentrantCallError(operation, self._operation)

        with self._lock:
            self._owner = threading.get_ident()
            self._operation = operation
            try:
                yield
            finally:
                self._owner = None
                self._operation = None
