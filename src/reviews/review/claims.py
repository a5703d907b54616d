"""Purchase claims: serialize writers that compete for one purchase key.

Looking for an active review and inserting a new one are two steps. A
writer holds the claim on its purchase key from the eligibility check until
its unit of work has committed, so the next writer for the same key finds
the committed review and is refused with ``DuplicateReview``.

Claims live in this process. Across processes the unique ``active_key``
column of a relational provider rejects the second commit.
"""

import threading
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)


class PurchaseClaims:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._waiting: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str):
        """Hold the claim on ``key`` for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiting[key] = self._waiting.get(key, 0) + 1

        if lock.locked():
            logger.info("purchase_claim_contended", key=key)

        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._waiting[key] -= 1
                if not self._waiting[key]:
                    del self._waiting[key]
                    del self._locks[key]

    def held(self) -> int:
        """Number of keys currently claimed or waited on."""
        with self._guard:
            return len(self._locks)


claims = PurchaseClaims()
