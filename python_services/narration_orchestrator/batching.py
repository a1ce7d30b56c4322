"""Small coordination primitives used by the gate engine and the trigger scheduler.

`BatchingGate` is the pending-accumulator / swap-capture / dispatch /
rollback-on-failure cycle. `SingleFlight` is the at-most-one-in-flight guard
with skip-if-unchanged de-duplication.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Generic, Hashable, Optional, TypeVar

from .state import SessionEpoch

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class BatchingGate(Generic[T]):
    """Accumulates immutable payload values and hands them out as whole batches.

    The payload type supplies three operations: an empty value (`factory`), a
    union (`merge(older, newer)`), and an emptiness test (`is_empty`).
    """

    def __init__(
        self,
        factory: Callable[[], T],
        merge: Callable[[T, T], T],
        is_empty: Callable[[T], bool],
        epoch: Optional[SessionEpoch] = None,
    ) -> None:
        self._factory = factory
        self._merge = merge
        self._is_empty = is_empty
        self._epoch = epoch or SessionEpoch()
        self._pending: T = factory()

    @property
    def pending(self) -> T:
        return self._pending

    def has_pending(self) -> bool:
        return not self._is_empty(self._pending)

    def add(self, update: Callable[[T], T]) -> None:
        """Replace the pending value with `update(pending)`."""
        self._pending = update(self._pending)

    def capture(self) -> Optional[T]:
        """Swap the pending value for an empty one and return what was pending."""
        if not self.has_pending():
            return None
        batch, self._pending = self._pending, self._factory()
        return batch

    def restore(self, batch: T) -> None:
        """Merge a failed batch back in front of whatever accumulated since capture."""
        self._pending = self._merge(batch, self._pending)

    def discard(self) -> None:
        self._pending = self._factory()

    async def flush(self, dispatch: Callable[[T], Awaitable[bool]]) -> Optional[bool]:
        """Capture and dispatch one batch; roll it back if dispatch fails.

        Returns None when there was nothing to send, otherwise whether the
        dispatch succeeded. A batch whose session was reset while in flight is
        dropped instead of restored.
        """
        batch = self.capture()
        if batch is None:
            return None

        token = self._epoch.token()
        try:
            ok = await dispatch(batch)
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Batch dispatch raised: {e}")
            ok = False

        if not ok:
            if self._epoch.is_current(token):
                self.restore(batch)
                logger.warning("↩️ Batch dispatch failed; context restored for the next trigger")
            else:
                logger.info("Session reset during dispatch; failed batch discarded")
        return ok


class SingleFlight(Generic[K]):
    """At most one call in flight; a call for an unchanged key is skipped, not queued."""

    def __init__(self) -> None:
        self.in_flight = False
        self.last_key: Optional[K] = None

    def try_acquire(self, key: K) -> bool:
        if self.in_flight or key == self.last_key:
            return False
        self.in_flight = True
        self.last_key = key
        return True

    def release(self) -> None:
        self.in_flight = False

    def reset(self) -> None:
        self.in_flight = False
        self.last_key = None
