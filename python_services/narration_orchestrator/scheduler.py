"""Coalesces exploratory-generation triggers into debounced, batched dispatches.

Accepted slides, answered audience questions and presenter prompts all ask for
"something interesting next". Rather than one generation call per event, the
triggers accumulate in a pending context that is dispatched at most once per
interval:

- passive triggers (accepted slides, audience answers) wait for the interval
  to elapse; a burst inside one interval collapses into a single dispatch;
- presenter prompts force an immediate dispatch, since the presenter is waiting;
- a dispatch swaps the pending context for an empty one before the network
  call, so triggers arriving mid-call land in the next batch;
- a failed dispatch merges its batch back into the pending context and does
  not advance the interval, so the next trigger retries it.

While paused, triggers are still recorded but nothing is dispatched.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Set, Union

from shared.models import Slide

from .batching import BatchingGate
from .state import PendingExploratoryContext, PresenterPrompt, SessionEpoch, TriggerKind

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 20.0

Dispatcher = Callable[[PendingExploratoryContext], Awaitable[bool]]
TriggerPayload = Union[Slide, PresenterPrompt]


class ExploratoryTriggerScheduler:
    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        epoch: Optional[SessionEpoch] = None,
    ) -> None:
        self._dispatcher = dispatcher
        self.interval = interval
        self._clock = clock
        self.epoch = epoch or SessionEpoch()
        self._batch: BatchingGate[PendingExploratoryContext] = BatchingGate(
            PendingExploratoryContext,
            PendingExploratoryContext.merge,
            PendingExploratoryContext.is_empty,
            epoch=self.epoch,
        )
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self.paused = False
        self.dispatch_count = 0
        self.last_dispatch = self._clock()

    # ------------------------------------------------------------------
    # State -------------------------------------------------------------
    # ------------------------------------------------------------------

    @property
    def pending(self) -> PendingExploratoryContext:
        return self._batch.pending

    @property
    def has_scheduled_dispatch(self) -> bool:
        return self._timer is not None

    @property
    def has_running_dispatches(self) -> bool:
        return bool(self._tasks)

    def restart_interval(self) -> None:
        """Start a fresh interval from now, as if a dispatch had just happened."""
        self.last_dispatch = self._clock()

    def reset(self) -> None:
        """Cancel the timer, discard (not flush) pending context, reopen the interval."""
        self._cancel_timer()
        self._batch.discard()
        self.paused = False
        self.dispatch_count = 0
        self.restart_interval()

    # ------------------------------------------------------------------
    # Triggers ----------------------------------------------------------
    # ------------------------------------------------------------------

    def record(self, kind: TriggerKind, payload: TriggerPayload) -> None:
        """Add a trigger to the pending context without asking for a dispatch."""
        self._batch.add(lambda pending: pending.with_trigger(kind, payload))
        logger.debug(f"Queued {kind.value} trigger")

    async def enqueue(self, kind: TriggerKind, payload: TriggerPayload, *, force_now: bool = False) -> bool:
        """Record a trigger, then ask for a dispatch. Returns whether one happened and succeeded."""
        self.record(kind, payload)
        return await self.request_dispatch(force_now=force_now)

    async def request_dispatch(self, force_now: bool = False) -> bool:
        if self.paused:
            logger.debug("Generation paused; trigger kept for later")
            return False
        if not self._batch.has_pending():
            return False

        elapsed = self._clock() - self.last_dispatch
        if not force_now and elapsed < self.interval:
            self._schedule(self.interval - elapsed)
            return False

        self._cancel_timer()
        token = self.epoch.token()
        self.dispatch_count += 1
        logger.info(f"🚀 Dispatching exploratory batch #{self.dispatch_count}")
        ok = await self._batch.flush(self._dispatcher)
        if ok and self.epoch.is_current(token):
            self.last_dispatch = self._clock()
        return bool(ok)

    # ------------------------------------------------------------------
    # Pause / resume ----------------------------------------------------
    # ------------------------------------------------------------------

    def pause(self) -> None:
        self._cancel_timer()
        self.paused = True
        logger.info("⏸️ Exploratory generation paused")

    def unpause(self, leftover_transcript: str = "") -> bool:
        """Clear the paused flag and fold leftover narration in as a prompt. Returns whether anything is pending."""
        self.paused = False
        logger.info("▶️ Exploratory generation resumed")
        text = leftover_transcript.strip()
        if text:
            self.record(TriggerKind.PRESENTER_PROMPT, PresenterPrompt(prompt=text))
        return self._batch.has_pending()

    async def resume(self, leftover_transcript: str = "") -> bool:
        """Unpause and force a dispatch if anything is pending."""
        if not self.unpause(leftover_transcript):
            return False
        return await self.request_dispatch(force_now=True)

    # ------------------------------------------------------------------
    # Timer -------------------------------------------------------------
    # ------------------------------------------------------------------

    def _schedule(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_timer)
        logger.debug(f"⏳ Exploratory dispatch deferred by {delay:.1f}s")

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.request_dispatch(force_now=True))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait_idle(self) -> None:
        """Wait for timer-fired dispatches that are already running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
