"""Decides whether accumulated narration is worth a slide."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

from shared.models import OriginalIdea, Slide

from .batching import SingleFlight
from .contracts import AcceptedSlideEntry, GateRequest, SlideContent
from .errors import ServiceError
from .services import SlideServices
from .state import SessionEpoch
from .transcript import TranscriptAccumulator

logger = logging.getLogger(__name__)

STATUS_ANALYZING = "Analyzing..."
STATUS_CREATING = "Creating slide..."
STATUS_WAITING = "Waiting for more content..."
STATUS_FAILED = "Gate check failed"
STATUS_GENERATION_FAILED = "Slide generation failed"


class GateOutcome(str, Enum):
    SKIPPED = "skipped"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAILED = "failed"


def gate_threshold(accepted_count: int, first_slide: int = 20, next_slide: int = 30) -> int:
    """Transcript length a buffer must exceed before the gate is worth asking."""
    return first_slide if accepted_count == 0 else next_slide


class GateDecisionEngine:
    """Idle -> Evaluating -> Idle. Concurrent requests are dropped, not queued."""

    def __init__(
        self,
        services: SlideServices,
        transcript: TranscriptAccumulator,
        generate: Callable[[SlideContent], Awaitable[Optional[Slide]]],
        *,
        epoch: Optional[SessionEpoch] = None,
    ) -> None:
        self.services = services
        self.transcript = transcript
        self._generate = generate
        self.epoch = epoch or SessionEpoch()
        self.prior_ideas: List[OriginalIdea] = []
        self.status = ""
        self._flight: SingleFlight[str] = SingleFlight()

    @property
    def is_evaluating(self) -> bool:
        return self._flight.in_flight

    def reset(self) -> None:
        self.prior_ideas = []
        self.status = ""
        self._flight.reset()

    async def evaluate(
        self,
        transcript: str,
        prior_ideas: Optional[Sequence[OriginalIdea]] = None,
        accepted_slides: Sequence[AcceptedSlideEntry] = (),
        is_first_slide: bool = False,
    ) -> GateOutcome:
        if not self._flight.try_acquire(transcript):
            logger.debug("Gate busy or transcript unchanged; skipping")
            return GateOutcome.SKIPPED

        token = self.epoch.token()
        self.status = STATUS_ANALYZING
        try:
            response = await self.services.check_gate(
                GateRequest(
                    transcript=transcript,
                    prior_ideas=list(self.prior_ideas if prior_ideas is None else prior_ideas),
                    accepted_slides=list(accepted_slides),
                    is_first_slide=is_first_slide,
                )
            )
        except ServiceError as e:
            logger.error(f"❌ Gate check failed: {e}")
            if self.epoch.is_current(token):
                self.status = STATUS_FAILED
                self._flight.release()
            return GateOutcome.FAILED

        if not self.epoch.is_current(token):
            logger.info("Gate answered after a session reset; ignoring")
            return GateOutcome.SKIPPED

        try:
            if response.should_create_slide and response.slide_content:
                content = response.slide_content
                logger.info(f"✅ Gate accepted: {content.headline}")
                self.status = STATUS_CREATING
                self.prior_ideas.append(
                    OriginalIdea(title=content.headline, content=content.source_transcript, category=content.category)
                )
                self.transcript.clear()
                try:
                    await self._generate(content)
                except ServiceError as e:
                    logger.error(f"❌ Failed to generate slide: {e}")
                    if self.epoch.is_current(token):
                        self.status = STATUS_GENERATION_FAILED
                    return GateOutcome.ACCEPTED
                if self.epoch.is_current(token):
                    self.status = ""
                return GateOutcome.ACCEPTED

            self.status = response.reason or STATUS_WAITING
            logger.debug(f"Gate declined: {self.status}")
            return GateOutcome.REJECTED
        finally:
            if self.epoch.is_current(token):
                self._flight.release()
