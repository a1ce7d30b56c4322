"""One live presentation: wiring, event intake and the start/stop/pause/resume lifecycle.

`LiveSession` owns every stateful component of the orchestration core and is
the only thing the presentation surface talks to. Calls that reach the
network are fire-and-forget: they spawn a task on the running loop and return
it, so an event stream is never blocked waiting for a collaborator.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterable, Callable, Coroutine, Iterable, Optional, Set

from shared.config import Settings, get_settings
from shared.models import Slide, SlideSource, WireModel

from .audience import AudienceDesk, QuestionResult
from .channels import ChannelStore, ChannelType, Direction
from .contracts import SlideContent
from .curator import SlotCurator
from .errors import ServiceError
from .gate import GateDecisionEngine, gate_threshold
from .ledger import AcceptedSlideLedger
from .pipeline import GenerationPipelineAdapter
from .scheduler import ExploratoryTriggerScheduler
from .services import SlideServices
from .state import (
    ChannelView,
    PresentationMode,
    PresenterPrompt,
    SessionEpoch,
    SessionStatus,
    TriggerKind,
)
from .transcript import TranscriptAccumulator

logger = logging.getLogger(__name__)

IDEA_TITLE_WORDS = 6


class TranscriptEvent(WireModel):
    """One segment from the transcription transport."""

    text: str
    is_final: bool = False


class LiveSession:
    def __init__(
        self,
        services: SlideServices,
        *,
        interval: float = 20.0,
        exploratory_capacity: int = 10,
        style_reference_limit: int = 2,
        first_slide_threshold: int = 20,
        next_slide_threshold: int = 30,
        min_final_segment_chars: int = 5,
        stream_idea_min_chars: int = 20,
        synthesize_fallback: bool = True,
        curator: Optional[SlotCurator] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.services = services
        self.first_slide_threshold = first_slide_threshold
        self.next_slide_threshold = next_slide_threshold
        self.min_final_segment_chars = min_final_segment_chars
        self.stream_idea_min_chars = stream_idea_min_chars

        self.epoch = SessionEpoch()
        self.channels = ChannelStore(exploratory_capacity)
        self.ledger = AcceptedSlideLedger(style_reference_limit)
        self.transcript = TranscriptAccumulator()
        self.pipeline = GenerationPipelineAdapter(
            services,
            self.channels,
            self.ledger,
            self.transcript,
            epoch=self.epoch,
            synthesize_fallback=synthesize_fallback,
        )
        self.gate = GateDecisionEngine(services, self.transcript, self._generate_gated_slide, epoch=self.epoch)
        self.scheduler = ExploratoryTriggerScheduler(
            self.pipeline.dispatch_exploratory,
            interval=interval,
            clock=clock,
            epoch=self.epoch,
        )
        self.audience = AudienceDesk(services, self.pipeline, self.ledger)
        self.curator = curator
        if curator is not None:
            curator.epoch = self.epoch

        self.is_recording = False
        self.mode = PresentationMode.GATED
        self.live_transcript = ""
        self.error: Optional[str] = None
        self.auto_accepted_slide: Optional[Slide] = None
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        services: SlideServices,
        settings: Optional[Settings] = None,
        **overrides,
    ) -> "LiveSession":
        settings = settings or get_settings()
        options = dict(
            interval=settings.exploratory_interval_seconds,
            exploratory_capacity=settings.exploratory_capacity,
            style_reference_limit=settings.style_reference_limit,
            first_slide_threshold=settings.first_slide_threshold,
            next_slide_threshold=settings.next_slide_threshold,
            min_final_segment_chars=settings.min_final_segment_chars,
            stream_idea_min_chars=settings.stream_idea_min_chars,
            synthesize_fallback=settings.synthesize_fallback_slide,
        )
        options.update(overrides)
        return cls(services, **options)

    # ------------------------------------------------------------------
    # Background work ---------------------------------------------------
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.ensure_future(self._guarded(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, coro: Coroutine):
        try:
            return await coro
        except ServiceError as e:
            logger.error(f"❌ Background call failed: {e}")
            self.error = str(e)
        except Exception:
            logger.exception("Unexpected error in background task")
            raise

    async def wait_idle(self) -> None:
        """Wait until no spawned work (including timer-fired dispatches) is running."""
        while self._tasks or self.scheduler.has_running_dispatches:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await self.scheduler.wait_idle()

    # ------------------------------------------------------------------
    # Lifecycle ---------------------------------------------------------
    # ------------------------------------------------------------------

    def start(self) -> bool:
        if self.is_recording:
            return False
        self.is_recording = True
        self.error = None
        self.scheduler.restart_interval()
        logger.info("🎙️ Recording session started")
        return True

    def stop(self) -> None:
        """Return every subsystem to its initial state in one step.

        Advancing the epoch first makes any in-flight gate, generation or
        dispatch drop its result instead of writing into the fresh state.
        """
        self.is_recording = False
        self.epoch.advance()
        self.scheduler.reset()
        self.transcript.reset()
        self.gate.reset()
        self.channels.reset()
        self.ledger.reset()
        self.pipeline.reset()
        if self.curator is not None:
            self.curator.reset()
        self.live_transcript = ""
        self.error = None
        self.auto_accepted_slide = None
        logger.info("🛑 Recording session stopped; orchestration state reset")

    @property
    def is_generation_paused(self) -> bool:
        return self.scheduler.paused

    def pause(self) -> None:
        self.scheduler.pause()

    def resume(self) -> Optional[asyncio.Task]:
        """Unpause; leftover narration becomes a prompt and a dispatch is forced."""
        if not self.scheduler.paused:
            return None
        leftover = self.transcript.snapshot()
        self.transcript.clear()
        if not self.scheduler.unpause(leftover):
            return None
        return self._spawn(self.scheduler.request_dispatch(force_now=True))

    def set_mode(self, mode: PresentationMode) -> None:
        self.mode = PresentationMode(mode)

    # ------------------------------------------------------------------
    # Speech ------------------------------------------------------------
    # ------------------------------------------------------------------

    def handle_transcript(self, event: TranscriptEvent) -> Optional[asyncio.Task]:
        if not self.is_recording:
            return None
        text = event.text.strip()
        if not text:
            return None

        self.live_transcript = text
        if not event.is_final or len(text) <= self.min_final_segment_chars:
            return None

        if self.mode is PresentationMode.GATED:
            if not self.transcript.append_final_segment(text):
                return None
            if self.is_generation_paused:
                return None
            buffer = self.transcript.snapshot()
            threshold = gate_threshold(len(self.ledger), self.first_slide_threshold, self.next_slide_threshold)
            if len(buffer) <= threshold or self.gate.is_evaluating:
                return None
            return self._spawn(
                self.gate.evaluate(
                    buffer,
                    accepted_slides=self.ledger.entries,
                    is_first_slide=len(self.ledger) == 0,
                )
            )

        if not self.transcript.note_segment(text):
            return None
        if self.is_generation_paused or len(text) <= self.stream_idea_min_chars:
            return None
        return self._spawn(self._process_idea(text))

    async def consume(self, events: AsyncIterable[TranscriptEvent]) -> None:
        """Feed events from a transcription transport until the session stops."""
        async for event in events:
            if not self.is_recording:
                break
            self.handle_transcript(event)

    async def _generate_gated_slide(self, content: SlideContent) -> Optional[Slide]:
        slide = await self.pipeline.generate_slide(content)
        if slide is not None and self.curator is not None:
            await self.curator.offer(slide)
        return slide

    async def _process_idea(self, text: str) -> Optional[Slide]:
        title = " ".join(text.split()[:IDEA_TITLE_WORDS])
        slide = await self.pipeline.generate_from_idea(title, text, "concept")
        if slide is not None:
            self.auto_accepted_slide = slide
        return slide

    def clear_auto_accepted_slide(self) -> None:
        self.auto_accepted_slide = None

    # ------------------------------------------------------------------
    # Triggers ----------------------------------------------------------
    # ------------------------------------------------------------------

    def accept_slide(self, slide: Slide) -> Optional[asyncio.Task]:
        """Record a presenter-accepted slide and queue its follow-up triggers."""
        if not self.ledger.record(slide):
            return None
        if slide.source is SlideSource.QUESTION:
            self.scheduler.record(TriggerKind.AUDIENCE_QUESTION, slide)
        return self._spawn(self.scheduler.enqueue(TriggerKind.ACCEPTED_SLIDE, slide))

    def enqueue_presenter_prompt(self, prompt: str, current_slide: Optional[Slide] = None) -> Optional[asyncio.Task]:
        trimmed = prompt.strip()
        if not trimmed:
            return None
        return self._spawn(
            self.scheduler.enqueue(
                TriggerKind.PRESENTER_PROMPT,
                PresenterPrompt(prompt=trimmed, current_slide=current_slide),
                force_now=True,
            )
        )

    async def submit_question(self, question: str) -> QuestionResult:
        return await self.audience.submit(question)

    def add_deck_slides(self, slides: Iterable[Slide]) -> int:
        deck = [s.model_copy(update={"source": SlideSource.DECK}) for s in slides]
        self.channels.extend(ChannelType.SLIDES, deck)
        logger.info(f"📥 Added {len(deck)} uploaded slide(s) to the deck channel")
        return len(deck)

    # ------------------------------------------------------------------
    # Channels ----------------------------------------------------------
    # ------------------------------------------------------------------

    def channel_view(self, kind: ChannelType) -> ChannelView:
        return self.channels.info(kind)

    def navigate(self, kind: ChannelType, direction: Direction) -> ChannelView:
        self.channels.navigate(kind, direction)
        return self.channels.info(kind)

    def take(self, kind: ChannelType) -> Optional[Slide]:
        return self.channels.take(kind)

    def remove(self, kind: ChannelType, slide_id: str) -> bool:
        removed = self.channels.remove(kind, slide_id)
        if removed and self.curator is not None:
            self.curator.remove(slide_id)
        return removed

    # ------------------------------------------------------------------
    # Status ------------------------------------------------------------
    # ------------------------------------------------------------------

    def status(self) -> SessionStatus:
        pending = self.scheduler.pending
        return SessionStatus(
            is_recording=self.is_recording,
            is_processing=self.pipeline.is_processing,
            is_generation_paused=self.is_generation_paused,
            is_answering_question=self.audience.is_answering,
            mode=self.mode,
            gate_status=self.gate.status,
            curator_status=self.curator.status if self.curator else "",
            error=self.error,
            transcript=self.live_transcript,
            full_transcript=self.transcript.snapshot(),
            accepted_slides=len(self.ledger),
            slide_counter=self.pipeline.slide_counter,
            pending_triggers=len(pending.accepted_slides) + len(pending.audience_questions) + len(pending.presenter_prompts),
            auto_accepted_slide=self.auto_accepted_slide,
            slide_options=list(self.curator.options) if self.curator else [],
        )
