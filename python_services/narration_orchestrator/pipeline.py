"""Builds outbound generation requests and routes results into the channel store."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError

from shared.models import OriginalIdea, Slide, SlideSource

from .channels import ChannelStore, ChannelType
from .contracts import (
    CurrentSlideSummary,
    ExploratoryRequest,
    FollowupSlideContent,
    GenerationRequest,
    SlideContent,
)
from .errors import MalformedResponseError, ServiceError
from .ledger import AcceptedSlideLedger
from .services import SlideServices
from .state import PendingExploratoryContext, SessionEpoch
from .transcript import TranscriptAccumulator

logger = logging.getLogger(__name__)

RECENT_TRIGGER_LIMIT = 3
CHANNEL_CONTEXT_LIMIT = 5
FOLLOWUPS_PER_DISPATCH = 1

COMBINED_PROMPT_HEADER = (
    "Propose the most valuable next slide ideas. Prioritize the latest presenter intent "
    "when present, and incorporate all recent cues."
)
DEFAULT_PROMPT = "Propose the most valuable next slide ideas based on the latest presentation context."


def _channel_context(label: str, slides, limit: int = CHANNEL_CONTEXT_LIMIT) -> str:
    return "\n".join(
        f"{label} {i + 1}: {s.title or label} - {s.description}" for i, s in enumerate(slides[:limit])
    )


class GenerationPipelineAdapter:
    """The seam every generation path writes through.

    Owns the session's slide counter. Results are written only if the session
    epoch captured before the call is still current.
    """

    def __init__(
        self,
        services: SlideServices,
        channels: ChannelStore,
        ledger: AcceptedSlideLedger,
        transcript: TranscriptAccumulator,
        *,
        epoch: Optional[SessionEpoch] = None,
        synthesize_fallback: bool = True,
    ) -> None:
        self.services = services
        self.channels = channels
        self.ledger = ledger
        self.transcript = transcript
        self.epoch = epoch or SessionEpoch()
        self.synthesize_fallback = synthesize_fallback
        self.slide_counter = 0
        self.in_flight = 0

    @property
    def is_processing(self) -> bool:
        return self.in_flight > 0

    def reset(self) -> None:
        self.slide_counter = 0

    def _next_slide_number(self) -> int:
        self.slide_counter += 1
        return self.slide_counter

    # ------------------------------------------------------------------
    # Single slide generation ------------------------------------------
    # ------------------------------------------------------------------

    async def render(
        self,
        content: SlideContent,
        *,
        source: SlideSource = SlideSource.EXPLORATORY,
        idea_content: Optional[str] = None,
    ) -> Slide:
        """Ask the generation service to render structured content; no channel write.

        Falls back to a locally built text slide when the service answers
        without a slide and fallback synthesis is enabled.
        """
        request = GenerationRequest(
            slide_content=content,
            style_references=self.ledger.style_references,
            slide_number=self._next_slide_number(),
        )
        self.in_flight += 1
        try:
            slide = await self.services.generate_slide(request)
        finally:
            self.in_flight -= 1

        idea = OriginalIdea(
            title=content.headline,
            content=idea_content if idea_content is not None else content.source_transcript,
            category=content.category,
        )
        if slide is None:
            if not self.synthesize_fallback:
                raise MalformedResponseError("generation", "service returned no slide")
            logger.warning(f"⚠️ Generation returned no slide for '{content.headline}'; using text-only fallback")
            slide = Slide(
                headline=content.headline,
                subheadline=content.subheadline,
                bullets=content.bullets,
                visual_description=content.visual_description,
            )
        return slide.model_copy(update={"source": source, "original_idea": slide.original_idea or idea})

    async def generate_slide(
        self,
        content: SlideContent,
        channel: ChannelType = ChannelType.EXPLORATORY,
        *,
        source: SlideSource = SlideSource.EXPLORATORY,
        idea_content: Optional[str] = None,
        token: Optional[int] = None,
    ) -> Optional[Slide]:
        """Render `content` and append the slide to `channel`.

        Returns None (and writes nothing) when the session was reset while the
        call was in flight, or before it started if the caller passes the
        epoch `token` it captured earlier. Service failures propagate.
        """
        if token is None:
            token = self.epoch.token()
        elif not self.epoch.is_current(token):
            logger.warning(f"Skipping slide '{content.headline}' requested before a session reset")
            return None
        slide = await self.render(content, source=source, idea_content=idea_content)
        if not self.epoch.is_current(token):
            logger.warning(f"Dropping stale slide '{slide.title}' generated before a session reset")
            return None
        self.channels.append(channel, slide)
        logger.info(f"🖼️ Slide '{slide.title}' added to {channel.value} channel")
        return slide

    async def generate_from_idea(self, title: str, content: str, category: str = "concept") -> Optional[Slide]:
        """Stream-mode generation from a raw idea. The slide is returned, not queued."""
        token = self.epoch.token()
        request = GenerationRequest(
            title=title,
            content=content,
            category=category,
            style_references=self.ledger.style_references,
            slide_number=self._next_slide_number(),
        )
        self.in_flight += 1
        try:
            slide = await self.services.generate_slide(request)
        finally:
            self.in_flight -= 1
        if slide is None or not self.epoch.is_current(token):
            return None
        return slide.model_copy(
            update={"original_idea": slide.original_idea or OriginalIdea(title=title, content=content, category=category)}
        )

    # ------------------------------------------------------------------
    # Exploratory dispatch ---------------------------------------------
    # ------------------------------------------------------------------

    def build_exploratory_request(self, batch: PendingExploratoryContext) -> ExploratoryRequest:
        """Merge one captured batch with the session's surrounding context."""
        sections: List[str] = []
        if batch.presenter_prompts:
            prompt_list = "\n".join(f"- {p.prompt}" for p in batch.presenter_prompts)
            sections.append(f"Presenter prompts to explore:\n{prompt_list}")

        if batch.accepted_slides:
            accepted_summary = "\n".join(
                f"- {s.title or 'Slide'}: {s.description}" for s in batch.accepted_slides[-RECENT_TRIGGER_LIMIT:]
            )
            sections.append(f"Follow-ups requested for recently accepted slides:\n{accepted_summary}")

        if batch.audience_questions:
            question_summary = "\n".join(
                "- " + ((q.original_idea.content if q.original_idea else "") or q.headline or q.visual_description or "Audience question")
                for q in batch.audience_questions[-RECENT_TRIGGER_LIMIT:]
            )
            sections.append(f"Audience questions to consider:\n{question_summary}")

        prompt = f"{COMBINED_PROMPT_HEADER}\n\n" + "\n\n".join(sections) if sections else DEFAULT_PROMPT

        history = self.ledger.entries
        slide_history_context = "\n".join(
            f"{i + 1}. {e.headline}: {e.visual_description}" for i, e in enumerate(history)
        )

        latest_prompt = batch.presenter_prompts[-1] if batch.presenter_prompts else None
        slide_for_context: Optional[Slide] = None
        if latest_prompt and latest_prompt.current_slide:
            slide_for_context = latest_prompt.current_slide
        elif batch.accepted_slides:
            slide_for_context = batch.accepted_slides[-1]

        current_slide = CurrentSlideSummary.from_slide(slide_for_context) if slide_for_context else None
        if current_slide is None and history:
            last = history[-1]
            current_slide = CurrentSlideSummary(
                headline=last.headline, visual_description=last.visual_description, category=last.category
            )

        return ExploratoryRequest(
            prompt=prompt,
            current_slide=current_slide,
            transcript_context=self.transcript.snapshot(),
            slide_history_context=slide_history_context,
            uploaded_slides_context=_channel_context("Uploaded", self.channels.queue(ChannelType.SLIDES)),
            audience_context=_channel_context("Audience", self.channels.queue(ChannelType.AUDIENCE)),
        )

    @staticmethod
    def describe_batch(batch: PendingExploratoryContext) -> str:
        parts: List[str] = []
        if batch.presenter_prompts:
            parts.append(f'Presenter prompt: "{batch.presenter_prompts[-1].prompt}"')
        if batch.accepted_slides:
            parts.append(f"Follow-ups requested for {len(batch.accepted_slides)} accepted slide(s)")
        if batch.audience_questions:
            parts.append(f"Audience signals/questions x{len(batch.audience_questions)}")
        return " | ".join(parts) or "Exploratory generation based on recent context"

    def fallback_followup(self, batch: PendingExploratoryContext) -> FollowupSlideContent:
        """Locally synthesized follow-up used when the service proposes nothing usable."""
        if batch.presenter_prompts:
            prompt = batch.presenter_prompts[-1].prompt
            return FollowupSlideContent(
                headline=prompt[:80],
                visual_description=f"Clean illustrative slide exploring: {prompt}",
                category="concept",
            )
        anchor = batch.accepted_slides[-1] if batch.accepted_slides else None
        if anchor is None and batch.audience_questions:
            anchor = batch.audience_questions[-1]
        topic = anchor.title if anchor and anchor.title else "the presentation"
        return FollowupSlideContent(
            headline=f"Going deeper: {topic}",
            visual_description=f"Supporting visual that expands on {topic}",
            category="concept",
        )

    async def dispatch_exploratory(self, batch: PendingExploratoryContext) -> bool:
        """Turn one batch into at most one exploratory slide.

        Returns False on any failure; nothing is written in that case.
        """
        token = self.epoch.token()
        request = self.build_exploratory_request(batch)
        self.in_flight += 1
        try:
            response = await self.services.explore(request)
        except ServiceError as e:
            logger.error(f"❌ Failed to generate exploratory slides: {e}")
            return False
        finally:
            self.in_flight -= 1

        if not self.epoch.is_current(token):
            logger.warning("Follow-ups arrived after a session reset; dropping them")
            return False

        followups: List[FollowupSlideContent] = []
        for raw in response.followups:
            if not isinstance(raw, dict):
                logger.debug(f"Skipping non-object follow-up: {raw!r}")
                continue
            try:
                followups.append(FollowupSlideContent.model_validate(raw))
            except ValidationError:
                logger.debug(f"Skipping malformed follow-up: {raw!r}")
        followups = followups[:FOLLOWUPS_PER_DISPATCH]

        if not followups:
            if not self.synthesize_fallback:
                logger.warning("⚠️ Follow-up service returned no usable slides")
                return False
            followups = [self.fallback_followup(batch)]

        source_transcript = self.describe_batch(batch)
        try:
            for followup in followups:
                await self.generate_slide(followup.to_slide_content(source_transcript))
        except ServiceError as e:
            logger.error(f"❌ Exploratory slide generation failed: {e}")
            return False
        return True
