"""Audience question intake: triage, answer, and queue an answer slide."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from shared.models import Slide, SlideSource

from .channels import ChannelType
from .contracts import AnswerRequest, QuestionTriage, QuestionTriageRequest, SlideContent
from .errors import ServiceError
from .ledger import AcceptedSlideLedger
from .pipeline import GenerationPipelineAdapter
from .services import SlideServices

logger = logging.getLogger(__name__)

HISTORY_FOR_TRIAGE = 5
SESSION_RESET_REASON = "Session was reset before the question was answered"


@dataclass
class QuestionResult:
    accepted: bool
    reason: str = ""
    slide: Optional[Slide] = None


class AudienceDesk:
    def __init__(
        self,
        services: SlideServices,
        pipeline: GenerationPipelineAdapter,
        ledger: AcceptedSlideLedger,
    ) -> None:
        self.services = services
        self.pipeline = pipeline
        self.ledger = ledger
        self.answering = 0

    @property
    def is_answering(self) -> bool:
        return self.answering > 0

    async def triage(self, question: str) -> QuestionTriage:
        try:
            triage = await self.services.triage_question(
                QuestionTriageRequest(question=question, slide_history=self.ledger.recent(HISTORY_FOR_TRIAGE))
            )
        except ServiceError as e:
            # fail open so a question is never lost to a triage outage
            logger.warning(f"⚠️ Question triage failed, accepting as-is: {e}")
            return QuestionTriage(accept=True, reason="Gate error - automatically accepting question", normalized_question=question)
        if triage.accept and not triage.normalized_question:
            triage = triage.model_copy(update={"normalized_question": question})
        return triage

    @staticmethod
    def _dropped(question: str) -> QuestionResult:
        logger.warning(f"Dropping answer to '{question}' asked before a session reset")
        return QuestionResult(accepted=False, reason=SESSION_RESET_REASON)

    async def submit(self, question: str) -> QuestionResult:
        """Triage a question and, if accepted, append an answer slide to the audience channel.

        Service failures while answering or rendering propagate. A question
        still in flight when the session is reset is dropped unanswered.
        """
        question = question.strip()
        if not question:
            return QuestionResult(accepted=False, reason="Question is required")

        token = self.pipeline.epoch.token()
        self.answering += 1
        try:
            triage = await self.triage(question)
            if not self.pipeline.epoch.is_current(token):
                return self._dropped(question)
            if not triage.accept:
                logger.info(f"🙅 Audience question rejected: {triage.reason}")
                return QuestionResult(accepted=False, reason=triage.reason)

            normalized = triage.normalized_question
            context = "\n".join(f"{i + 1}. {e.headline}" for i, e in enumerate(self.ledger.entries))
            answer = await self.services.answer_question(AnswerRequest(question=normalized, presentation_context=context))
            if not self.pipeline.epoch.is_current(token):
                return self._dropped(question)
            content = SlideContent(
                headline=answer.headline,
                subheadline=answer.subheadline,
                bullets=answer.bullets,
                visual_description=answer.visual_description,
                category=answer.category,
                source_transcript=normalized,
            )
            slide = await self.pipeline.generate_slide(
                content,
                ChannelType.AUDIENCE,
                source=SlideSource.QUESTION,
                idea_content=normalized,
                token=token,
            )
            if slide is None:
                return self._dropped(question)
            return QuestionResult(accepted=True, reason=triage.reason, slide=slide)
        finally:
            self.answering -= 1
