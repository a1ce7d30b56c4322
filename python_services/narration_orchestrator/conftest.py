"""In-memory collaborator services and shared fixtures for the orchestrator tests."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest

from shared.models import OriginalIdea, Slide, SlideSource

from .contracts import (
    AnswerContent,
    AnswerRequest,
    CuratorDecision,
    CuratorRequest,
    ExploratoryRequest,
    ExploratoryResponse,
    GateRequest,
    GateResponse,
    GenerationRequest,
    QuestionTriage,
    QuestionTriageRequest,
    SlideContent,
)
from .lifecycle import LiveSession


def make_slide(headline: str = "Slide", description: str = "", source: SlideSource = SlideSource.EXPLORATORY, **kwargs) -> Slide:
    return Slide(
        headline=headline,
        visual_description=description or f"Visual for {headline}",
        source=source,
        **kwargs,
    )


def accepting(headline: str = "New product line", transcript: str = "") -> GateResponse:
    return GateResponse(
        should_create_slide=True,
        slide_content=SlideContent(
            headline=headline,
            visual_description=f"Illustration of {headline}",
            source_transcript=transcript,
        ),
        reason="Clear, slide-worthy idea",
    )


class FakeSlideServices:
    """Scriptable stand-in for the slide services app.

    Set `hold` to an unset `asyncio.Event` to park every call until it is set.
    """

    def __init__(self) -> None:
        self.hold: Optional[asyncio.Event] = None

        self.gate_responses: List[GateResponse] = []
        self.gate_error: Optional[Exception] = None
        self.gate_calls: List[GateRequest] = []

        self.generate_error: Optional[Exception] = None
        self.return_no_slide = False
        self.generation_calls: List[GenerationRequest] = []

        self.followups: List[dict] = [
            {"headline": "Where this goes next", "visualDescription": "Roadmap timeline", "category": "concept"}
        ]
        self.explore_error: Optional[Exception] = None
        self.explore_calls: List[ExploratoryRequest] = []

        self.curator_decision = CuratorDecision(action="discard", reasoning="Existing options are stronger")
        self.curate_error: Optional[Exception] = None
        self.curate_calls: List[CuratorRequest] = []

        self.triage_result = QuestionTriage(accept=True, reason="On topic")
        self.triage_error: Optional[Exception] = None
        self.triage_calls: List[QuestionTriageRequest] = []

        self.answer_error: Optional[Exception] = None
        self.answer_calls: List[AnswerRequest] = []

    async def _wait(self) -> None:
        if self.hold is not None:
            await self.hold.wait()

    async def check_gate(self, request: GateRequest) -> GateResponse:
        self.gate_calls.append(request)
        await self._wait()
        if self.gate_error:
            raise self.gate_error
        if self.gate_responses:
            return self.gate_responses.pop(0)
        return GateResponse(should_create_slide=False, reason="Waiting for more content...")

    async def generate_slide(self, request: GenerationRequest) -> Optional[Slide]:
        self.generation_calls.append(request)
        await self._wait()
        if self.generate_error:
            raise self.generate_error
        if self.return_no_slide:
            return None
        if request.slide_content is not None:
            return Slide(
                headline=request.slide_content.headline,
                visual_description=request.slide_content.visual_description,
                image_url=f"https://slides.example/{request.slide_number}.png",
            )
        return Slide(
            headline=request.title,
            image_url=f"https://slides.example/{request.slide_number}.png",
            original_idea=OriginalIdea(title=request.title or "", content=request.content or ""),
        )

    async def explore(self, request: ExploratoryRequest) -> ExploratoryResponse:
        self.explore_calls.append(request)
        await self._wait()
        if self.explore_error:
            raise self.explore_error
        return ExploratoryResponse(followups=list(self.followups))

    async def curate(self, request: CuratorRequest) -> CuratorDecision:
        self.curate_calls.append(request)
        await self._wait()
        if self.curate_error:
            raise self.curate_error
        return self.curator_decision

    async def triage_question(self, request: QuestionTriageRequest) -> QuestionTriage:
        self.triage_calls.append(request)
        await self._wait()
        if self.triage_error:
            raise self.triage_error
        return self.triage_result

    async def answer_question(self, request: AnswerRequest) -> AnswerContent:
        self.answer_calls.append(request)
        await self._wait()
        if self.answer_error:
            raise self.answer_error
        return AnswerContent(
            headline=f"Answer: {request.question}",
            visual_description="Diagram answering the question",
            original_question=request.question,
        )


@pytest.fixture
def services() -> FakeSlideServices:
    return FakeSlideServices()


@pytest.fixture
def session(services) -> LiveSession:
    return LiveSession(services, interval=0.05)
