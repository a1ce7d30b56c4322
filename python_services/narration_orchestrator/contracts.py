"""Request/response models for the collaborator services.

Field names serialize to camelCase, matching the JSON the slide services speak.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator

from shared.models import OriginalIdea, Slide, WireModel


class SlideContent(WireModel):
    """Structured content for one slide, as produced by the gate or a follow-up."""

    headline: str
    subheadline: Optional[str] = None
    bullets: Optional[List[str]] = None
    visual_description: str = ""
    category: str = "concept"
    source_transcript: str = ""


class FollowupSlideContent(WireModel):
    headline: str
    subheadline: Optional[str] = None
    bullets: Optional[List[str]] = None
    visual_description: str = ""
    category: str = "concept"

    def to_slide_content(self, source_transcript: str) -> SlideContent:
        return SlideContent(
            headline=self.headline,
            subheadline=self.subheadline,
            bullets=self.bullets,
            visual_description=self.visual_description,
            category=self.category,
            source_transcript=source_transcript,
        )


class AcceptedSlideEntry(WireModel):
    """Compact projection of a presenter-accepted slide."""

    id: str
    headline: str
    visual_description: str = ""
    category: str = "concept"


class StyleReference(WireModel):
    headline: str
    visual_description: str = ""
    category: str = "concept"
    slide_number: int


# Gate ------------------------------------------------------------------------


class GateRequest(WireModel):
    transcript: str
    prior_ideas: List[OriginalIdea] = Field(default_factory=list)
    accepted_slides: List[AcceptedSlideEntry] = Field(default_factory=list)
    is_first_slide: bool = False


class GateResponse(WireModel):
    should_create_slide: bool = False
    slide_content: Optional[SlideContent] = None
    reason: Optional[str] = None


# Generation ------------------------------------------------------------------


class GenerationRequest(WireModel):
    """Either structured `slide_content` (gated mode) or a raw title/content/category idea (stream mode)."""

    slide_content: Optional[SlideContent] = None
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    style_references: List[StyleReference] = Field(default_factory=list)
    slide_number: int


class GenerationResponse(WireModel):
    slide: Optional[Slide] = None


# Exploratory follow-ups --------------------------------------------------------


class CurrentSlideSummary(WireModel):
    headline: Optional[str] = None
    subheadline: Optional[str] = None
    bullets: Optional[List[str]] = None
    visual_description: Optional[str] = None
    category: str = "concept"

    @classmethod
    def from_slide(cls, slide: Slide) -> "CurrentSlideSummary":
        return cls(
            headline=slide.headline,
            subheadline=slide.subheadline,
            bullets=slide.bullets,
            visual_description=slide.description or None,
            category=slide.category,
        )


class ExploratoryRequest(WireModel):
    prompt: str
    current_slide: Optional[CurrentSlideSummary] = None
    transcript_context: str = ""
    slide_history_context: str = ""
    uploaded_slides_context: str = ""
    audience_context: str = ""


class ExploratoryResponse(WireModel):
    """Raw follow-up proposals; items are validated one by one by the caller."""

    followups: List[Any] = Field(default_factory=list)

    @field_validator("followups", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value


# Curator (two-slot variant) ---------------------------------------------------

CuratorAction = Literal["replace_slot_1", "replace_slot_2", "discard"]


class CuratorSlide(WireModel):
    id: str
    headline: Optional[str] = None
    source_transcript: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_slide(cls, slide: Slide) -> "CuratorSlide":
        return cls(
            id=slide.id,
            headline=slide.headline,
            source_transcript=slide.original_idea.content if slide.original_idea else None,
            category=slide.category,
        )


class CuratorRequest(WireModel):
    new_slide: CuratorSlide
    current_options: List[Optional[CuratorSlide]]


class CuratorDecision(WireModel):
    action: str = "discard"
    reasoning: str = ""


# Audience questions -------------------------------------------------------------


class QuestionTriageRequest(WireModel):
    question: str
    slide_history: List[AcceptedSlideEntry] = Field(default_factory=list)


class QuestionTriage(WireModel):
    accept: bool = True
    reason: str = ""
    normalized_question: str = ""
    category: str = "general"
    priority: Literal["low", "normal", "high"] = "normal"


class AnswerRequest(WireModel):
    question: str
    presentation_context: str = ""


class AnswerContent(WireModel):
    headline: str
    subheadline: Optional[str] = None
    bullets: Optional[List[str]] = None
    visual_description: str = ""
    category: str = "explanation"
    original_question: str = ""
