"""State value types shared by the orchestration components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import Field

from shared.models import Slide, WireModel


class TriggerKind(str, Enum):
    """Which list of the pending exploratory context a trigger lands in."""

    ACCEPTED_SLIDE = "accepted_slide"
    AUDIENCE_QUESTION = "audience_question"
    PRESENTER_PROMPT = "presenter_prompt"


class PresentationMode(str, Enum):
    GATED = "gated"
    STREAM = "stream-of-consciousness"


@dataclass(frozen=True)
class PresenterPrompt:
    prompt: str
    current_slide: Optional[Slide] = None


@dataclass(frozen=True)
class PendingExploratoryContext:
    """Not-yet-dispatched trigger inputs.

    Immutable: every change produces a new value so a captured batch can never
    be altered by triggers arriving while it is in flight.
    """

    accepted_slides: Tuple[Slide, ...] = ()
    audience_questions: Tuple[Slide, ...] = ()
    presenter_prompts: Tuple[PresenterPrompt, ...] = ()

    def is_empty(self) -> bool:
        return not (self.accepted_slides or self.audience_questions or self.presenter_prompts)

    def with_trigger(self, kind: TriggerKind, payload) -> "PendingExploratoryContext":
        if kind is TriggerKind.ACCEPTED_SLIDE:
            return PendingExploratoryContext(self.accepted_slides + (payload,), self.audience_questions, self.presenter_prompts)
        if kind is TriggerKind.AUDIENCE_QUESTION:
            return PendingExploratoryContext(self.accepted_slides, self.audience_questions + (payload,), self.presenter_prompts)
        if kind is TriggerKind.PRESENTER_PROMPT:
            return PendingExploratoryContext(self.accepted_slides, self.audience_questions, self.presenter_prompts + (payload,))
        raise ValueError(f"Unknown trigger kind: {kind}")

    def merge(self, newer: "PendingExploratoryContext") -> "PendingExploratoryContext":
        """Union of two contexts, this one's entries first."""
        return PendingExploratoryContext(
            self.accepted_slides + newer.accepted_slides,
            self.audience_questions + newer.audience_questions,
            self.presenter_prompts + newer.presenter_prompts,
        )


@dataclass
class SessionEpoch:
    """Version counter for one recording session.

    Async work captures a token before suspending and checks it on completion;
    a stop/reset advances the epoch so late completions are dropped.
    """

    value: int = 0

    def token(self) -> int:
        return self.value

    def is_current(self, token: int) -> bool:
        return token == self.value

    def advance(self) -> int:
        self.value += 1
        return self.value


class ChannelView(WireModel):
    """What the presentation surface sees for one channel."""

    current: Optional[Slide] = None
    total: int = 0
    cursor: int = 0
    can_go_prev: bool = False
    can_go_next: bool = False


class SessionStatus(WireModel):
    is_recording: bool = False
    is_processing: bool = False
    is_generation_paused: bool = False
    is_answering_question: bool = False
    mode: PresentationMode = PresentationMode.GATED
    gate_status: str = ""
    curator_status: str = ""
    error: Optional[str] = None
    transcript: str = ""
    full_transcript: str = ""
    accepted_slides: int = 0
    slide_counter: int = 0
    pending_triggers: int = 0
    auto_accepted_slide: Optional[Slide] = None
    slide_options: List[Optional[Slide]] = Field(default_factory=list)
