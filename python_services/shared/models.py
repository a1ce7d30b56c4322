"""
Shared Pydantic models for inter-service communication.
"""

import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum


class WireModel(BaseModel):
    """Base for models exchanged with the browser and the slide services (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthCheck(BaseModel):
    """Health check response model."""
    service: str
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str = "0.1.0"


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


# Slide-related models
class SlideSource(str, Enum):
    """Where a slide came from."""
    EXPLORATORY = "exploratory"
    QUESTION = "question"
    DECK = "deck-upload"


class OriginalIdea(WireModel):
    """Provenance of a slide: the idea it was generated from."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = ""
    content: str = ""
    category: str = "concept"


class Slide(WireModel):
    """A generated or uploaded slide. Immutable once created; `id` is the only key."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique slide identifier")
    image_url: Optional[str] = Field(None, description="Rendered artifact reference (URL or data URL)")
    headline: Optional[str] = None
    subheadline: Optional[str] = None
    bullets: Optional[List[str]] = None
    visual_description: Optional[str] = None
    background: Optional[str] = Field(None, description="Background/style token")
    original_idea: Optional[OriginalIdea] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    source: SlideSource = SlideSource.EXPLORATORY

    @property
    def title(self) -> str:
        """Best available title for summaries."""
        if self.headline:
            return self.headline
        if self.original_idea and self.original_idea.title:
            return self.original_idea.title
        return ""

    @property
    def description(self) -> str:
        """Best available description for summaries."""
        if self.visual_description:
            return self.visual_description
        if self.original_idea:
            return self.original_idea.content
        return ""

    @property
    def category(self) -> str:
        if self.original_idea and self.original_idea.category:
            return self.original_idea.category
        return "concept"
