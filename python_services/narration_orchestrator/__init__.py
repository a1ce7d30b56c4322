"""
Narration orchestrator: turns a live narration stream into slides.

A `LiveSession` gates final transcript segments into slides, batches accepted
slides, audience answers and presenter prompts into exploratory follow-up
dispatches, and keeps three navigable slide channels.
"""

from .channels import ChannelStore, ChannelType, Direction
from .errors import (
    MalformedResponseError,
    OrchestratorError,
    RateLimitedError,
    ServiceError,
    SessionNotFoundError,
)
from .lifecycle import LiveSession, TranscriptEvent
from .services import SlideServiceClient, SlideServices
from .sessions import SessionRegistry
from .state import PresentationMode, PresenterPrompt, TriggerKind

__all__ = [
    "ChannelStore",
    "ChannelType",
    "Direction",
    "LiveSession",
    "MalformedResponseError",
    "OrchestratorError",
    "PresentationMode",
    "PresenterPrompt",
    "RateLimitedError",
    "ServiceError",
    "SessionNotFoundError",
    "SessionRegistry",
    "SlideServiceClient",
    "SlideServices",
    "TranscriptEvent",
    "TriggerKind",
]
