"""HTTP routes for live presentation sessions."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import Field

from shared.models import Slide, WireModel

from .channels import ChannelType, Direction
from .errors import RateLimitedError, ServiceError, SessionNotFoundError
from .lifecycle import LiveSession, TranscriptEvent
from .rate_limit import SlidingWindowRateLimiter
from .sessions import SessionRegistry
from .state import ChannelView, PresentationMode, SessionStatus


class CreateSessionResponse(WireModel):
    session_id: str
    created_at: str
    expires_at: str


class PromptRequest(WireModel):
    prompt: str
    current_slide: Optional[Slide] = None


class AcceptRequest(WireModel):
    slide: Slide


class QuestionRequest(WireModel):
    question: str


class QuestionResponse(WireModel):
    accepted: bool
    reason: str = ""
    slide: Optional[Slide] = None


class DeckRequest(WireModel):
    slides: List[Slide] = Field(default_factory=list)


class NavigateRequest(WireModel):
    direction: Direction


class ModeRequest(WireModel):
    mode: PresentationMode


class TakeResponse(WireModel):
    slide: Optional[Slide] = None


def client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_router(registry: SessionRegistry, limiter: SlidingWindowRateLimiter) -> APIRouter:
    router = APIRouter(prefix="/sessions", tags=["narration"])

    def lookup(session_id: str) -> LiveSession:
        try:
            return registry.get(session_id).session
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail="Session not found or expired")

    def check_rate(request: Request, scope: str) -> None:
        try:
            limiter.check(f"{scope}:{client_id(request)}")
        except RateLimitedError:
            raise HTTPException(status_code=429, detail="Too many requests, slow down")

    @router.post("", response_model=CreateSessionResponse, response_model_by_alias=True)
    async def create_session():
        record = registry.create()
        return CreateSessionResponse(
            session_id=record.id,
            created_at=record.created_at.isoformat(),
            expires_at=record.expires_at.isoformat(),
        )

    @router.delete("/{session_id}")
    async def delete_session(session_id: str):
        if not registry.delete(session_id):
            raise HTTPException(status_code=404, detail="Session not found or expired")
        return {"deleted": session_id}

    # Lifecycle --------------------------------------------------------------

    @router.post("/{session_id}/start", response_model=SessionStatus)
    async def start(session_id: str):
        session = lookup(session_id)
        session.start()
        return session.status()

    @router.post("/{session_id}/stop", response_model=SessionStatus)
    async def stop(session_id: str):
        session = lookup(session_id)
        session.stop()
        return session.status()

    @router.post("/{session_id}/pause", response_model=SessionStatus)
    async def pause(session_id: str):
        session = lookup(session_id)
        session.pause()
        return session.status()

    @router.post("/{session_id}/resume", response_model=SessionStatus)
    async def resume(session_id: str):
        session = lookup(session_id)
        session.resume()
        return session.status()

    @router.put("/{session_id}/mode", response_model=SessionStatus)
    async def set_mode(session_id: str, req: ModeRequest):
        session = lookup(session_id)
        session.set_mode(req.mode)
        return session.status()

    @router.get("/{session_id}/status", response_model=SessionStatus)
    async def status(session_id: str):
        return lookup(session_id).status()

    # Inputs -----------------------------------------------------------------

    @router.post("/{session_id}/transcript", response_model=SessionStatus)
    async def transcript(session_id: str, event: TranscriptEvent):
        session = lookup(session_id)
        session.handle_transcript(event)
        return session.status()

    @router.post("/{session_id}/prompt", response_model=SessionStatus)
    async def prompt(session_id: str, req: PromptRequest, request: Request):
        session = lookup(session_id)
        if not req.prompt.strip():
            raise HTTPException(status_code=400, detail="Prompt is required")
        check_rate(request, "prompt")
        session.enqueue_presenter_prompt(req.prompt, req.current_slide)
        return session.status()

    @router.post("/{session_id}/accept", response_model=SessionStatus)
    async def accept(session_id: str, req: AcceptRequest):
        session = lookup(session_id)
        session.accept_slide(req.slide)
        return session.status()

    @router.post("/{session_id}/questions", response_model=QuestionResponse)
    async def question(session_id: str, req: QuestionRequest, request: Request):
        session = lookup(session_id)
        if not req.question.strip():
            raise HTTPException(status_code=400, detail="Question is required")
        check_rate(request, "question")
        try:
            result = await session.submit_question(req.question)
        except ServiceError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return QuestionResponse(accepted=result.accepted, reason=result.reason, slide=result.slide)

    @router.post("/{session_id}/deck")
    async def deck(session_id: str, req: DeckRequest):
        session = lookup(session_id)
        added = session.add_deck_slides(req.slides)
        return {"added": added, "channel": session.channel_view(ChannelType.SLIDES).model_dump(mode="json", by_alias=True)}

    # Channels ---------------------------------------------------------------

    @router.get("/{session_id}/channels/{channel}", response_model=ChannelView)
    async def channel_view(session_id: str, channel: ChannelType):
        return lookup(session_id).channel_view(channel)

    @router.post("/{session_id}/channels/{channel}/navigate", response_model=ChannelView)
    async def navigate(session_id: str, channel: ChannelType, req: NavigateRequest):
        return lookup(session_id).navigate(channel, req.direction)

    @router.post("/{session_id}/channels/{channel}/take", response_model=TakeResponse)
    async def take(session_id: str, channel: ChannelType):
        return TakeResponse(slide=lookup(session_id).take(channel))

    @router.delete("/{session_id}/channels/{channel}/slides/{slide_id}", response_model=ChannelView)
    async def remove(session_id: str, channel: ChannelType, slide_id: str):
        session = lookup(session_id)
        if not session.remove(channel, slide_id):
            raise HTTPException(status_code=404, detail="Slide not found in channel")
        return session.channel_view(channel)

    return router
