"""Async HTTP client for the slide collaborator services.

Each method posts one JSON request to the matching endpoint of the slide
services app and validates the response into a contract model. Transport
errors are retried with exponential backoff; everything else surfaces as a
`ServiceError` for the caller to handle.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Type, TypeVar

import backoff
import httpx
from pydantic import BaseModel, ValidationError

from shared.config import get_settings
from shared.models import Slide

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
    GenerationResponse,
    QuestionTriage,
    QuestionTriageRequest,
)
from .errors import MalformedResponseError, ServiceError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

GATE_PATH = "/api/slide-gate"
GENERATION_PATH = "/api/gemini"
EXPLORATORY_PATH = "/api/exploratory-input"
CURATOR_PATH = "/api/slide-curator"
QUESTION_GATE_PATH = "/api/audience-question-gate"
ANSWER_PATH = "/api/answer-question"


class SlideServices(Protocol):
    """What the orchestration core needs from the outside world."""

    async def check_gate(self, request: GateRequest) -> GateResponse: ...

    async def generate_slide(self, request: GenerationRequest) -> Optional[Slide]: ...

    async def explore(self, request: ExploratoryRequest) -> ExploratoryResponse: ...

    async def curate(self, request: CuratorRequest) -> CuratorDecision: ...

    async def triage_question(self, request: QuestionTriageRequest) -> QuestionTriage: ...

    async def answer_question(self, request: AnswerRequest) -> AnswerContent: ...


def _max_tries() -> int:
    return max(1, get_settings().slide_services_max_tries)


class SlideServiceClient:
    """httpx-backed implementation of `SlideServices`."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.slide_services_url).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout or settings.slide_services_timeout),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SlideServiceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport ---------------------------------------------------------
    # ------------------------------------------------------------------

    @backoff.on_exception(
        backoff.expo,
        httpx.TransportError,
        max_tries=_max_tries,
        jitter=backoff.full_jitter,
    )
    async def _send(self, path: str, payload: BaseModel) -> httpx.Response:
        logger.debug("POST %s", path)
        return await self._client.post(path, json=payload.model_dump(mode="json", by_alias=True))

    async def _post(self, path: str, payload: BaseModel, response_model: Type[M]) -> M:
        try:
            resp = await self._send(path, payload)
        except httpx.TransportError as e:
            raise ServiceError(path, f"transport error: {e}") from e

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            # Surface server error text for easier debugging
            raise ServiceError(path, resp.text[:500] or str(e), status_code=resp.status_code) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError(path, "response was not valid JSON", status_code=resp.status_code) from e

        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(path, str(e), status_code=resp.status_code) from e

    # ------------------------------------------------------------------
    # Endpoints ---------------------------------------------------------
    # ------------------------------------------------------------------

    async def check_gate(self, request: GateRequest) -> GateResponse:
        return await self._post(GATE_PATH, request, GateResponse)

    async def generate_slide(self, request: GenerationRequest) -> Optional[Slide]:
        response = await self._post(GENERATION_PATH, request, GenerationResponse)
        return response.slide

    async def explore(self, request: ExploratoryRequest) -> ExploratoryResponse:
        return await self._post(EXPLORATORY_PATH, request, ExploratoryResponse)

    async def curate(self, request: CuratorRequest) -> CuratorDecision:
        return await self._post(CURATOR_PATH, request, CuratorDecision)

    async def triage_question(self, request: QuestionTriageRequest) -> QuestionTriage:
        return await self._post(QUESTION_GATE_PATH, request, QuestionTriage)

    async def answer_question(self, request: AnswerRequest) -> AnswerContent:
        return await self._post(ANSWER_PATH, request, AnswerContent)

