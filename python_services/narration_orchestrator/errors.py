"""Exception taxonomy for the narration orchestrator."""

from __future__ import annotations

from typing import Optional


class OrchestratorError(Exception):
    """Base class for orchestrator errors."""


class ServiceError(OrchestratorError):
    """A collaborator call failed (HTTP error, transport error, undecodable body)."""

    def __init__(self, service: str, detail: str, status_code: Optional[int] = None) -> None:
        self.service = service
        self.detail = detail
        self.status_code = status_code
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"{service} request failed{status}: {detail}")


class MalformedResponseError(ServiceError):
    """A collaborator answered but the payload carries no usable content."""


class SessionNotFoundError(OrchestratorError):
    """Unknown or expired presentation session."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class RateLimitedError(OrchestratorError):
    """Too many requests for one client key."""
