"""
Result-persistence collaborator
scat_engine/services/result_store.py

The engine writes completed module results and the final session record;
it never reads them back mid-session.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from uuid import UUID

import structlog

from scat_engine.models.session import Session

logger = structlog.get_logger(__name__)


@runtime_checkable
class ResultStore(Protocol):
    def save_result(self, session_id: UUID, result) -> None:
        ...

    def save_session(self, session: Session, summary: Optional[Dict[str, Any]] = None) -> None:
        ...


class InMemoryResultStore:
    """Keeps JSON-ready dumps per session, in write order."""

    def __init__(self):
        self.results: Dict[UUID, List[Dict[str, Any]]] = {}
        self.sessions: Dict[UUID, Dict[str, Any]] = {}

    def save_result(self, session_id: UUID, result) -> None:
        self.results.setdefault(session_id, []).append(result.model_dump(mode="json"))
        logger.debug("result_saved", session_id=str(session_id), module=result.kind.value)

    def save_session(self, session: Session, summary: Optional[Dict[str, Any]] = None) -> None:
        self.sessions[session.id] = {
            "session": session.model_dump(mode="json"),
            "summary": summary,
        }
        logger.debug("session_saved", session_id=str(session.id), complete=session.is_complete)
