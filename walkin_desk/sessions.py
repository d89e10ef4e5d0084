"""
In-memory store of open walk-in workflows.
"""
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from walkin_desk.auth import AuthContext
from walkin_desk.services.workflow import WalkInWorkflow

logger = structlog.get_logger(__name__)

WorkflowFactory = Callable[[AuthContext], WalkInWorkflow]


class SessionNotFound(KeyError):
    pass


@dataclass
class WorkflowSession:
    session_id: str
    auth: AuthContext
    workflow: WalkInWorkflow
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: float = 0.0


class SessionRegistry:
    """
    Workflows keyed by session id.

    A session belongs to the bearer token that opened it; lookups with any
    other token behave as if the session did not exist. With a ``ttl``,
    sessions idle for longer than that many seconds are dropped and their
    backend connections closed.
    """

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, WorkflowSession] = {}
        self._lock = threading.Lock()

    def open(self, auth: AuthContext, factory: WorkflowFactory) -> WorkflowSession:
        self.prune()
        auth.bearer_token()
        workflow = factory(auth)
        workflow.start()
        session = WorkflowSession(
            session_id=uuid.uuid4().hex,
            auth=auth,
            workflow=workflow,
            last_seen=self._clock(),
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("session_opened", session_id=session.session_id)
        return session

    def get(self, session_id: str, auth: AuthContext) -> WorkflowSession:
        self.prune()
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None or not session.auth.same_principal(auth):
            raise SessionNotFound(session_id)
        session.last_seen = self._clock()
        return session

    def close(self, session_id: str, auth: AuthContext) -> None:
        self.get(session_id, auth)
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.workflow.close()
            logger.info("session_closed", session_id=session_id)

    def prune(self) -> int:
        """Drop sessions idle past the ttl; returns how many went."""
        if self.ttl is None:
            return 0
        cutoff = self._clock() - self.ttl
        with self._lock:
            expired = [s for s in self._sessions.values() if s.last_seen < cutoff]
            for session in expired:
                del self._sessions[session.session_id]
        for session in expired:
            session.workflow.close()
            logger.info("session_expired", session_id=session.session_id)
        return len(expired)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.workflow.close()
        if sessions:
            logger.info("sessions_closed", count=len(sessions))

    def __len__(self) -> int:
        return len(self._sessions)
