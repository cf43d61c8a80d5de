import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..sql.runner import QueryResult

@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationTurn":
        return cls(role=data.get("role", "user"), content=data.get("content", ""),
                   timestamp=data.get("timestamp") or "")

@dataclass
class Session:
    history: List[ConversationTurn] = field(default_factory=list)
    last_result: Optional[QueryResult] = None
    last_sql: Optional[str] = None
    touched: float = 0.0

class SessionStore:
    """Per-conversation memory keyed by session id (e.g. ``channel:thread_ts``)."""

    def __init__(self, max_turns: int = 20, ttl_seconds: int = 3600,
                 clock: Callable[[], float] = time.time):
        self.max_turns = max_turns
        self.ttl = ttl_seconds
        self.clock = clock
        self.store: Dict[str, Session] = {}

    @staticmethod
    def key(channel: str, thread_ts: str) -> str:
        return f"{channel}:{thread_ts}"

    def get(self, session_id: str) -> Optional[Session]:
        session = self.store.get(session_id)
        if session is None:
            return None
        if self.clock() - session.touched > self.ttl:
            del self.store[session_id]
            return None
        return session

    def sweep(self) -> int:
        """Drop every expired session; returns how many were removed."""
        now = self.clock()
        expired = [k for k, s in self.store.items() if now - s.touched > self.ttl]
        for k in expired:
            del self.store[k]
        return len(expired)

    def _get_or_create(self, session_id: str) -> Session:
        self.sweep()
        session = self.get(session_id)
        if session is None:
            session = Session()
            self.store[session_id] = session
        session.touched = self.clock()
        return session

    def history(self, session_id: str) -> List[ConversationTurn]:
        session = self.get(session_id)
        return list(session.history) if session else []

    def append_turn(self, session_id: str, role: str, content: str) -> ConversationTurn:
        session = self._get_or_create(session_id)
        ts = datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat()
        turn = ConversationTurn(role=role, content=content, timestamp=ts)
        session.history.append(turn)
        if len(session.history) > self.max_turns:
            session.history = session.history[-self.max_turns:]
        return turn

    def set_last_query(self, session_id: str, result: Optional[QueryResult], sql: Optional[str]):
        session = self._get_or_create(session_id)
        if result is not None:
            session.last_result = result
        if sql:
            session.last_sql = sql
