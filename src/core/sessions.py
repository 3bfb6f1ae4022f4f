"""
Session Manager: 세션 토큰 발급/검증/만료.

규칙:
- 토큰: 추측 불가 랜덤 (secrets)
- expires_at = 로그인 시각 + TTL (고정 8시간, sliding 갱신 없음)
- 만료 확인은 접근 시 lazy (백그라운드 sweep 없음)
- 프로세스 로컬 메모리 저장 → 재시작 시 소실 (의도된 동작)

라우트는 SessionStore 프로토콜에만 의존 (app.state.sessions로 주입).
분산 저장소로 교체 시 호출부 수정 불필요.
"""

import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from src.core.ids import generate_session_id
from src.core.logging import emit_audit
from src.domain.constants import SESSION_TTL_SECONDS
from src.domain.schemas import Session, SessionUser


@runtime_checkable
class SessionStore(Protocol):
    """세션 저장소 인터페이스."""

    def create(self, user: SessionUser) -> str:
        """세션 생성 후 토큰 반환."""
        ...

    def resolve(self, session_id: str | None) -> SessionUser | None:
        """유효한 세션이면 사용자 반환, 아니면 None (만료 세션은 삭제)."""
        ...

    def destroy(self, session_id: str | None) -> None:
        """세션 삭제 (idempotent)."""
        ...


class MemorySessionStore:
    """
    In-memory 세션 저장소.

    각 세션은 생성 시 1회 쓰기, 삭제 시 1회 제거만 일어나므로
    dict insert/pop 외의 동기화는 필요 없음.

    Example:
        >>> sessions = MemorySessionStore()
        >>> sid = sessions.create(user)
        >>> sessions.resolve(sid)
    """

    def __init__(
        self,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            ttl_seconds: 세션 유효 시간 (초)
            clock: 현재 시각 (epoch seconds) 공급 함수
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def create(self, user: SessionUser) -> str:
        session_id = generate_session_id()
        self._sessions[session_id] = Session(
            session_id=session_id,
            user=user,
            expires_at=self._clock() + self.ttl_seconds,
        )
        return session_id

    def resolve(self, session_id: str | None) -> SessionUser | None:
        if not session_id:
            return None

        session = self._sessions.get(session_id)
        if session is None:
            return None

        if session.is_expired(self._clock()):
            self._sessions.pop(session_id, None)
            emit_audit("auth.session_expired", session.user.username)
            return None

        return session.user

    def destroy(self, session_id: str | None) -> None:
        if session_id:
            self._sessions.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        """만료 여부와 무관하게 저장 여부만 확인."""
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
