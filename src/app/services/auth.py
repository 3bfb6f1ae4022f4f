"""
Auth Service: 로그인/로그아웃.

- 알 수 없는 사용자 / 틀린 비밀번호 → 동일한 401 (계정 존재 노출 방지)
- 성공 시 세션 생성, 토큰은 쿠키로만 전달 (로그 금지)
"""

from src.app.services.validate import Credentials
from src.core.logging import emit_audit
from src.core.security import verify_password
from src.core.sessions import SessionStore
from src.core.store import RecordStore
from src.domain.errors import AuthenticationError, ErrorCodes
from src.domain.schemas import SessionUser


class AuthService:
    """자격 증명 확인 + 세션 수명 관리."""

    def __init__(self, store: RecordStore, sessions: SessionStore):
        """
        Args:
            store: 사용자 조회용 Record Store
            sessions: 세션 저장소
        """
        self.store = store
        self.sessions = sessions

    def login(self, credentials: Credentials) -> tuple[str, SessionUser]:
        """
        로그인.

        Returns:
            (session_id, SessionUser)

        Raises:
            AuthenticationError: INVALID_CREDENTIALS
        """
        user = self.store.load().find_user(credentials.username)

        if user is None or not verify_password(credentials.password, user.password_hash):
            emit_audit("auth.login_failed", credentials.username or None)
            raise AuthenticationError(ErrorCodes.INVALID_CREDENTIALS, "Invalid credentials")

        session_user = user.to_session_user()
        session_id = self.sessions.create(session_user)
        emit_audit("auth.login", session_user.username, role=session_user.role.value)
        return session_id, session_user

    def logout(self, session_id: str | None) -> None:
        """로그아웃 (세션 없어도 성공)."""
        user = self.sessions.resolve(session_id)
        self.sessions.destroy(session_id)
        if user is not None:
            emit_audit("auth.logout", user.username)
