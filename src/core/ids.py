"""
ID 생성: app_id, session_id, upload 파일명
"""

import secrets
import uuid
from datetime import UTC, datetime

# 세션 토큰 엔트로피 (bytes)
SESSION_TOKEN_BYTES = 32


def generate_app_id() -> str:
    """
    App ID 생성.

    고유성 보장: UUID v4 (한번 발급되면 변경 없음)

    Returns:
        app_id 문자열
    """
    return str(uuid.uuid4())


def generate_session_id() -> str:
    """
    세션 토큰 생성.

    추측 불가: secrets 기반 URL-safe 토큰

    Returns:
        session_id 문자열
    """
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def generate_upload_name(safe_name: str) -> str:
    """
    업로드 저장 파일명 생성.

    포맷: {epoch_ms}-{uuid[:8]}-{safe_name}

    Args:
        safe_name: sanitize된 원본 파일명

    Returns:
        저장 파일명
    """
    epoch_ms = int(datetime.now(UTC).timestamp() * 1000)
    unique = uuid.uuid4().hex[:8]
    return f"{epoch_ms}-{unique}-{safe_name}"
