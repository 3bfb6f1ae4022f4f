"""
Request helpers: app.state 접근 + 세션/권한 확인 + JSON 본문 읽기.

모든 API 요청은 세션 확인 → 권한 확인 → Record Store 접근 순서.
"""

import json
from typing import Any

from fastapi import Request

from src.app.services.access import ensure_admin
from src.app.services.auth import AuthService
from src.app.services.catalog import CatalogService
from src.app.services.uploads import UploadService
from src.core.sessions import SessionStore
from src.domain.constants import DEFAULT_MAX_BODY_BYTES, SESSION_COOKIE_NAME
from src.domain.errors import AuthenticationError, ErrorCodes, ValidationError
from src.domain.schemas import SessionUser


def get_sessions(request: Request) -> SessionStore:
    """Request에서 세션 저장소 가져오기."""
    return request.app.state.sessions


def get_catalog(request: Request) -> CatalogService:
    """Request에서 CatalogService 가져오기."""
    return request.app.state.catalog


def get_uploads(request: Request) -> UploadService:
    """Request에서 UploadService 가져오기."""
    return request.app.state.uploads


def get_auth(request: Request) -> AuthService:
    """Request에서 AuthService 가져오기."""
    return request.app.state.auth


def get_session_id(request: Request) -> str | None:
    """sid 쿠키 값."""
    return request.cookies.get(SESSION_COOKIE_NAME)


def current_user(request: Request) -> SessionUser | None:
    """유효한 세션의 사용자 (없으면 None)."""
    return get_sessions(request).resolve(get_session_id(request))


def require_session(request: Request) -> SessionUser:
    """
    세션 필수.

    Raises:
        AuthenticationError: UNAUTHORIZED (401)
    """
    user = current_user(request)
    if user is None:
        raise AuthenticationError(ErrorCodes.UNAUTHORIZED, "Unauthorized")
    return user


def require_admin(request: Request) -> SessionUser:
    """
    admin 세션 필수.

    Raises:
        AuthenticationError: 세션 없음 (401)
        AuthorizationError: admin 아님 (403)
    """
    return ensure_admin(require_session(request))


async def read_json_body(request: Request) -> Any:
    """
    JSON 본문 읽기 (크기 제한).

    빈 본문은 {} 로 취급.

    Raises:
        ValidationError: PAYLOAD_TOO_LARGE, INVALID_JSON (400)
    """
    max_bytes = request.app.state.config.get("limits", {}).get(
        "max_body_bytes", DEFAULT_MAX_BODY_BYTES
    )

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise ValidationError(
            ErrorCodes.PAYLOAD_TOO_LARGE,
            "Payload too large",
            limit=max_bytes,
        )

    # content-length 없이 오는 chunked 본문도 누적 크기로 차단
    chunks = bytearray()
    async for chunk in request.stream():
        chunks.extend(chunk)
        if len(chunks) > max_bytes:
            raise ValidationError(
                ErrorCodes.PAYLOAD_TOO_LARGE,
                "Payload too large",
                limit=max_bytes,
            )

    if not chunks.strip():
        return {}

    try:
        return json.loads(chunks)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(ErrorCodes.INVALID_JSON, "Invalid JSON body") from None
