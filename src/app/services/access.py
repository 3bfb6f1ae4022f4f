"""
Authorization Layer: 역할 기반 가시성/권한.

- admin: 전체 레코드, 모든 변경 허용
- user: isPublished=true 레코드만, 읽기 전용
- 숨겨진 레코드는 존재 자체를 노출하지 않음 (404)
"""

from collections.abc import Iterable

from src.domain.errors import AuthorizationError, ErrorCodes
from src.domain.schemas import AppRecord, SessionUser


def can_view(user: SessionUser, app: AppRecord) -> bool:
    """레코드 열람 가능 여부."""
    return user.is_admin or app.is_published


def visible_apps(user: SessionUser, apps: Iterable[AppRecord]) -> list[AppRecord]:
    """
    사용자에게 보이는 레코드만 (저장 순서 유지).

    Args:
        user: 세션 사용자
        apps: 전체 레코드

    Returns:
        가시 레코드 리스트
    """
    return [app for app in apps if can_view(user, app)]


def ensure_admin(user: SessionUser) -> SessionUser:
    """
    admin 권한 확인.

    Raises:
        AuthorizationError: FORBIDDEN (403)
    """
    if not user.is_admin:
        raise AuthorizationError(
            ErrorCodes.FORBIDDEN,
            "Forbidden",
            username=user.username,
        )
    return user
