"""
Error definitions for the catalog API.

규칙:
- 모든 도메인 에러는 CatalogError 하위 클래스
- HTTP 상태 코드는 에러 클래스가 소유 (요청 경계에서 변환)
- 응답 형태: {"message": ..., "code": ...}
- 스토리지 I/O 에러(OSError)는 감싸지 않음 → 일반 500
"""

from typing import Any


class CatalogError(Exception):
    """
    카탈로그 에러 기본 클래스.

    Usage:
        raise NotFoundError(ErrorCodes.APP_NOT_FOUND, "Not found", app_id=app_id)
    """

    status_code = 500

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        base = f"[{self.code}] {self.message}"
        return f"{base} ({ctx_str})" if ctx_str else base

    def to_dict(self) -> dict[str, Any]:
        """응답 본문용."""
        return {
            "message": self.message,
            "code": self.code,
        }


class AuthenticationError(CatalogError):
    """세션 없음 / 만료 / 잘못된 자격 증명."""

    status_code = 401


class AuthorizationError(CatalogError):
    """세션은 유효하지만 권한(role) 부족."""

    status_code = 403


class NotFoundError(CatalogError):
    """레코드 없음, 또는 요청자에게 보이지 않는 레코드."""

    status_code = 404


class ValidationError(CatalogError):
    """잘못된 JSON 본문, 과대 payload, 스키마 위반."""

    status_code = 400


class FileMissingError(CatalogError):
    """레코드가 참조하는 업로드 파일이 저장소에 없음."""

    status_code = 404


class StoreError(CatalogError):
    """저장소 문서 손상 또는 락 획득 실패."""

    status_code = 500

    def __init__(
        self, code: str, message: str, status_code: int = 500, **context: Any
    ) -> None:
        self.status_code = status_code
        super().__init__(code, message, **context)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Auth ===
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"

    # === Records ===
    APP_NOT_FOUND = "APP_NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # === Request body ===
    INVALID_JSON = "INVALID_JSON"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INVALID_FIELD = "INVALID_FIELD"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # === Files ===
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    DIRECT_FILE_ACCESS_BLOCKED = "DIRECT_FILE_ACCESS_BLOCKED"

    # === Store ===
    STORE_CORRUPT = "STORE_CORRUPT"
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"
