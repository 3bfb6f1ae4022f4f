"""
Validation Service: 요청 본문 스키마 검증.

규칙:
- 불리언 필드(isPublished, featured)는 명시적 값만 허용, 임의 값 coercion 금지
- tags: 문자열 리스트 또는 콤마 구분 문자열 → trim + 빈 값 제거
- downloadUrl: http(s) URL만 허용, 빈 값은 "없음"
- 위반 시 ValidationError (400)
"""

from dataclasses import dataclass
from typing import Any

from src.domain.errors import ErrorCodes, ValidationError

# 허용되는 불리언 표현 (대소문자 무시)
BOOL_TRUE_TOKENS = frozenset(["true", "1", "yes", "on"])
BOOL_FALSE_TOKENS = frozenset(["false", "0", "no", "off"])

ALLOWED_URL_SCHEMES = ("http://", "https://")

TEXT_FIELDS = (
    ("description", "description"),
    ("version", "version"),
    ("category", "category"),
)


# =============================================================================
# Parsed Payloads
# =============================================================================

@dataclass
class AppPayload:
    """
    검증된 앱 필드.

    None = 본문에 없음 (update 시 기존 값 유지)
    """
    title: str | None = None
    description: str | None = None
    version: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    is_published: bool | None = None
    featured: bool | None = None
    download_url: str | None = None
    file: dict[str, Any] | None = None  # {"name": ..., "base64": "data:...;base64,..."}


@dataclass
class Credentials:
    """로그인 입력."""
    username: str
    password: str


# =============================================================================
# Field Parsers
# =============================================================================

def parse_bool(value: Any, field: str) -> bool:
    """
    불리언 유사 값 파싱.

    허용: true/false, 0/1, "true"/"false"/"1"/"0"/"yes"/"no"/"on"/"off"

    Raises:
        ValidationError: INVALID_FIELD
    """
    if isinstance(value, bool):
        return value

    if isinstance(value, int) and value in (0, 1):
        return value == 1

    if isinstance(value, str):
        token = value.strip().lower()
        if token in BOOL_TRUE_TOKENS:
            return True
        if token in BOOL_FALSE_TOKENS:
            return False

    raise ValidationError(
        ErrorCodes.INVALID_FIELD,
        f"Field '{field}' must be a boolean",
        field=field,
        value=value,
    )


def parse_tags(value: Any) -> list[str]:
    """
    tags 파싱.

    Args:
        value: 리스트 또는 "a, b, c" 문자열

    Returns:
        순서 유지된 태그 리스트
    """
    if value is None:
        return []

    if isinstance(value, str):
        items: list[Any] = value.split(",")
    elif isinstance(value, list):
        items = value
    else:
        raise ValidationError(
            ErrorCodes.INVALID_FIELD,
            "Field 'tags' must be a list of strings or a comma-separated string",
            field="tags",
        )

    tags = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(
                ErrorCodes.INVALID_FIELD,
                "Field 'tags' must contain only strings",
                field="tags",
                value=item,
            )
        tag = item.strip()
        if tag:
            tags.append(tag)
    return tags


def parse_text(value: Any, field: str) -> str:
    """문자열 필드 파싱 (null → 빈 문자열)."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(
            ErrorCodes.INVALID_FIELD,
            f"Field '{field}' must be a string",
            field=field,
        )
    return value


def parse_download_url(value: Any) -> str | None:
    """
    downloadUrl 파싱.

    Returns:
        URL 문자열, 비어 있으면 None
    """
    url = parse_text(value, "downloadUrl").strip()
    if not url:
        return None
    if not url.lower().startswith(ALLOWED_URL_SCHEMES):
        raise ValidationError(
            ErrorCodes.INVALID_FIELD,
            "Field 'downloadUrl' must be an http(s) URL",
            field="downloadUrl",
        )
    return url


# =============================================================================
# Body Parsers
# =============================================================================

def _require_object(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError(
            ErrorCodes.INVALID_JSON,
            "Request body must be a JSON object",
        )
    return body


def parse_app_payload(body: Any, partial: bool = False) -> AppPayload:
    """
    앱 생성/수정 본문 검증.

    Args:
        body: 디코딩된 JSON 본문
        partial: True면 update (없는 필드는 None 유지)

    Returns:
        AppPayload

    Raises:
        ValidationError: 타입 위반, 필수 필드 누락
    """
    body = _require_object(body)
    payload = AppPayload()

    if "title" in body or not partial:
        title = parse_text(body.get("title"), "title").strip()
        if not title:
            raise ValidationError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Field 'title' is required",
                field="title",
            )
        payload.title = title

    for key, attr in TEXT_FIELDS:
        if key in body or not partial:
            setattr(payload, attr, parse_text(body.get(key), key))

    if "tags" in body or not partial:
        payload.tags = parse_tags(body.get("tags"))

    if "isPublished" in body:
        payload.is_published = parse_bool(body["isPublished"], "isPublished")
    elif not partial:
        payload.is_published = False

    if "featured" in body:
        payload.featured = parse_bool(body["featured"], "featured")
    elif not partial:
        payload.featured = False

    if "downloadUrl" in body:
        payload.download_url = parse_download_url(body["downloadUrl"])

    file_obj = body.get("file")
    if file_obj is not None:
        if not isinstance(file_obj, dict):
            raise ValidationError(
                ErrorCodes.INVALID_FIELD,
                "Field 'file' must be an object with 'name' and 'base64'",
                field="file",
            )
        payload.file = file_obj

    return payload


def parse_credentials(body: Any) -> Credentials:
    """
    로그인 본문 파싱.

    문자열이 아닌 값은 빈 문자열로 취급 → 인증 실패로 귀결.
    """
    body = _require_object(body)
    username = body.get("username")
    password = body.get("password")
    return Credentials(
        username=username if isinstance(username, str) else "",
        password=password if isinstance(password, str) else "",
    )
