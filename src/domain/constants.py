"""
Domain Constants: 카탈로그 전역 상수.

세션 정책, 저장소 파일명, 업로드 정책 등 시스템 전반에서 사용되는 값들.
"""

import os

# =============================================================================
# Session (세션 정책)
# =============================================================================
# TTL 고정: 로그인 시각 + 8시간, sliding 갱신 없음

SESSION_TTL_SECONDS = 60 * 60 * 8
SESSION_COOKIE_NAME = "sid"

# =============================================================================
# Record Store (저장소 구조)
# =============================================================================
# data/
# ├── db.json         # users[] + apps[] 전체 스냅샷
# └── db.json.lock    # 쓰기 락
# uploads/
# └── <timestamp>-<uid>-<safe_name>

DEFAULT_DATA_DIR = "data"
DEFAULT_DB_FILENAME = "db.json"
DEFAULT_UPLOAD_DIR = "uploads"
STORE_LOCK_SUFFIX = ".lock"
DEFAULT_STORE_LOCK_TIMEOUT = 10.0

# =============================================================================
# Request Limits
# =============================================================================

DEFAULT_MAX_BODY_BYTES = 10_000_000

# =============================================================================
# Catalog Query
# =============================================================================

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_TITLE = "title"
SORT_OPTIONS = (SORT_NEWEST, SORT_OLDEST, SORT_TITLE)
DEFAULT_SORT = SORT_NEWEST

RELATED_APPS_LIMIT = 3

# =============================================================================
# Uploads (파일명 정책)
# =============================================================================
# 허용 문자: ASCII 알파벳, 숫자, ".", "_", "-"

UPLOAD_NAME_ALLOWED_PATTERN = r"[^a-zA-Z0-9._-]"
UPLOAD_NAME_MAX_LENGTH = 100
UPLOAD_FALLBACK_NAME = "upload.bin"
DOWNLOAD_FALLBACK_NAME = "download.bin"

# 업로드 경로 직접 접근 차단 prefix
UPLOADS_URL_PREFIX = "/uploads/"

# =============================================================================
# MIME Types
# =============================================================================

MIME_TYPES = {
    ".zip": "application/zip",
    ".pdf": "application/pdf",
    ".json": "application/json",
    ".apk": "application/vnd.android.package-archive",
    ".mpk": "application/octet-stream",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".txt": "text/plain",
}


def get_mime_type(filename: str) -> str:
    """
    파일명에서 MIME 타입 추출.

    Args:
        filename: 파일명 (확장자 포함)

    Returns:
        MIME 타입 문자열 (알 수 없으면 octet-stream)
    """
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "application/octet-stream")
