"""
Upload Service: 인라인 파일 저장 + 다운로드 해석.

입력 형식 (data URL):
    {"name": "app.zip", "base64": "data:application/zip;base64,UEsDB..."}

규칙:
- payload 없음/형식 오류 → 저장 건너뜀 (None, 호출자는 URL 모드로)
- 파일명 sanitize: 허용 문자 [a-zA-Z0-9._-] 외 제거 (명시적 검증 단계)
- 저장 파일명은 항상 새로 생성 (기존 파일 덮어쓰기 없음)
- 다운로드: url → redirect, file → 첨부 스트리밍
- 저장소 밖 경로 / symlink / 없는 파일 → 404
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Any

from src.app.services.access import can_view
from src.core.ids import generate_upload_name
from src.core.logging import emit_audit
from src.domain.constants import (
    DOWNLOAD_FALLBACK_NAME,
    UPLOAD_FALLBACK_NAME,
    UPLOAD_NAME_ALLOWED_PATTERN,
    UPLOAD_NAME_MAX_LENGTH,
    get_mime_type,
)
from src.domain.errors import ErrorCodes, FileMissingError, NotFoundError
from src.domain.schemas import (
    AppRecord,
    DownloadTarget,
    FileType,
    SessionUser,
    StoredFile,
)

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:([^,]*?);base64,(.+)$", re.DOTALL)
# RFC 2397: media type 생략 시 기본값
DEFAULT_DATA_URL_TYPE = "text/plain"
_UNSAFE_NAME_CHARS = re.compile(UPLOAD_NAME_ALLOWED_PATTERN)


# =============================================================================
# Helpers
# =============================================================================

def parse_data_url(data: Any) -> tuple[str, bytes] | None:
    """
    data URL 디코딩.

    Args:
        data: "data:<media type>[;param=value...];base64,<body>" 문자열

    Returns:
        (media_type, bytes) 또는 None (형식 오류). media_type은 파라미터 제외
    """
    if not isinstance(data, str):
        return None

    match = DATA_URL_PATTERN.match(data.strip())
    if not match:
        return None

    media_type = match.group(1).split(";", 1)[0].strip() or DEFAULT_DATA_URL_TYPE
    body = match.group(2)
    try:
        decoded = base64.b64decode("".join(body.split()), validate=True)
    except (binascii.Error, ValueError):
        return None
    return media_type, decoded


def sanitize_filename(name: Any) -> str:
    """
    저장용 파일명 정리.

    - 허용 문자 외 제거
    - 선행 점 제거 (숨김 파일/상대 경로 방지)
    - 최대 길이 제한
    - 결과가 비면 fallback
    """
    if not isinstance(name, str):
        return UPLOAD_FALLBACK_NAME

    safe = _UNSAFE_NAME_CHARS.sub("", name).lstrip(".")
    safe = safe[-UPLOAD_NAME_MAX_LENGTH:]
    return safe or UPLOAD_FALLBACK_NAME


def display_filename(name: Any, fallback: str) -> str:
    """원본 표시 파일명 (디렉터리 성분 제거)."""
    if isinstance(name, str):
        base = Path(name.replace("\\", "/")).name.strip()
        if base:
            return base
    return fallback


# =============================================================================
# Upload Service
# =============================================================================

class UploadService:
    """
    업로드 저장소 관리.

    구조:
    uploads/
    └── <epoch_ms>-<uid>-<safe_name>   # 레코드의 filePath가 참조
    """

    def __init__(self, upload_dir: Path):
        """
        Args:
            upload_dir: 업로드 저장 디렉터리
        """
        self.upload_dir = upload_dir

    def ingest(self, file_obj: dict[str, Any] | None) -> StoredFile | None:
        """
        인라인 파일 저장.

        Args:
            file_obj: {"name": ..., "base64": data URL}

        Returns:
            StoredFile, payload 없음/형식 오류 시 None
        """
        if not file_obj:
            return None

        parsed = parse_data_url(file_obj.get("base64"))
        if parsed is None:
            logger.warning("Skipping file ingestion: payload is not a base64 data URL")
            return None

        media_type, content = parsed
        original_name = file_obj.get("name")
        stored_name = generate_upload_name(sanitize_filename(original_name))

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        target = self.upload_dir / stored_name
        target.write_bytes(content)

        stored = StoredFile(
            file_path=stored_name,
            file_name=display_filename(original_name, stored_name),
            media_type=media_type,
            size=len(content),
        )
        logger.info(f"Stored upload {stored_name} ({stored.size} bytes, {media_type})")
        return stored

    def remove(self, file_path: str | None) -> bool:
        """
        업로드 파일 삭제 (없으면 무시).

        레코드 커밋 이후 호출되므로 삭제 실패는 경고만 남기고
        남은 파일은 scripts/purge_uploads.py가 정리.

        Returns:
            실제 삭제 여부
        """
        if not file_path:
            return False

        try:
            path = self.resolve_path(file_path)
        except FileMissingError:
            return False

        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove upload {file_path}: {e}")
            return False

        emit_audit("upload.remove", None, file_path=file_path)
        return True

    def resolve_path(self, file_path: str | None) -> Path:
        """
        filePath → 저장소 내부 실제 경로.

        경로 순회 방지: resolve된 경로가 upload_dir 내부인지 확인.

        Raises:
            FileMissingError: FILE_NOT_FOUND
        """
        if not file_path:
            raise FileMissingError(ErrorCodes.FILE_NOT_FOUND, "File not found")

        candidate = self.upload_dir / file_path
        try:
            resolved = candidate.resolve(strict=True)
            resolved.relative_to(self.upload_dir.resolve())
        except (ValueError, OSError):
            raise FileMissingError(
                ErrorCodes.FILE_NOT_FOUND,
                "File not found",
                file_path=file_path,
            ) from None

        if candidate.is_symlink() or not resolved.is_file():
            raise FileMissingError(
                ErrorCodes.FILE_NOT_FOUND,
                "File not found",
                file_path=file_path,
            )
        return resolved

    def resolve_download(self, app: AppRecord, user: SessionUser) -> DownloadTarget:
        """
        다운로드 해석.

        Args:
            app: 대상 레코드
            user: 요청 사용자

        Returns:
            DownloadTarget (redirect 또는 파일)

        Raises:
            NotFoundError: 숨겨진 레코드 (비 admin)
            FileMissingError: 저장 파일 없음
        """
        if not can_view(user, app):
            raise NotFoundError(ErrorCodes.APP_NOT_FOUND, "Not found", app_id=app.id)

        if app.file_type == FileType.URL:
            if not app.download_url:
                raise FileMissingError(
                    ErrorCodes.FILE_NOT_FOUND, "File not found", app_id=app.id
                )
            return DownloadTarget(redirect_url=app.download_url)

        path = self.resolve_path(app.file_path)
        filename = display_filename(app.file_name, DOWNLOAD_FALLBACK_NAME)
        return DownloadTarget(
            path=path,
            filename=filename,
            media_type=get_mime_type(filename),
        )
