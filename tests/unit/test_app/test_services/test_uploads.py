"""
test_uploads.py - Upload Service 테스트

DoD:
- data URL 디코딩 (형식 오류 → None)
- 파일명 sanitize, 저장 이름 충돌 없음
- 저장소 밖 경로 / symlink / 없는 파일 → 404
- 다운로드 해석: url → redirect, file → 경로 + 원본 파일명
"""

import logging
import os
from pathlib import Path

import pytest

from src.app.services.uploads import (
    UploadService,
    display_filename,
    parse_data_url,
    sanitize_filename,
)
from src.domain.errors import ErrorCodes, FileMissingError, NotFoundError
from src.domain.schemas import AppRecord

# =============================================================================
# Helpers
# =============================================================================


class TestParseDataUrl:
    """parse_data_url 함수 테스트."""

    def test_valid(self):
        """media type + 디코딩 바이트."""
        assert parse_data_url("data:text/plain;base64,aGVsbG8=") == ("text/plain", b"hello")

    def test_media_type_parameters(self):
        """charset 등 파라미터 허용, media type만 반환."""
        parsed = parse_data_url("data:text/plain;charset=utf-8;base64,aGVsbG8=")

        assert parsed == ("text/plain", b"hello")

    def test_ingest_with_parameters(self, uploads: UploadService, upload_dir: Path):
        """파라미터 있는 data URL도 저장됨."""
        stored = uploads.ingest(
            {"name": "notes.txt", "base64": "data:text/plain;charset=utf-8;base64,aGVsbG8="}
        )

        assert stored is not None
        assert stored.media_type == "text/plain"
        assert (upload_dir / stored.file_path).read_bytes() == b"hello"

    @pytest.mark.parametrize(
        "value",
        [
            None,
            123,
            "",
            "aGVsbG8=",
            "data:text/plain,hello",
            "data:text/plain;base64,!!!not-base64!!!",
        ],
    )
    def test_invalid(self, value):
        """형식 오류 → None."""
        assert parse_data_url(value) is None


class TestSanitizeFilename:
    """sanitize_filename 함수 테스트."""

    def test_strips_disallowed_characters(self):
        """허용 문자만 남김."""
        assert sanitize_filename("my app (v2).zip") == "myappv2.zip"

    def test_path_components_removed(self):
        """경로 구분자/상위 경로 제거."""
        assert sanitize_filename("../../etc/passwd") == "etcpasswd"

    def test_fallback_when_empty(self):
        """결과가 비면 fallback."""
        assert sanitize_filename("한글.") == "upload.bin"
        assert sanitize_filename(None) == "upload.bin"

    def test_length_limited(self):
        """최대 길이 제한 (확장자 쪽 유지)."""
        name = "a" * 300 + ".zip"

        safe = sanitize_filename(name)

        assert len(safe) == 100
        assert safe.endswith(".zip")


class TestDisplayFilename:
    """display_filename 함수 테스트."""

    def test_keeps_original_name(self):
        """원본 표시 이름 유지."""
        assert display_filename("내 앱.zip", "x") == "내 앱.zip"

    def test_drops_directories(self):
        """디렉터리 성분 제거."""
        assert display_filename("C:\\Users\\me\\app.zip", "x") == "app.zip"

    def test_fallback(self):
        """비어 있으면 fallback."""
        assert display_filename("", "fallback.bin") == "fallback.bin"
        assert display_filename(None, "fallback.bin") == "fallback.bin"


# =============================================================================
# UploadService
# =============================================================================


class TestIngest:
    """ingest 테스트."""

    def test_stores_decoded_bytes(self, uploads: UploadService, upload_dir: Path, file_payload):
        """디코딩된 바이트를 upload_dir에 저장."""
        stored = uploads.ingest(file_payload(name="My App.zip", content=b"zip-bytes"))

        assert stored is not None
        assert stored.file_name == "My App.zip"
        assert stored.file_path.endswith("-MyApp.zip")
        assert stored.media_type == "application/zip"
        assert stored.size == len(b"zip-bytes")
        assert (upload_dir / stored.file_path).read_bytes() == b"zip-bytes"

    def test_same_name_twice_no_overwrite(self, uploads: UploadService, file_payload):
        """같은 이름 두 번 → 다른 저장 파일."""
        first = uploads.ingest(file_payload(content=b"one"))
        second = uploads.ingest(file_payload(content=b"two"))

        assert first.file_path != second.file_path

    @pytest.mark.parametrize(
        "file_obj",
        [None, {}, {"name": "a.zip"}, {"name": "a.zip", "base64": "not a data url"}],
    )
    def test_skips_missing_or_malformed(self, uploads: UploadService, upload_dir: Path, file_obj):
        """payload 없음/형식 오류 → None, 파일 생성 없음."""
        assert uploads.ingest(file_obj) is None
        assert list(upload_dir.iterdir()) == []


class TestResolvePath:
    """resolve_path 테스트 (경로 순회 방지)."""

    def test_existing_file(self, uploads: UploadService, upload_dir: Path):
        """저장소 내부 파일 → 실제 경로."""
        (upload_dir / "x.zip").write_bytes(b"x")

        assert uploads.resolve_path("x.zip") == (upload_dir / "x.zip").resolve()

    @pytest.mark.parametrize("file_path", [None, "", "missing.zip", "../outside.txt"])
    def test_missing_or_outside(self, uploads: UploadService, tmp_path: Path, file_path):
        """없음 / 저장소 밖 → FILE_NOT_FOUND."""
        (tmp_path / "outside.txt").write_text("secret")

        with pytest.raises(FileMissingError) as exc_info:
            uploads.resolve_path(file_path)

        assert exc_info.value.code == ErrorCodes.FILE_NOT_FOUND
        assert exc_info.value.status_code == 404

    def test_absolute_path_rejected(self, uploads: UploadService, tmp_path: Path):
        """절대 경로 → 저장소 밖."""
        outside = tmp_path / "outside.txt"
        outside.write_text("secret")

        with pytest.raises(FileMissingError):
            uploads.resolve_path(str(outside))

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlink 미지원")
    def test_symlink_rejected(self, uploads: UploadService, upload_dir: Path):
        """저장소 내부 symlink → 거부."""
        (upload_dir / "real.zip").write_bytes(b"x")
        (upload_dir / "link.zip").symlink_to(upload_dir / "real.zip")

        with pytest.raises(FileMissingError):
            uploads.resolve_path("link.zip")

    def test_directory_rejected(self, uploads: UploadService, upload_dir: Path):
        """디렉터리 → 거부."""
        (upload_dir / "sub").mkdir()

        with pytest.raises(FileMissingError):
            uploads.resolve_path("sub")


class TestRemove:
    """remove 테스트."""

    def test_removes_file(self, uploads: UploadService, upload_dir: Path):
        """존재하는 파일 삭제 → True."""
        (upload_dir / "x.zip").write_bytes(b"x")

        assert uploads.remove("x.zip") is True
        assert not (upload_dir / "x.zip").exists()

    def test_missing_is_noop(self, uploads: UploadService):
        """없는 파일 → False, 에러 없음."""
        assert uploads.remove("missing.zip") is False
        assert uploads.remove(None) is False

    def test_outside_never_removed(self, uploads: UploadService, tmp_path: Path):
        """저장소 밖 파일은 삭제하지 않음."""
        outside = tmp_path / "outside.txt"
        outside.write_text("keep")

        assert uploads.remove("../outside.txt") is False
        assert outside.exists()

    def test_unlink_failure_logged(
        self,
        uploads: UploadService,
        upload_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ):
        """삭제 실패 (OSError) → False + 경고, 예외 전파 없음."""
        (upload_dir / "busy.zip").write_bytes(b"x")

        def fail_unlink(self, missing_ok=False):
            raise PermissionError("busy")

        monkeypatch.setattr(Path, "unlink", fail_unlink)

        with caplog.at_level(logging.WARNING):
            assert uploads.remove("busy.zip") is False

        assert "Failed to remove upload busy.zip" in caplog.text


class TestResolveDownload:
    """resolve_download 테스트."""

    def test_url_record_redirects(self, uploads: UploadService, regular_user):
        """url 레코드 → redirect."""
        app = AppRecord(id="a", title="A", is_published=True)
        app.set_download_url("https://example.com/a")

        target = uploads.resolve_download(app, regular_user)

        assert target.is_redirect
        assert target.redirect_url == "https://example.com/a"

    def test_file_record_streams(self, uploads: UploadService, upload_dir: Path, regular_user):
        """file 레코드 → 경로 + 원본 파일명 + MIME."""
        (upload_dir / "1-abcd-app.pdf").write_bytes(b"%PDF")
        app = AppRecord(id="a", title="A", is_published=True)
        app.set_stored_file("1-abcd-app.pdf", "Manual.pdf")

        target = uploads.resolve_download(app, regular_user)

        assert not target.is_redirect
        assert target.path == (upload_dir / "1-abcd-app.pdf").resolve()
        assert target.filename == "Manual.pdf"
        assert target.media_type == "application/pdf"

    def test_missing_stored_file(self, uploads: UploadService, admin_user):
        """저장 파일 없음 → FILE_NOT_FOUND."""
        app = AppRecord(id="a", title="A", is_published=True)
        app.set_stored_file("gone.zip", "gone.zip")

        with pytest.raises(FileMissingError):
            uploads.resolve_download(app, admin_user)

    def test_hidden_record_for_user(self, uploads: UploadService, regular_user):
        """비공개 레코드 + user → APP_NOT_FOUND."""
        app = AppRecord(id="a", title="A", is_published=False)
        app.set_download_url("https://example.com/a")

        with pytest.raises(NotFoundError) as exc_info:
            uploads.resolve_download(app, regular_user)

        assert exc_info.value.code == ErrorCodes.APP_NOT_FOUND
