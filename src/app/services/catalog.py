"""
Catalog Service: 조회(검색/필터/정렬) + admin 변경.

조회 순서:
1. 가시 레코드 (역할 기반)
2. search: title + description + tags 연결 문자열에 대한 대소문자 무시 부분 일치
3. category: 정확히 일치
4. sort: newest(기본) / oldest / title, 동일 키는 저장 순서 유지 (stable)
5. AppSummary projection

변경 규칙:
- 모든 변경은 RecordStore.transaction() 안에서 수행
- 상세 조회 성공 시에만 views += 1
- 삭제/파일 교체 시 이전 업로드 파일 제거
"""

from datetime import UTC, datetime
from typing import Any

from src.app.services.access import can_view, visible_apps
from src.app.services.uploads import UploadService
from src.app.services.validate import AppPayload
from src.core.ids import generate_app_id
from src.core.logging import emit_audit
from src.core.store import RecordStore
from src.domain.constants import (
    DEFAULT_SORT,
    RELATED_APPS_LIMIT,
    SORT_OLDEST,
    SORT_OPTIONS,
    SORT_TITLE,
)
from src.domain.errors import ErrorCodes, NotFoundError, ValidationError
from src.domain.schemas import AppRecord, FileType, SessionUser


# =============================================================================
# Query Helpers
# =============================================================================

def upload_timestamp(app: AppRecord) -> float:
    """uploadDate → epoch seconds (파싱 실패 시 0)."""
    try:
        parsed = datetime.fromisoformat(app.upload_date)
    except (TypeError, ValueError):
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def matches_search(app: AppRecord, search: str) -> bool:
    """title/description/tags 연결 문자열 부분 일치 (대소문자 무시)."""
    haystack = " ".join([app.title, app.description, *app.tags])
    return search.casefold() in haystack.casefold()


def sort_apps(apps: list[AppRecord], sort: str | None) -> list[AppRecord]:
    """
    정렬 (stable).

    - newest: uploadDate 내림차순 (알 수 없는 값도 newest)
    - oldest: uploadDate 오름차순
    - title: 제목 사전순 (대소문자 무시)
    """
    if sort not in SORT_OPTIONS:
        sort = DEFAULT_SORT

    if sort == SORT_TITLE:
        return sorted(apps, key=lambda a: a.title.casefold())
    if sort == SORT_OLDEST:
        return sorted(apps, key=upload_timestamp)
    # sorted(reverse=True)도 동일 키의 원래 순서를 유지함
    return sorted(apps, key=upload_timestamp, reverse=True)


def filter_apps(
    apps: list[AppRecord],
    search: str | None = None,
    category: str | None = None,
) -> list[AppRecord]:
    """검색어/카테고리 필터."""
    if search:
        apps = [a for a in apps if matches_search(a, search)]
    if category:
        apps = [a for a in apps if a.category == category]
    return apps


# =============================================================================
# Catalog Service
# =============================================================================

class CatalogService:
    """
    카탈로그 조회/변경.

    권한 확인(세션, admin)은 라우트 경계에서 끝난 상태로 호출됨.
    가시성(비공개 레코드 숨김)은 여기서 적용.
    """

    def __init__(self, store: RecordStore, uploads: UploadService):
        """
        Args:
            store: Record Store
            uploads: 업로드 저장소
        """
        self.store = store
        self.uploads = uploads

    # =========================================================================
    # Queries
    # =========================================================================

    def list_apps(
        self,
        user: SessionUser,
        search: str | None = None,
        category: str | None = None,
        sort: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        목록 조회.

        Returns:
            AppSummary 리스트
        """
        db = self.store.load()
        apps = visible_apps(user, db.apps)
        apps = filter_apps(apps, search=search, category=category)
        return [a.to_summary() for a in sort_apps(apps, sort)]

    def categories(self, user: SessionUser) -> list[str]:
        """
        가시 레코드의 카테고리 (중복 제거, 첫 등장 순서).

        클라이언트는 순서에 의존하면 안 됨.
        """
        db = self.store.load()
        seen: dict[str, None] = {}
        for app in visible_apps(user, db.apps):
            if app.category:
                seen.setdefault(app.category, None)
        return list(seen)

    def get_visible(self, user: SessionUser, app_id: str) -> AppRecord:
        """
        가시 레코드 단건 조회 (부수효과 없음).

        Raises:
            NotFoundError: 없음 또는 숨겨진 레코드
        """
        app = self.store.load().find_app(app_id)
        if app is None or not can_view(user, app):
            raise NotFoundError(ErrorCodes.APP_NOT_FOUND, "Not found", app_id=app_id)
        return app

    def get_detail(
        self, user: SessionUser, app_id: str
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """
        상세 조회 + views 증가.

        Returns:
            (AppSummary, related AppSummary 리스트 최대 3개)

        Raises:
            NotFoundError: 없음 또는 숨겨진 레코드 (views 변화 없음)
        """
        with self.store.transaction() as db:
            app = db.find_app(app_id)
            if app is None or not can_view(user, app):
                raise NotFoundError(ErrorCodes.APP_NOT_FOUND, "Not found", app_id=app_id)

            app.views += 1

            related = [
                other.to_summary()
                for other in visible_apps(user, db.apps)
                if other.id != app.id and other.category == app.category
            ][:RELATED_APPS_LIMIT]
            summary = app.to_summary()

        return summary, related

    # =========================================================================
    # Mutations (admin)
    # =========================================================================

    def create_app(self, actor: SessionUser, payload: AppPayload) -> dict[str, Any]:
        """
        레코드 생성.

        파일 payload가 유효하면 file 모드, 아니면 downloadUrl로 url 모드.

        Raises:
            ValidationError: 파일도 URL도 없음
        """
        stored = self.uploads.ingest(payload.file)
        if stored is None and not payload.download_url:
            raise ValidationError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Either 'downloadUrl' or a valid 'file' payload is required",
                field="downloadUrl",
            )

        record = AppRecord(
            id=generate_app_id(),
            title=payload.title or "",
            description=payload.description or "",
            version=payload.version or "",
            category=payload.category or "",
            tags=list(payload.tags or []),
            upload_date=datetime.now(UTC).isoformat(),
            is_published=bool(payload.is_published),
            featured=bool(payload.featured),
            views=0,
        )
        if stored is not None:
            record.set_stored_file(stored.file_path, stored.file_name)
        else:
            record.set_download_url(payload.download_url or "")

        try:
            with self.store.transaction() as db:
                db.apps.append(record)
        except Exception:
            if stored is not None:
                self.uploads.remove(stored.file_path)
            raise

        emit_audit(
            "app.create",
            actor.username,
            app_id=record.id,
            file_type=record.file_type.value,
            published=record.is_published,
        )
        return record.to_summary()

    def update_app(
        self, actor: SessionUser, app_id: str, payload: AppPayload
    ) -> dict[str, Any]:
        """
        레코드 수정 (본문에 있는 필드만 반영).

        Raises:
            NotFoundError: 없음
        """
        stored = self.uploads.ingest(payload.file)
        replaced_file: str | None = None

        try:
            with self.store.transaction() as db:
                record = db.find_app(app_id)
                if record is None:
                    raise NotFoundError(ErrorCodes.APP_NOT_FOUND, "Not found", app_id=app_id)

                previous_file = record.file_path if record.file_type == FileType.FILE else None
                _apply_fields(record, payload)

                if stored is not None:
                    record.set_stored_file(stored.file_path, stored.file_name)
                elif payload.download_url:
                    record.set_download_url(payload.download_url)

                if previous_file and previous_file != record.file_path:
                    replaced_file = previous_file
                summary = record.to_summary()
        except Exception:
            if stored is not None:
                self.uploads.remove(stored.file_path)
            raise

        if replaced_file:
            self.uploads.remove(replaced_file)

        emit_audit(
            "app.update",
            actor.username,
            app_id=app_id,
            file_type=summary["fileType"],
            published=summary["isPublished"],
        )
        return summary

    def delete_app(self, actor: SessionUser, app_id: str) -> None:
        """
        레코드 삭제 + 업로드 파일 제거.

        Raises:
            NotFoundError: 없음
        """
        with self.store.transaction() as db:
            index = next((i for i, a in enumerate(db.apps) if a.id == app_id), None)
            if index is None:
                raise NotFoundError(ErrorCodes.APP_NOT_FOUND, "Not found", app_id=app_id)
            removed = db.apps.pop(index)

        if removed.file_type == FileType.FILE:
            self.uploads.remove(removed.file_path)

        emit_audit("app.delete", actor.username, app_id=app_id)


def _apply_fields(record: AppRecord, payload: AppPayload) -> None:
    """payload에서 값이 있는 필드만 반영."""
    if payload.title is not None:
        record.title = payload.title
    if payload.description is not None:
        record.description = payload.description
    if payload.version is not None:
        record.version = payload.version
    if payload.category is not None:
        record.category = payload.category
    if payload.tags is not None:
        record.tags = list(payload.tags)
    if payload.is_published is not None:
        record.is_published = payload.is_published
    if payload.featured is not None:
        record.featured = payload.featured
