"""
Data schemas for the catalog.

규칙:
- 저장 문서(db.json) 키는 camelCase, 파이썬 필드는 snake_case
- AppRecord: download_url ↔ (file_path, file_name) 중 정확히 하나만 존재
- AppSummary: 클라이언트 노출용 projection (file_path 제외)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Enums
# =============================================================================

class Role(str, Enum):
    """사용자 역할."""
    ADMIN = "admin"
    USER = "user"


class FileType(str, Enum):
    """다운로드 방식 판별자."""
    URL = "url"    # 외부 URL로 redirect
    FILE = "file"  # 업로드 저장소에서 스트리밍


# =============================================================================
# Users & Sessions
# =============================================================================

@dataclass
class User:
    """저장된 사용자 (seed 데이터로만 생성)."""
    id: str
    username: str
    role: Role
    password_hash: str  # "salt:hash"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "passwordHash": self.password_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            role=Role(data.get("role", Role.USER.value)),
            password_hash=data["passwordHash"],
        )

    def to_session_user(self) -> "SessionUser":
        return SessionUser(id=self.id, username=self.username, role=self.role)


@dataclass(frozen=True)
class SessionUser:
    """세션에 바인딩되는 사용자 신원 (비밀번호 해시 제외)."""
    id: str
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
        }


@dataclass
class Session:
    """서버측 세션 레코드."""
    session_id: str
    user: SessionUser
    expires_at: float  # epoch seconds (로그인 시각 + TTL)

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


# =============================================================================
# App Records
# =============================================================================

@dataclass
class AppRecord:
    """
    카탈로그 항목.

    불변식:
    - file_type=url  → download_url 존재, file_path/file_name 없음
    - file_type=file → file_path/file_name 존재, download_url 없음
    - views는 증가만 함 (상세 조회 성공 시)
    """
    id: str
    title: str
    description: str = ""
    version: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    upload_date: str = ""  # ISO 8601 (UTC)
    is_published: bool = False
    featured: bool = False
    views: int = 0
    file_type: FileType = FileType.URL
    download_url: str | None = None
    file_path: str | None = None  # upload_dir 기준 상대 경로
    file_name: str | None = None  # 원본 표시 파일명

    def set_download_url(self, url: str) -> None:
        """URL 모드로 전환 (파일 필드 제거)."""
        self.file_type = FileType.URL
        self.download_url = url
        self.file_path = None
        self.file_name = None

    def set_stored_file(self, file_path: str, file_name: str) -> None:
        """파일 모드로 전환 (URL 필드 제거)."""
        self.file_type = FileType.FILE
        self.file_path = file_path
        self.file_name = file_name
        self.download_url = None

    def to_dict(self) -> dict[str, Any]:
        """저장 문서용 (camelCase)."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "version": self.version,
            "category": self.category,
            "tags": list(self.tags),
            "uploadDate": self.upload_date,
            "isPublished": self.is_published,
            "featured": self.featured,
            "views": self.views,
            "fileType": self.file_type.value,
        }
        if self.file_type == FileType.FILE:
            data["filePath"] = self.file_path
            data["fileName"] = self.file_name
        else:
            data["downloadUrl"] = self.download_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppRecord":
        file_type = data.get("fileType")
        if file_type is None:
            file_type = FileType.FILE.value if data.get("filePath") else FileType.URL.value

        record = cls(
            id=data["id"],
            title=data.get("title") or "",
            description=data.get("description") or "",
            version=data.get("version") or "",
            category=data.get("category") or "",
            tags=list(data.get("tags") or []),
            upload_date=data.get("uploadDate") or "",
            is_published=bool(data.get("isPublished", False)),
            featured=bool(data.get("featured", False)),
            views=int(data.get("views") or 0),
        )
        if FileType(file_type) == FileType.FILE:
            record.set_stored_file(data.get("filePath") or "", data.get("fileName") or "")
        else:
            record.set_download_url(data.get("downloadUrl") or "")
        return record

    def to_summary(self) -> dict[str, Any]:
        """
        클라이언트 노출용 AppSummary.

        file 타입은 내부 다운로드 엔드포인트로 합성, 저장 경로는 노출 안 함.
        """
        if self.file_type == FileType.FILE:
            download_url = f"/api/apps/{self.id}/download"
        else:
            download_url = self.download_url

        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "version": self.version,
            "category": self.category,
            "tags": list(self.tags),
            "uploadDate": self.upload_date,
            "isPublished": self.is_published,
            "featured": self.featured,
            "views": self.views,
            "fileType": self.file_type.value,
            "fileName": self.file_name,
            "downloadUrl": download_url,
        }


# =============================================================================
# Database Snapshot
# =============================================================================

@dataclass
class Database:
    """Record Store 전체 스냅샷."""
    users: list[User] = field(default_factory=list)
    apps: list[AppRecord] = field(default_factory=list)

    def find_user(self, username: str) -> User | None:
        for user in self.users:
            if user.username == username:
                return user
        return None

    def find_app(self, app_id: str) -> AppRecord | None:
        for app in self.apps:
            if app.id == app_id:
                return app
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": [u.to_dict() for u in self.users],
            "apps": [a.to_dict() for a in self.apps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Database":
        return cls(
            users=[User.from_dict(u) for u in data.get("users", [])],
            apps=[AppRecord.from_dict(a) for a in data.get("apps", [])],
        )


# =============================================================================
# Upload / Download
# =============================================================================

@dataclass
class StoredFile:
    """ingest() 결과."""
    file_path: str  # upload_dir 기준 상대 경로
    file_name: str  # 원본 표시 파일명
    media_type: str
    size: int


@dataclass
class DownloadTarget:
    """
    resolve_download() 결과.

    redirect_url 또는 (path, filename) 중 하나.
    """
    redirect_url: str | None = None
    path: Any = None  # pathlib.Path
    filename: str | None = None
    media_type: str = "application/octet-stream"

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None
