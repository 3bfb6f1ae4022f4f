"""
Application Services.

역할:
- auth: 로그인/로그아웃 (Credential Store + Session Manager)
- access: 역할 기반 가시성/권한
- catalog: 목록/검색/정렬, 상세, admin 변경
- uploads: 인라인 파일 저장, 다운로드 해석
- validate: 요청 본문 스키마 검증
"""

from .auth import AuthService
from .catalog import CatalogService
from .uploads import UploadService

__all__ = [
    "AuthService",
    "CatalogService",
    "UploadService",
]
