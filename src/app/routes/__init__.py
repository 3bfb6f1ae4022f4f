"""
FastAPI Routes.

API 라우트 (JSON, 세션 쿠키 인증)
"""

from . import apps, auth, categories

__all__ = ["apps", "auth", "categories"]
