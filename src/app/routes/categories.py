"""
Categories Routes.

- GET /api/categories → {categories: [...]} (가시 레코드 기준, 순서 보장 없음)
"""

from typing import Any

from fastapi import APIRouter, Request

from src.app.dependencies import get_catalog, require_session

api_router = APIRouter()


@api_router.get("")
async def list_categories(request: Request) -> dict[str, Any]:
    """카테고리 목록."""
    user = require_session(request)
    return {"categories": get_catalog(request).categories(user)}
