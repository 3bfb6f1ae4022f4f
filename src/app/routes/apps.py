"""
Apps Routes: 카탈로그 CRUD + 다운로드.

- GET /api/apps?search&category&sort → {apps: [AppSummary]}      (session)
- POST /api/apps → 201 {app}                                     (admin)
- GET /api/apps/{app_id} → {app, related}; 404 hidden/missing    (session)
- PUT /api/apps/{app_id} → {app}; 404 missing                    (admin)
- DELETE /api/apps/{app_id} → {ok: true}; 404 missing            (admin)
- GET /api/apps/{app_id}/download → 302 또는 파일 스트림; 404     (session)
"""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse, Response

from src.app.dependencies import (
    get_catalog,
    get_uploads,
    read_json_body,
    require_admin,
    require_session,
)
from src.app.services.validate import parse_app_payload

api_router = APIRouter()


@api_router.get("")
async def list_apps(
    request: Request,
    search: str | None = None,
    category: str | None = None,
    sort: str | None = None,
) -> dict[str, Any]:
    """목록 (검색/필터/정렬)."""
    user = require_session(request)
    apps = get_catalog(request).list_apps(
        user,
        search=search or "",
        category=category or "",
        sort=sort,
    )
    return {"apps": apps}


@api_router.post("")
async def create_app(request: Request) -> JSONResponse:
    """앱 등록 (URL 또는 인라인 파일)."""
    user = require_admin(request)
    payload = parse_app_payload(await read_json_body(request))

    app = get_catalog(request).create_app(user, payload)
    return JSONResponse(status_code=201, content={"app": app})


@api_router.get("/{app_id}")
async def get_app(request: Request, app_id: str) -> dict[str, Any]:
    """상세 + 같은 카테고리 관련 앱 (views 증가)."""
    user = require_session(request)
    app, related = get_catalog(request).get_detail(user, app_id)
    return {"app": app, "related": related}


@api_router.put("/{app_id}")
async def update_app(request: Request, app_id: str) -> dict[str, Any]:
    """앱 수정 (본문에 있는 필드만)."""
    user = require_admin(request)
    payload = parse_app_payload(await read_json_body(request), partial=True)

    app = get_catalog(request).update_app(user, app_id, payload)
    return {"app": app}


@api_router.delete("/{app_id}")
async def delete_app(request: Request, app_id: str) -> dict[str, Any]:
    """앱 삭제."""
    user = require_admin(request)
    get_catalog(request).delete_app(user, app_id)
    return {"ok": True}


@api_router.get("/{app_id}/download")
async def download_app(request: Request, app_id: str) -> Response:
    """다운로드: url → 302 redirect, file → 첨부 스트리밍."""
    user = require_session(request)
    app = get_catalog(request).get_visible(user, app_id)
    target = get_uploads(request).resolve_download(app, user)

    if target.is_redirect:
        return RedirectResponse(url=target.redirect_url, status_code=302)

    return FileResponse(
        path=target.path,
        filename=target.filename,
        media_type=target.media_type,
    )
