"""
Auth Routes: 로그인/로그아웃/현재 사용자.

- POST /api/auth/login → 200 {user} + Set-Cookie sid; 401 invalid
- POST /api/auth/logout → 200 {ok: true}, 쿠키 만료
- GET /api/auth/me → 200 {user} 또는 401 {user: null}

쿠키: sid, HttpOnly, SameSite=Strict, Path=/
"""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.app.dependencies import current_user, get_auth, get_session_id, read_json_body
from src.app.services.validate import parse_credentials
from src.domain.constants import SESSION_COOKIE_NAME

api_router = APIRouter()


@api_router.post("/login")
async def login(request: Request) -> JSONResponse:
    """로그인 → 세션 쿠키 발급."""
    body = await read_json_body(request)
    credentials = parse_credentials(body)

    session_id, user = get_auth(request).login(credentials)

    response = JSONResponse(content={"user": user.to_dict()})
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        samesite="strict",
        path="/",
    )
    return response


@api_router.post("/logout")
async def logout(request: Request) -> JSONResponse:
    """로그아웃 (idempotent)."""
    get_auth(request).logout(get_session_id(request))

    response = JSONResponse(content={"ok": True})
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="strict",
    )
    return response


@api_router.get("/me")
async def me(request: Request) -> Any:
    """현재 세션 사용자."""
    user = current_user(request)
    if user is None:
        return JSONResponse(status_code=401, content={"user": None})
    return {"user": user.to_dict()}
