"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload --port 3000
- 프로덕션: python -m src.app.main
"""

import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.config import load_runtime_config, storage_paths

# Routes
from src.app.routes import apps, auth, categories
from src.app.services import AuthService, CatalogService, UploadService
from src.core.logging import DEFAULT_LOG_FORMAT, configure_logging
from src.core.sessions import MemorySessionStore, SessionStore
from src.core.store import RecordStore
from src.domain.constants import DEFAULT_STORE_LOCK_TIMEOUT, UPLOADS_URL_PREFIX
from src.domain.errors import CatalogError, ErrorCodes

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 로깅 설정, 저장소 디렉터리 생성, seed 초기화
    종료 시: 세션은 메모리에만 있으므로 정리할 리소스 없음
    """
    config = app.state.config
    log_config = config.get("logging", {})
    configure_logging(
        log_config.get("level", "INFO"),
        log_config.get("format", DEFAULT_LOG_FORMAT),
    )

    store: RecordStore = app.state.store
    uploads: UploadService = app.state.uploads
    uploads.upload_dir.mkdir(parents=True, exist_ok=True)
    store.load()

    logger.info(f"Record store: {store.db_path}")
    logger.info(f"Upload storage: {uploads.upload_dir}")
    logger.info("Demo accounts: admin/admin123 and user/user123")

    yield


# =============================================================================
# Error Handlers
# =============================================================================


async def handle_catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
    """CatalogError → {"message", "code"}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """프레임워크 HTTPException (없는 라우트 등) → 동일 에러 형태."""
    if exc.status_code == 404:
        content = {"message": "Route not found", "code": ErrorCodes.ROUTE_NOT_FOUND}
    elif exc.status_code == 405:
        content = {"message": "Method not allowed", "code": ErrorCodes.METHOD_NOT_ALLOWED}
    else:
        content = {"message": str(exc.detail), "code": f"HTTP_{exc.status_code}"}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """쿼리 파라미터 등 FastAPI 검증 실패 → 400."""
    logger.warning(f"Request validation failed for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request parameters", "code": ErrorCodes.INVALID_FIELD},
    )


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    config: dict | None = None,
    sessions: SessionStore | None = None,
) -> FastAPI:
    """
    애플리케이션 생성.

    Args:
        config: 설정 dict (None이면 default.yaml + 환경 변수)
        sessions: 세션 저장소 (None이면 MemorySessionStore)

    Returns:
        FastAPI 인스턴스 (app.state에 서비스 주입 완료)
    """
    if config is None:
        config = load_runtime_config()

    db_path, upload_dir = storage_paths(config)
    lock_timeout = config.get("store", {}).get("lock_timeout", DEFAULT_STORE_LOCK_TIMEOUT)

    app = FastAPI(
        title="App Catalog",
        description="세션 인증 기반 앱 카탈로그 API",
        version="0.1.0",
        lifespan=lifespan,
    )

    store = RecordStore(db_path, lock_timeout=lock_timeout)
    uploads = UploadService(upload_dir)
    if sessions is None:
        sessions = MemorySessionStore()

    app.state.config = config
    app.state.store = store
    app.state.uploads = uploads
    app.state.sessions = sessions
    app.state.auth = AuthService(store, sessions)
    app.state.catalog = CatalogService(store, uploads)

    app.add_exception_handler(CatalogError, handle_catalog_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    @app.middleware("http")
    async def guard_and_log(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """업로드 경로 직접 접근 차단 + 요청 로그."""
        started = time.perf_counter()

        if request.method == "GET" and request.url.path.startswith(UPLOADS_URL_PREFIX):
            response: Response = JSONResponse(
                status_code=403,
                content={
                    "message": "Direct file access blocked",
                    "code": ErrorCodes.DIRECT_FILE_ACCESS_BLOCKED,
                },
            )
        else:
            response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
        return response

    # API 라우트
    app.include_router(auth.api_router, prefix="/api/auth", tags=["Auth API"])
    app.include_router(categories.api_router, prefix="/api/categories", tags=["Categories API"])
    app.include_router(apps.api_router, prefix="/api/apps", tags=["Apps API"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    return app


# =============================================================================
# App Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    server_config = app.state.config.get("server", {})
    uvicorn.run(
        "src.app.main:app",
        host=server_config.get("host", DEFAULT_HOST),
        port=server_config.get("port", DEFAULT_PORT),
    )
