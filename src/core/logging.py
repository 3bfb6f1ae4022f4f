"""
Logging: 로거 설정 + 감사(audit) 이벤트

규칙:
- 모듈별 logger = logging.getLogger(__name__)
- 감사 이벤트: action, actor 필수 + 컨텍스트 key=value
- 비밀번호, 세션 토큰은 절대 기록하지 않음
"""

import logging
from typing import Any

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

AUDIT_LOGGER_NAME = "src.audit"

# configure_logging()이 설치한 핸들러 표식
_HANDLER_MARKER = "_catalog_handler"

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


def configure_logging(
    level: str | int = "INFO",
    fmt: str = DEFAULT_LOG_FORMAT,
) -> None:
    """
    루트 로거 설정.

    여러 번 호출해도 핸들러는 하나만 유지 (app factory 재호출, 테스트).

    Args:
        level: 로그 레벨 (이름 또는 숫자)
        fmt: 포맷 문자열
    """
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    for handler in root.handlers:
        if getattr(handler, _HANDLER_MARKER, False):
            handler.setFormatter(logging.Formatter(fmt, datefmt=DEFAULT_DATE_FORMAT))
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt, datefmt=DEFAULT_DATE_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)


def format_audit_event(action: str, actor: str | None, **context: Any) -> str:
    """
    감사 이벤트 메시지 생성.

    포맷: "action=<action> actor=<actor> k1=v1 k2=v2"
    """
    parts = [f"action={action}", f"actor={actor or '-'}"]
    parts.extend(f"{k}={v!r}" for k, v in context.items())
    return " ".join(parts)


def emit_audit(action: str, actor: str | None, **context: Any) -> None:
    """
    감사 이벤트 기록.

    Args:
        action: 이벤트 이름 (예: app.create, auth.login_failed)
        actor: 수행자 username (없으면 "-")
        **context: 추가 컨텍스트 (app_id 등)
    """
    audit_logger.info(format_audit_event(action, actor, **context))
