"""
설정 로드.

우선순위 (높은 것부터):
1. 환경 변수 (.env 포함)
2. default.yaml
3. src.domain.constants 기본값

서버(main.py)와 운영 스크립트(scripts/purge_uploads.py)가 같은 경로를 보도록
경로 해석도 여기서 담당.
"""

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.domain.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_DB_FILENAME,
    DEFAULT_UPLOAD_DIR,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "default.yaml"


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def apply_env_overrides(config: dict) -> dict:
    """
    환경 변수 오버라이드 (.env 포함).

    - CATALOG_DATA_DIR → paths.data_dir
    - CATALOG_UPLOAD_DIR → paths.upload_dir
    - CATALOG_LOG_LEVEL → logging.level
    - PORT → server.port
    """
    config = copy.deepcopy(config)

    overrides = (
        ("CATALOG_DATA_DIR", "paths", "data_dir", str),
        ("CATALOG_UPLOAD_DIR", "paths", "upload_dir", str),
        ("CATALOG_LOG_LEVEL", "logging", "level", str),
        ("PORT", "server", "port", int),
    )
    for env_name, section, key, cast in overrides:
        value = os.environ.get(env_name)
        if value:
            config.setdefault(section, {})[key] = cast(value)

    return config


def load_runtime_config(config_path: Path | None = None) -> dict:
    """.env 로드 → default.yaml → 환경 변수 오버라이드."""
    load_dotenv()
    return apply_env_overrides(load_config(config_path))


def resolve_path(value: str | Path | None, default: str) -> Path:
    """상대 경로는 프로젝트 루트 기준으로 해석."""
    path = Path(value) if value else Path(default)
    return path if path.is_absolute() else PROJECT_ROOT / path


def storage_paths(config: dict) -> tuple[Path, Path]:
    """
    설정 → (db_path, upload_dir).

    Returns:
        db.json 경로, 업로드 디렉터리
    """
    paths = config.get("paths", {})
    data_dir = resolve_path(paths.get("data_dir"), DEFAULT_DATA_DIR)
    upload_dir = resolve_path(paths.get("upload_dir"), DEFAULT_UPLOAD_DIR)
    return data_dir / paths.get("db_filename", DEFAULT_DB_FILENAME), upload_dir
