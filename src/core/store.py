"""
Record Store: db.json (users + apps 전체 스냅샷)

규칙:
- db.json = 영속 상태의 유일한 진실 원천, Record Store만 쓴다
- 쓰기는 문서 전체 교체 (patch 없음)
- 원자적 쓰기: temp → fsync → rename
- 모든 load → mutate → save 는 transaction() 락 안에서 수행
  (동시 admin 쓰기의 lost update 방지, 프로세스 간에도 유효)
- 파일 없음: seed 데이터로 초기화 후 저장
"""

import json
import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from src.core.ids import generate_app_id
from src.core.security import hash_password
from src.domain.constants import DEFAULT_STORE_LOCK_TIMEOUT, STORE_LOCK_SUFFIX
from src.domain.errors import ErrorCodes, StoreError
from src.domain.schemas import AppRecord, Database, FileType, Role, User

logger = logging.getLogger(__name__)


# =============================================================================
# Seed Data
# =============================================================================

SEED_USERS = (
    ("u-admin", "admin", Role.ADMIN, "admin123"),
    ("u-user", "user", Role.USER, "user123"),
)


def build_seed_database() -> Database:
    """
    초기 데이터 생성.

    - 사용자: admin/admin123 (admin), user/user123 (user)
    - 샘플 앱 1개 (published + featured)
    """
    users = [
        User(id=user_id, username=username, role=role, password_hash=hash_password(password))
        for user_id, username, role, password in SEED_USERS
    ]

    sample = AppRecord(
        id=generate_app_id(),
        title="Starter CRM",
        description="Prebuilt CRM app starter template.",
        version="1.0.0",
        category="Business",
        tags=["crm", "starter"],
        upload_date=datetime.now(UTC).isoformat(),
        is_published=True,
        featured=True,
        views=0,
        file_type=FileType.URL,
        download_url="https://example.com/starter-crm",
    )

    return Database(users=users, apps=[sample])


# =============================================================================
# Atomic Write
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """디렉토리 fsync (rename 엔트리 내구성, 미지원 환경은 경고만)."""
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """
    원자적 JSON 쓰기.

    동작:
    - 중간 상태 없음: temp → rename
    - 파일 fsync + 디렉토리 fsync (실패 시 경고 후 계속)
    - 실패 시 temp 파일 삭제, 기존 파일 유지

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


# =============================================================================
# Record Store
# =============================================================================


class RecordStore:
    """
    JSON 문서 기반 Record Store.

    사용법:
        db = store.load()                 # 읽기 전용 스냅샷

        with store.transaction() as db:   # load → mutate → save
            db.apps.append(record)
    """

    def __init__(
        self,
        db_path: Path,
        lock_timeout: float = DEFAULT_STORE_LOCK_TIMEOUT,
    ):
        """
        Args:
            db_path: db.json 경로
            lock_timeout: 쓰기 락 대기 시간 (초)
        """
        self.db_path = db_path
        self.lock_timeout = lock_timeout
        self._lock = FileLock(
            str(db_path) + STORE_LOCK_SUFFIX, timeout=lock_timeout
        )

    @contextmanager
    def _locked(self) -> Generator[None, None, None]:
        """
        쓰기 락 획득.

        Raises:
            StoreError: STORE_LOCK_TIMEOUT (503)
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._lock.acquire()
        except Timeout as e:
            raise StoreError(
                ErrorCodes.STORE_LOCK_TIMEOUT,
                "Record store is busy, try again",
                status_code=503,
                path=str(self.db_path),
                timeout=self.lock_timeout,
            ) from e

        try:
            yield
        finally:
            self._lock.release()

    def load(self) -> Database:
        """
        현재 스냅샷 반환.

        파일이 없으면 seed 데이터로 초기화 후 저장.

        Raises:
            StoreError: STORE_CORRUPT (JSON 파싱 실패)
        """
        if not self.db_path.exists():
            with self._locked():
                # 락 대기 중 다른 요청이 먼저 seed 했을 수 있음
                if not self.db_path.exists():
                    db = build_seed_database()
                    self.save(db)
                    logger.info(f"Initialized record store with seed data: {self.db_path}")
                    return db
        return self._read()

    def save(self, db: Database) -> None:
        """문서 전체를 원자적으로 교체."""
        atomic_write_json(self.db_path, db.to_dict())

    @contextmanager
    def transaction(self) -> Generator[Database, None, None]:
        """
        단일 writer 구간: load → (호출자 mutate) → save.

        블록이 예외로 끝나면 저장하지 않음.

        Yields:
            Database (수정 가능한 스냅샷)
        """
        with self._locked():
            db = self.load()
            yield db
            self.save(db)

    def _read(self) -> Database:
        try:
            data: dict[str, Any] = json.loads(self.db_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(
                ErrorCodes.STORE_CORRUPT,
                "Record store document is corrupt",
                path=str(self.db_path),
                error=str(e),
            ) from e

        try:
            return Database.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(
                ErrorCodes.STORE_CORRUPT,
                "Record store document has an invalid shape",
                path=str(self.db_path),
                error=str(e),
            ) from e
