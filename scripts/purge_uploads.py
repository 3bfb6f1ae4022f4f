#!/usr/bin/env python3
"""
purge_uploads.py - 참조되지 않는 업로드 파일 정리 스크립트

db.json의 filePath가 가리키지 않는 uploads/ 파일(orphan)을 찾아 정리:
1. 레코드 삭제/파일 교체 중 프로세스 중단으로 남은 파일
2. 저장 후 트랜잭션 실패로 남은 파일

생성 직후(저장 → 커밋 사이) 파일을 지우지 않도록 min-age 이전 파일은 건너뜀.

경로는 서버와 동일하게 해석: default.yaml + .env + 환경 변수
(CATALOG_DATA_DIR, CATALOG_UPLOAD_DIR).
filePath는 저장 이름(상대)과 절대 경로 모두 참조로 인정.

사용법:
    # 기본 실행 (dry-run)
    python scripts/purge_uploads.py

    # 실제 삭제
    python scripts/purge_uploads.py --execute

    # 1시간 이상 된 orphan만
    python scripts/purge_uploads.py --min-age-minutes 60 --execute

    # cron 예시 (매일 새벽 3시)
    0 3 * * * cd /path/to/project && python scripts/purge_uploads.py --execute >> /var/log/purge_uploads.log 2>&1
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

# src 패키지 임포트를 위한 프로젝트 루트 추가
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.app.config import load_runtime_config, storage_paths  # noqa: E402
from src.app.services.uploads import UploadService  # noqa: E402
from src.core.store import RecordStore  # noqa: E402
from src.domain.errors import FileMissingError  # noqa: E402
from src.domain.schemas import FileType  # noqa: E402

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

DEFAULT_MIN_AGE_MINUTES = 10


@dataclass
class PurgeResult:
    """Purge 결과."""
    scanned_files: int = 0
    referenced_files: int = 0
    skipped_recent: int = 0

    purged_files: int = 0
    purged_size_mb: float = 0.0

    errors: list[str] = field(default_factory=list)


def load_paths(config_path: Path) -> tuple[Path, Path]:
    """설정 파일 + .env + 환경 변수 → (db_path, upload_dir)."""
    return storage_paths(load_runtime_config(config_path))


def referenced_files(store: RecordStore, upload_dir: Path) -> set[Path]:
    """
    레코드가 참조하는 업로드 파일의 실제 경로 집합.

    filePath가 저장 이름이든 절대 경로든 UploadService와 같은 규칙으로 해석.
    저장소 밖이거나 없는 파일은 제외.
    """
    uploads = UploadService(upload_dir)
    referenced: set[Path] = set()
    for app in store.load().apps:
        if app.file_type != FileType.FILE or not app.file_path:
            continue
        try:
            referenced.add(uploads.resolve_path(app.file_path))
        except FileMissingError:
            logger.warning(f"참조 파일 없음: {app.id} -> {app.file_path}")
    return referenced


def find_orphans(
    upload_dir: Path,
    referenced: set[Path],
    min_age_seconds: float,
    result: PurgeResult,
    now: float | None = None,
) -> list[Path]:
    """
    orphan 파일 수집 (오래된 것 먼저).

    Args:
        upload_dir: 업로드 디렉터리
        referenced: 참조 중인 파일의 resolve된 경로 집합
        min_age_seconds: 이보다 최근 파일은 건너뜀
        result: 스캔 통계 누적
        now: 기준 시각 (epoch seconds)

    Returns:
        orphan 파일 경로 리스트
    """
    if now is None:
        now = time.time()

    orphans = []
    for item in sorted(upload_dir.iterdir()):
        if not item.is_file() or item.is_symlink():
            continue

        result.scanned_files += 1
        if item.resolve() in referenced:
            result.referenced_files += 1
            continue

        if now - item.stat().st_mtime < min_age_seconds:
            result.skipped_recent += 1
            continue

        orphans.append(item)

    orphans.sort(key=lambda p: p.stat().st_mtime)
    return orphans


def purge_uploads(
    store: RecordStore,
    upload_dir: Path,
    execute: bool,
    min_age_seconds: float = DEFAULT_MIN_AGE_MINUTES * 60,
    now: float | None = None,
) -> PurgeResult:
    """업로드 디렉터리의 orphan 파일 정리."""
    result = PurgeResult()

    if not upload_dir.exists():
        logger.warning(f"업로드 디렉터리 없음: {upload_dir}")
        return result

    referenced = referenced_files(store, upload_dir)
    orphans = find_orphans(upload_dir, referenced, min_age_seconds, result, now=now)

    for orphan in orphans:
        size = orphan.stat().st_size
        if execute:
            try:
                orphan.unlink()
            except OSError as e:
                result.errors.append(f"삭제 실패 {orphan}: {e}")
                logger.error(f"삭제 실패 {orphan}: {e}")
                continue
            logger.info(f"삭제됨: {orphan.name} ({size / 1024:.1f} KB)")
        else:
            logger.info(f"[DRY-RUN] 삭제 예정: {orphan.name} ({size / 1024:.1f} KB)")

        result.purged_files += 1
        result.purged_size_mb += size / (1024 * 1024)

    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="참조되지 않는 업로드 파일 정리 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="실제 삭제 실행 (기본: dry-run)",
    )
    parser.add_argument(
        "--min-age-minutes",
        type=float,
        default=DEFAULT_MIN_AGE_MINUTES,
        help=f"이보다 최근 파일은 건너뜀 (기본: {DEFAULT_MIN_AGE_MINUTES})",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="default.yaml",
        help="설정 파일 경로 (기본: default.yaml)",
    )

    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = PROJECT_ROOT / config_path
    db_path, upload_dir = load_paths(config_path)

    if not db_path.exists():
        logger.error(f"db.json 없음: {db_path} (서버를 한 번 실행해 초기화하세요)")
        return 1

    if not args.execute:
        logger.info("=" * 50)
        logger.info("DRY-RUN 모드 (실제 삭제 없음)")
        logger.info("실제 실행: --execute 옵션 추가")
        logger.info("=" * 50)

    result = purge_uploads(
        store=RecordStore(db_path),
        upload_dir=upload_dir,
        execute=args.execute,
        min_age_seconds=args.min_age_minutes * 60,
    )

    # 결과 출력
    logger.info("=" * 50)
    logger.info("Purge 결과:")
    logger.info(
        f"  스캔: {result.scanned_files} files "
        f"(참조 {result.referenced_files}, 최근 건너뜀 {result.skipped_recent})"
    )
    logger.info(f"  정리: {result.purged_files} files ({result.purged_size_mb:.2f} MB)")
    if result.errors:
        logger.warning(f"  에러: {len(result.errors)}개")
        for err in result.errors[:5]:  # 최대 5개만 출력
            logger.warning(f"    - {err}")

    return 0 if not result.errors else 1


if __name__ == "__main__":
    sys.exit(main())
