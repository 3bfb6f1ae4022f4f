"""
Core layer: 보안/상태 핵심 모듈.

역할:
- Credential Store (scrypt 해시/검증)
- Session Manager (in-memory, TTL)
- Record Store (db.json, 락, 원자적 쓰기)
"""

from .ids import generate_app_id, generate_session_id, generate_upload_name
from .logging import configure_logging, emit_audit
from .security import hash_password, verify_password
from .sessions import MemorySessionStore, SessionStore
from .store import RecordStore, atomic_write_json, build_seed_database

__all__ = [
    # ids
    "generate_app_id",
    "generate_session_id",
    "generate_upload_name",
    # logging
    "configure_logging",
    "emit_audit",
    # security
    "hash_password",
    "verify_password",
    # sessions
    "SessionStore",
    "MemorySessionStore",
    # store
    "RecordStore",
    "atomic_write_json",
    "build_seed_database",
]
