"""
Credential Store: 비밀번호 해시/검증.

규칙:
- scrypt (memory-hard) + 랜덤 salt
- 저장 형식: "{salt_hex}:{hash_hex}"
- 동일 salt → 동일 결과 (결정론적)
- 검증은 상수 시간 비교 (hmac.compare_digest)
"""

import hashlib
import hmac
import secrets

# scrypt 파라미터 (N=2^14, r=8, p=1, 64바이트 키)
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_LENGTH = 64
SALT_BYTES = 16


def _derive(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_KEY_LENGTH,
    )


def hash_password(password: str, salt: str | None = None) -> str:
    """
    비밀번호 해시 생성.

    Args:
        password: 평문 비밀번호
        salt: hex salt (없으면 새로 생성)

    Returns:
        "salt:derivedHash" 문자열
    """
    if salt is None:
        salt = secrets.token_hex(SALT_BYTES)
    return f"{salt}:{_derive(password, salt).hex()}"


def verify_password(password: str, stored: str) -> bool:
    """
    비밀번호 검증.

    Args:
        password: 입력된 평문 비밀번호
        stored: hash_password() 결과

    Returns:
        일치 여부

    Raises:
        ValueError: 저장된 해시 형식 오류 (프로그래밍 에러)
    """
    salt, sep, expected_hex = stored.partition(":")
    if not sep or not salt or not expected_hex:
        raise ValueError("Malformed password hash: expected 'salt:hash'")

    expected = bytes.fromhex(expected_hex)
    actual = _derive(password, salt)
    return hmac.compare_digest(expected, actual)
