"""
test_security.py - 비밀번호 해시/검증 테스트

DoD:
- 저장 형식 "salt:hash"
- 동일 salt → 동일 결과
- 틀린 비밀번호 거부
- 형식 오류 해시는 ValueError
"""

import pytest

from src.core.security import SALT_BYTES, SCRYPT_KEY_LENGTH, hash_password, verify_password


class TestHashPassword:
    """hash_password 함수 테스트."""

    def test_format_salt_and_hash(self):
        """salt_hex:hash_hex 형식."""
        stored = hash_password("admin123")

        salt, _, digest = stored.partition(":")
        assert len(salt) == SALT_BYTES * 2
        assert len(digest) == SCRYPT_KEY_LENGTH * 2
        int(digest, 16)  # hex 확인

    def test_deterministic_with_same_salt(self):
        """동일 salt → 동일 해시."""
        assert hash_password("secret", salt="abcd") == hash_password("secret", salt="abcd")

    def test_random_salt_each_call(self):
        """salt 미지정 시 매번 다른 결과."""
        assert hash_password("secret") != hash_password("secret")


class TestVerifyPassword:
    """verify_password 함수 테스트."""

    def test_correct_password(self):
        """올바른 비밀번호 → True."""
        stored = hash_password("user123")

        assert verify_password("user123", stored) is True

    def test_wrong_password(self):
        """틀린 비밀번호 → False."""
        stored = hash_password("user123")

        assert verify_password("user124", stored) is False
        assert verify_password("", stored) is False

    @pytest.mark.parametrize("stored", ["", "nocolon", ":abcd", "abcd:"])
    def test_malformed_hash_raises(self, stored: str):
        """형식 오류 해시 → ValueError."""
        with pytest.raises(ValueError):
            verify_password("anything", stored)
