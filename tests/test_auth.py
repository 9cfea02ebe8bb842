"""
Unit tests for Authentication module.

Tests:
- Salted SHA-256 password credentials
- Argon2id upgrade path
- Verification audit events
"""

import hashlib
import string

import pytest

from ellipse_core.auth.credentials import (
    Argon2Credential, PasswordCredential, generate_salt, hash_password,
    needs_rehash, secure_compare, verify_any, verify_password, SALT_LENGTH
)
from ellipse_core.errors import ValidationFailure
from ellipse_core.integration.event_logger import EventType


# Cheap parameters keep the Argon2 tests fast
FAST_ARGON2 = {'time_cost': 1, 'memory_cost': 8, 'parallelism': 1}


class TestPasswordCredential:
    """Unit tests for salted SHA-256 hashing."""

    def test_hash_format(self):
        """Stored value is a 16-char salt followed by a SHA-256 hex digest."""
        stored = PasswordCredential().hash("SecureP@ss123!")
        assert len(stored) == SALT_LENGTH + 64
        assert all(c in string.ascii_letters + string.digits for c in stored[:SALT_LENGTH])

    def test_known_digest(self):
        salt = "abcdefgh12345678"
        expected = hashlib.sha256((salt + "hunter2").encode()).hexdigest()
        assert PasswordCredential().hash("hunter2", salt) == salt + expected

    def test_verify_correct_password(self):
        credential = PasswordCredential()
        stored = credential.hash("MySecurePassword123!")
        assert credential.verify("MySecurePassword123!", stored)

    def test_verify_wrong_password(self):
        credential = PasswordCredential()
        stored = credential.hash("SecureP@ss123!Correct")
        assert not credential.verify("SecureP@ss123!Wrong", stored)

    def test_same_password_different_hashes(self):
        """Same password should have different hashes (random salt)."""
        credential = PasswordCredential()
        assert credential.hash("SecureP@ss123!") != credential.hash("SecureP@ss123!")

    def test_empty_password_rejected(self):
        with pytest.raises(ValidationFailure):
            PasswordCredential().hash("")

    def test_wrong_salt_length_rejected(self):
        with pytest.raises(ValidationFailure):
            PasswordCredential().hash("password", salt="short")

    def test_malformed_stored_value(self):
        credential = PasswordCredential()
        assert not credential.verify("password", "")
        assert not credential.verify("password", "x" * 80)
        assert not credential.verify("password", None)

    def test_verification_events(self, event_logger):
        credential = PasswordCredential(event_logger=event_logger)
        stored = credential.hash("correct horse")
        credential.verify("correct horse", stored, subject="user-7")
        credential.verify("battery staple", stored, subject="user-7")

        assert len(event_logger.get_events_by_type(EventType.PASSWORD_VERIFIED)) == 1
        assert len(event_logger.get_events_by_type(EventType.PASSWORD_REJECTED)) == 1
        assert len(event_logger.get_events_for_subject("user-7")) == 2

    def test_module_functions(self):
        stored = hash_password("pa55word")
        assert verify_password("pa55word", stored)
        assert not verify_password("password", stored)

    def test_salt_alphabet(self):
        salt = generate_salt()
        assert len(salt) == SALT_LENGTH
        assert salt.isalnum()

    def test_secure_compare(self):
        assert secure_compare("abc", "abc")
        assert not secure_compare("abc", "abd")


class TestArgon2Credential:
    """Unit tests for the Argon2id upgrade path."""

    def test_hash_and_verify(self):
        credential = Argon2Credential(**FAST_ARGON2)
        stored = credential.hash("SecureP@ss123!")
        assert stored.startswith("$argon2id$")
        assert credential.verify("SecureP@ss123!", stored)
        assert not credential.verify("wrong", stored)

    def test_invalid_hash(self):
        assert not Argon2Credential(**FAST_ARGON2).verify("password", "not-a-hash")

    def test_verify_any_accepts_both_formats(self):
        legacy = hash_password("password1")
        modern = Argon2Credential().hash("password1")
        assert verify_any("password1", legacy)
        assert verify_any("password1", modern)
        assert not verify_any("password2", modern)

    def test_needs_rehash(self):
        assert needs_rehash(hash_password("password1"))
        assert not needs_rehash(Argon2Credential().hash("password1"))
        assert needs_rehash(Argon2Credential(**FAST_ARGON2).hash("password1"))
