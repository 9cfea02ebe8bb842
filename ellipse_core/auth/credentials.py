"""
Password Credentials

Salted password hashing for platform users.

Stored format (the `users.password` column):
    salt (16 chars, [0-9a-zA-Z]) || hex(SHA-256(salt || password))   80 chars

Upgrade path:
    New hashes can be produced with Argon2id (argon2-cffi). verify_any()
    accepts either format and needs_rehash() flags legacy SHA-256 values so
    they can be re-hashed on the next successful login.
"""

import hashlib
import hmac
import secrets
import string
from typing import Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from ..errors import ValidationFailure
from ..integration.event_logger import EventType


SALT_LENGTH = 16
SALT_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
DIGEST_HEX_LENGTH = 64
ARGON2_PREFIX = '$argon2'

# Argon2id configuration
ARGON2_CONFIG = {
    'time_cost': 3,          # Number of iterations
    'memory_cost': 65536,    # 64 MiB memory
    'parallelism': 4,        # 4 parallel threads
    'hash_len': 32,          # 256-bit hash
    'salt_len': 16,          # 128-bit salt
    'type': Type.ID          # Argon2id (hybrid)
}


def generate_salt(length: int = SALT_LENGTH) -> str:
    """Random alphanumeric salt drawn with `secrets`."""
    return ''.join(secrets.choice(SALT_ALPHABET) for _ in range(length))


def secure_compare(a: str, b: str) -> bool:
    """Constant-time string comparison."""
    return hmac.compare_digest(a.encode(), b.encode())


def _require_password(password: str) -> None:
    if not password:
        raise ValidationFailure("Password must not be empty", field='password')


class PasswordCredential:
    """
    Salted SHA-256 password hashing.

    Example:
        >>> credential = PasswordCredential()
        >>> stored = credential.hash("hunter2")
        >>> credential.verify("hunter2", stored)
        True
    """

    def __init__(self, salt_length: int = SALT_LENGTH, event_logger=None):
        self.salt_length = salt_length
        self._event_logger = event_logger

    def hash(self, password: str, salt: Optional[str] = None) -> str:
        """
        Hash a password with a fresh (or supplied) salt.

        Args:
            password: Plaintext password
            salt: Optional salt of exactly `salt_length` characters

        Returns:
            salt || hex digest

        Raises:
            ValidationFailure: Empty password or wrong-length salt
        """
        _require_password(password)
        if salt is None:
            salt = generate_salt(self.salt_length)
        elif len(salt) != self.salt_length:
            raise ValidationFailure(
                f"Salt must be {self.salt_length} characters", field='salt'
            )

        digest = hashlib.sha256((salt + password).encode('utf-8')).hexdigest()
        return salt + digest

    def verify(self, password: str, salted_digest: str, subject: str = '') -> bool:
        """
        Verify a password against a stored salted digest.

        Args:
            password: Plaintext password to check
            salted_digest: Value produced by hash()
            subject: Optional user id for the audit log (hashed there)

        Returns:
            True if the password matches
        """
        matched = False
        if password and self.is_valid_format(salted_digest):
            salt = salted_digest[:self.salt_length]
            matched = secure_compare(self.hash(password, salt), salted_digest)

        if self._event_logger is not None:
            self._event_logger.log(
                EventType.PASSWORD_VERIFIED if matched else EventType.PASSWORD_REJECTED,
                subject or 'anonymous'
            )
        return matched

    def is_valid_format(self, salted_digest: str) -> bool:
        """Check that a stored value looks like salt || SHA-256 hex."""
        if not isinstance(salted_digest, str):
            return False
        if len(salted_digest) != self.salt_length + DIGEST_HEX_LENGTH:
            return False
        digest = salted_digest[self.salt_length:]
        return all(c in string.hexdigits for c in digest)


class Argon2Credential:
    """
    Argon2id password hashing (upgrade path for stored credentials).

    The resulting hash embeds its parameters and salt.
    """

    def __init__(self, **kwargs):
        """
        Args:
            **kwargs: Override default Argon2 parameters
        """
        config = ARGON2_CONFIG.copy()
        config.update(kwargs)

        self._hasher = PasswordHasher(
            time_cost=config['time_cost'],
            memory_cost=config['memory_cost'],
            parallelism=config['parallelism'],
            hash_len=config['hash_len'],
            salt_len=config['salt_len'],
            type=config['type']
        )

    def hash(self, password: str) -> str:
        _require_password(password)
        return self._hasher.hash(password)

    def verify(self, password: str, hash_str: str) -> bool:
        if not password:
            return False
        try:
            return self._hasher.verify(hash_str, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_str: str) -> bool:
        return self._hasher.check_needs_rehash(hash_str)


# Module-level instances
_legacy = PasswordCredential()
_argon2 = Argon2Credential()


def hash_password(password: str) -> str:
    """Convenience function: salted SHA-256 hash."""
    return _legacy.hash(password)


def verify_password(password: str, salted_digest: str) -> bool:
    """Convenience function: verify against a salted SHA-256 hash."""
    return _legacy.verify(password, salted_digest)


def verify_any(password: str, stored: str) -> bool:
    """Verify against either an Argon2id hash or a salted SHA-256 hash."""
    if isinstance(stored, str) and stored.startswith(ARGON2_PREFIX):
        return _argon2.verify(password, stored)
    return _legacy.verify(password, stored)


def needs_rehash(stored: str) -> bool:
    """True for legacy SHA-256 values and Argon2 hashes with old parameters."""
    if isinstance(stored, str) and stored.startswith(ARGON2_PREFIX):
        try:
            return _argon2.needs_rehash(stored)
        except InvalidHashError:
            return True
    return True
