# Authentication Module
"""
Password credentials for platform users:
- Salted SHA-256 (stored format: 16-char salt || hex digest)
- Argon2id upgrade path with needs_rehash()
"""

from .credentials import (
    PasswordCredential,
    Argon2Credential,
    hash_password,
    verify_password,
    verify_any,
    needs_rehash,
    generate_salt,
    secure_compare,
    SALT_LENGTH,
)

__all__ = [
    'PasswordCredential',
    'Argon2Credential',
    'hash_password',
    'verify_password',
    'verify_any',
    'needs_rehash',
    'generate_salt',
    'secure_compare',
    'SALT_LENGTH',
]
