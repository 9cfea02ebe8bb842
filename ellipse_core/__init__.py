# Ellipse Core
"""
Cryptographic core of the smart-lock platform:
- keys: EC key material (native or openssl backend)
- crypto: ECDH, symmetric vault, signature normalization, JWS
- auth: password credentials
- locks: encrypted lock records and authorization messages
- integration: security event audit log
"""

from .errors import (
    EllipseError,
    SubprocessFailure,
    ParseFailure,
    FileIOFailure,
    CryptoFailure,
    ValidationFailure,
)

__version__ = '0.1.0'

__all__ = [
    'EllipseError',
    'SubprocessFailure',
    'ParseFailure',
    'FileIOFailure',
    'CryptoFailure',
    'ValidationFailure',
]
