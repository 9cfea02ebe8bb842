"""
Error Taxonomy

Every failure raised by the core derives from EllipseError so callers can
catch the whole family at the storage/transport boundary.

- SubprocessFailure: external toolkit missing, non-zero exit, or timeout
- ParseFailure: key-dump or DER input does not match the expected structure
- FileIOFailure: temporary artifact missing or unwritable
- CryptoFailure: invalid point/scalar, oversized signature component,
  undecryptable ciphertext
- ValidationFailure: required field absent or empty, bad configuration
"""

from typing import Optional, Sequence


class EllipseError(Exception):
    """Base class for all ellipse-core errors."""
    pass


class SubprocessFailure(EllipseError):
    """Raised when the external cryptographic toolkit fails or is unavailable."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None,
                 returncode: Optional[int] = None, stderr: str = ''):
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr


class ParseFailure(EllipseError):
    """Raised when toolkit output or a DER signature is malformed."""
    pass


class FileIOFailure(EllipseError):
    """Raised when a temporary artifact cannot be written or read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class CryptoFailure(EllipseError):
    """Raised for invalid key material or failed cryptographic operations."""
    pass


class ValidationFailure(EllipseError):
    """Raised when a required input is missing, empty or out of range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
