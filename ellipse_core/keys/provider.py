"""
Key Material Provider

Generates elliptic-curve key pairs for locks (secp256k1) and server signing
contexts (prime256v1).

Backends:
    native   - `cryptography` key generation in-process (default)
    openssl  - the external toolkit pipeline:
               ecparam -genkey -> ec -text -> parse -> cleanup

Key pairs are returned as hex so they can be handed straight to the
SymmetricVault for storage.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.backends import default_backend

from .curves import (
    LOCK_CURVE, DEFAULT_HASH, canonical_curve_name, get_curve, get_hash,
    load_private_key, load_public_key, private_key_to_hex, public_key_to_hex,
    scalar_width,
)
from .key_dump import parse_key_dump
from .toolkit import OpenSSLToolkit
from ..errors import EllipseError, ParseFailure, ValidationFailure
from ..integration.event_logger import EventType


logger = logging.getLogger(__name__)

BACKEND_NATIVE = 'native'
BACKEND_OPENSSL = 'openssl'
BACKENDS = (BACKEND_NATIVE, BACKEND_OPENSSL)


@dataclass(frozen=True)
class KeyPair:
    """
    Hex-encoded EC key pair.

    Ephemeral: exists for one generation or signing operation and is only
    ever persisted in encrypted form.
    """
    public_key: str     # Uncompressed point, 04 || X || Y
    private_key: str    # Scalar, zero-padded to curve width
    curve: str = LOCK_CURVE

    def __repr__(self) -> str:
        return f"KeyPair(curve={self.curve!r}, public_key={self.public_key[:16]}...)"

    @classmethod
    def from_private_key(cls, private_key: ec.EllipticCurvePrivateKey,
                         curve: str) -> 'KeyPair':
        """Create a KeyPair from a `cryptography` private key."""
        return cls(
            public_key=public_key_to_hex(private_key.public_key()),
            private_key=private_key_to_hex(private_key),
            curve=canonical_curve_name(curve)
        )

    def private_key_object(self) -> ec.EllipticCurvePrivateKey:
        return load_private_key(self.private_key, self.curve)

    def public_key_object(self) -> ec.EllipticCurvePublicKey:
        return load_public_key(self.public_key, self.curve)

    def is_consistent(self) -> bool:
        """Check that the public point belongs to the private scalar."""
        derived = public_key_to_hex(self.private_key_object().public_key())
        return derived == self.public_key.lower()


def _normalize_scalar(private_hex: str, curve: str) -> str:
    """Strip toolkit sign padding and zero-pad to the curve width."""
    width = scalar_width(curve)
    value = int(private_hex, 16)
    normalized = format(value, f'0{width}x')
    if len(normalized) > width or value == 0:
        raise ParseFailure(f"Private scalar does not fit curve {curve}")
    return normalized


class KeyMaterialProvider:
    """
    Elliptic-curve key generation, parameterized by backend, curve and hash.

    Example:
        >>> provider = KeyMaterialProvider()
        >>> keys = provider.generate('secp256k1')
        >>> len(keys.private_key)
        64
    """

    def __init__(self, backend: str = BACKEND_NATIVE,
                 curve: str = LOCK_CURVE,
                 hash_name: str = DEFAULT_HASH,
                 toolkit: Optional[OpenSSLToolkit] = None,
                 event_logger=None):
        """
        Args:
            backend: 'native' or 'openssl'
            curve: Default curve for generate()
            hash_name: Signing hash paired with keys from this provider
            toolkit: Toolkit for the openssl backend (created if omitted)
            event_logger: Optional EventLogger for audit events
        """
        if backend not in BACKENDS:
            raise ValidationFailure(f"Unknown key backend: {backend}", field='backend')

        self.backend = backend
        self.curve = canonical_curve_name(curve)
        self.hash_name = hash_name
        get_hash(hash_name)
        self._event_logger = event_logger
        self._toolkit = toolkit
        if backend == BACKEND_OPENSSL and self._toolkit is None:
            self._toolkit = OpenSSLToolkit(event_logger=event_logger)

    @property
    def toolkit(self) -> Optional[OpenSSLToolkit]:
        return self._toolkit

    def generate(self, curve: Optional[str] = None,
                 request_id: Optional[str] = None) -> KeyPair:
        """
        Generate a new key pair.

        Args:
            curve: Curve name (default: provider curve)
            request_id: Optional identifier folded into toolkit artifact names

        Returns:
            KeyPair with hex components

        Raises:
            SubprocessFailure, ParseFailure, FileIOFailure: openssl backend
            ValidationFailure: Unsupported curve
        """
        curve_name = canonical_curve_name(curve or self.curve)

        try:
            if self.backend == BACKEND_NATIVE:
                private_key = ec.generate_private_key(get_curve(curve_name), default_backend())
                key_pair = KeyPair.from_private_key(private_key, curve_name)
            else:
                key_pair = self.from_key_dump(self.dump(curve_name, request_id), curve_name)
        except EllipseError as e:
            logger.error(f"Key generation on {curve_name} failed: {e}")
            self._audit(EventType.KEY_GENERATION_FAILED, curve_name,
                        error=type(e).__name__)
            raise

        logger.debug(f"Generated {curve_name} key pair via {self.backend}")
        self._audit(EventType.KEY_GENERATED, curve_name, backend=self.backend)
        return key_pair

    def dump(self, curve: Optional[str] = None,
             request_id: Optional[str] = None) -> str:
        """
        Generate a key with the toolkit and return its raw text dump.

        The temporary key file is removed before returning, on success
        and on failure.
        """
        if self._toolkit is None:
            raise ValidationFailure("Key dumps require the openssl backend", field='backend')

        curve_name = canonical_curve_name(curve or self.curve)
        with self._toolkit.artifact('.pem', request_id) as key_path:
            self._toolkit.run('ecparam', '-out', str(key_path), '-name', curve_name, '-genkey')
            return self._toolkit.run('ec', '-in', str(key_path), '-text', '-noout')

    @staticmethod
    def from_key_dump(text: str, curve: str) -> KeyPair:
        """
        Parse a toolkit key dump into a KeyPair.

        Raises:
            ParseFailure: If the dump is malformed
        """
        curve_name = canonical_curve_name(curve)
        private_hex, public_hex = parse_key_dump(text, curve_name)
        return KeyPair(
            public_key=public_hex,
            private_key=_normalize_scalar(private_hex, curve_name),
            curve=curve_name
        )

    def _audit(self, event_type: EventType, subject: str, **details) -> None:
        if self._event_logger is not None:
            self._event_logger.log(event_type, subject, **details)


def generate_key_pair(curve: str = LOCK_CURVE) -> KeyPair:
    """Convenience function: native key pair on the given curve."""
    return KeyMaterialProvider(curve=curve).generate()
