"""
Signature Normalization

Lock firmware verifies ECDSA signatures in a fixed 64-byte form:

    R (32 bytes, big-endian, zero-padded) || S (32 bytes, ...)

Signing primitives emit ASN.1 DER instead:

    30 <len> 02 <len_r> [00] R... 02 <len_s> [00] S...

where each INTEGER may carry a 0x00 sign byte or be shorter than 32 bytes.
The structure is decoded strictly with `decode_dss_signature` and both
integers are re-encoded at fixed width, so both cases normalize correctly.

Signers:
    NativeSigner   - `cryptography` ECDSA in-process (default)
    OpenSSLSigner  - key pem -> message file -> `openssl dgst -sign` -> read
"""

import logging
from contextlib import ExitStack
from typing import Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature, encode_dss_signature,
)

from ..errors import CryptoFailure, ParseFailure
from ..keys.curves import (
    LOCK_CURVE, DEFAULT_HASH, canonical_curve_name, get_hash,
    load_private_key, load_public_key, private_key_to_pem,
)
from ..keys.toolkit import OpenSSLToolkit


logger = logging.getLogger(__name__)

# Constants
COMPONENT_SIZE = 32                 # R and S, bytes
SIGNATURE_SIZE = 2 * COMPONENT_SIZE  # 64 bytes


# ============================================================================
# DER decoding
# ============================================================================

def parse_der_signature(der: bytes) -> Tuple[int, int]:
    """
    Parse a DER ECDSA signature into its R and S integers.

    Args:
        der: SEQUENCE { INTEGER r, INTEGER s }

    Returns:
        Tuple of (r, s)

    Raises:
        ParseFailure: If the input is not a strict DER SEQUENCE of two INTEGERs
    """
    if not der:
        raise ParseFailure("Empty signature")

    try:
        return decode_dss_signature(bytes(der))
    except (ValueError, TypeError) as e:
        raise ParseFailure(f"Malformed DER signature: {e}") from e


def _fit_component(value: int, name: str, size: int = COMPONENT_SIZE) -> bytes:
    """Encode R or S as exactly `size` big-endian bytes."""
    if value < 0 or value >= 1 << (8 * size):
        raise CryptoFailure(
            f"Signature component {name} is {(value.bit_length() + 7) // 8} bytes, "
            f"exceeds {size}"
        )
    return value.to_bytes(size, 'big')


def normalize_signature(der: bytes) -> bytes:
    """
    Convert a DER signature to the fixed 64-byte R || S form.

    Raises:
        ParseFailure: Malformed DER
        CryptoFailure: R or S larger than 32 bytes
    """
    r, s = parse_der_signature(der)
    return _fit_component(r, 'R') + _fit_component(s, 'S')


def denormalize_signature(raw: bytes) -> bytes:
    """Re-encode a 64-byte R || S signature as DER."""
    if len(raw) != SIGNATURE_SIZE:
        raise ParseFailure(f"Normalized signature must be {SIGNATURE_SIZE} bytes")
    r = int.from_bytes(raw[:COMPONENT_SIZE], 'big')
    s = int.from_bytes(raw[COMPONENT_SIZE:], 'big')
    return encode_dss_signature(r, s)


def _message_bytes(message: Union[str, bytes]) -> bytes:
    return message.encode('utf-8') if isinstance(message, str) else bytes(message)


def verify_signature(message: Union[str, bytes], raw: bytes, public_key: str,
                     curve: str = LOCK_CURVE, hash_name: str = DEFAULT_HASH) -> bool:
    """
    Verify a normalized signature the way lock firmware does.

    Args:
        message: Signed message
        raw: 64-byte R || S signature
        public_key: Signer's public point (hex)
        curve: Signer's curve
        hash_name: Digest used when signing

    Returns:
        True if signature is valid, False otherwise, including an unusable public key
    """
    try:
        der = denormalize_signature(raw)
    except ParseFailure:
        return False

    try:
        key = load_public_key(public_key, curve)
    except CryptoFailure:
        return False

    try:
        key.verify(der, _message_bytes(message), ec.ECDSA(get_hash(hash_name)))
        return True
    except InvalidSignature:
        return False


# ============================================================================
# Signers
# ============================================================================

class NativeSigner:
    """ECDSA signing with the `cryptography` package."""

    def sign_der(self, message: bytes, private_key: str, curve: str,
                 hash_name: str = DEFAULT_HASH) -> bytes:
        key = load_private_key(private_key, curve)
        return key.sign(message, ec.ECDSA(get_hash(hash_name)))


class OpenSSLSigner:
    """
    ECDSA signing through the external toolkit.

    Pipeline: create-pem -> create-text-to-sign -> sign -> read-signature,
    with every artifact removed afterwards whatever the outcome.
    """

    def __init__(self, toolkit: Optional[OpenSSLToolkit] = None):
        self._toolkit = toolkit or OpenSSLToolkit()

    @property
    def toolkit(self) -> OpenSSLToolkit:
        return self._toolkit

    def sign_der(self, message: bytes, private_key: str, curve: str,
                 hash_name: str = DEFAULT_HASH,
                 request_id: Optional[str] = None) -> bytes:
        get_hash(hash_name)
        pem = private_key_to_pem(load_private_key(private_key, curve))

        with ExitStack() as stack:
            key_path = stack.enter_context(self._toolkit.artifact('.pem', request_id))
            self._toolkit.write_artifact(key_path, pem)

            message_path = stack.enter_context(self._toolkit.artifact('.txt', request_id))
            self._toolkit.write_artifact(message_path, message)

            signature_path = stack.enter_context(self._toolkit.artifact('.sig', request_id))
            self._toolkit.run(
                'dgst', f'-{hash_name.lower()}',
                '-sign', str(key_path),
                '-out', str(signature_path),
                str(message_path)
            )
            return self._toolkit.read_artifact(signature_path)


class SignatureNormalizer:
    """
    Signs messages and returns the lock's 64-byte signature form.

    Example:
        >>> normalizer = SignatureNormalizer()
        >>> raw = normalizer.sign("00abc...", keys.private_key)  # doctest: +SKIP
        >>> len(raw)  # doctest: +SKIP
        64
    """

    def __init__(self, signer=None, curve: str = LOCK_CURVE,
                 hash_name: str = DEFAULT_HASH):
        """
        Args:
            signer: NativeSigner (default) or OpenSSLSigner
            curve: Default signing curve
            hash_name: Digest algorithm
        """
        self._signer = signer or NativeSigner()
        self.curve = canonical_curve_name(curve)
        self.hash_name = hash_name
        get_hash(hash_name)

    def sign(self, message: Union[str, bytes], private_key: str,
             curve: Optional[str] = None) -> bytes:
        """
        Sign a message.

        Args:
            message: Text (signed as UTF-8) or bytes
            private_key: Private scalar (hex)
            curve: Override the default curve

        Returns:
            64-byte R || S signature

        Raises:
            CryptoFailure, ParseFailure: Invalid key or unusable signature
            SubprocessFailure, FileIOFailure: toolkit signer failures
        """
        curve_name = canonical_curve_name(curve or self.curve)
        der = self._signer.sign_der(_message_bytes(message), private_key,
                                    curve_name, self.hash_name)
        logger.debug(f"Signed message on {curve_name}")
        return normalize_signature(der)

    def sign_hex(self, message: Union[str, bytes], private_key: str,
                 curve: Optional[str] = None) -> str:
        """Sign and return the 128-character hex signature."""
        return self.sign(message, private_key, curve).hex()
