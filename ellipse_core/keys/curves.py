"""
Curve Registry

Maps OpenSSL curve names to `cryptography` curve objects and converts between
the hex representation used on the wire/in storage and key objects.

Hex conventions:
    private scalar:  big-endian, zero-padded to the curve's byte width
    public point:    X9.62 uncompressed point (04 || X || Y)
"""

from typing import Dict

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.backends import default_backend

from ..errors import CryptoFailure, ValidationFailure


LOCK_CURVE = 'secp256k1'        # Lock devices
SIGNING_CURVE = 'prime256v1'    # Server signing contexts
DEFAULT_HASH = 'sha256'

_CURVES: Dict[str, ec.EllipticCurve] = {
    'secp256k1': ec.SECP256K1(),
    'prime256v1': ec.SECP256R1(),
    'secp384r1': ec.SECP384R1(),
    'secp521r1': ec.SECP521R1(),
}

_ALIASES = {
    'secp256r1': 'prime256v1',
    'p-256': 'prime256v1',
    'p256': 'prime256v1',
    'p-384': 'secp384r1',
    'p-521': 'secp521r1',
}

_HASHES = {
    'sha256': hashes.SHA256,
    'sha384': hashes.SHA384,
    'sha512': hashes.SHA512,
}


def canonical_curve_name(name: str) -> str:
    """
    Resolve a curve name or alias to its OpenSSL name.

    Raises:
        ValidationFailure: If the curve is not supported
    """
    if not name:
        raise ValidationFailure("Curve name is required", field='curve')
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    if key not in _CURVES:
        raise ValidationFailure(f"Unsupported curve: {name}", field='curve')
    return key


def get_curve(name: str) -> ec.EllipticCurve:
    """Get the `cryptography` curve object for a curve name."""
    return _CURVES[canonical_curve_name(name)]


def get_hash(name: str) -> hashes.HashAlgorithm:
    """Get a hash algorithm instance by name (sha256, sha384, sha512)."""
    try:
        return _HASHES[name.lower()]()
    except (KeyError, AttributeError):
        raise ValidationFailure(f"Unsupported hash: {name}", field='hash') from None


def scalar_width(curve_name: str) -> int:
    """Number of hex characters in a zero-padded private scalar."""
    return ((get_curve(curve_name).key_size + 7) // 8) * 2


def load_private_key(private_hex: str, curve_name: str) -> ec.EllipticCurvePrivateKey:
    """
    Build a private key object from a hex scalar.

    Args:
        private_hex: Private scalar as hex (leading zero bytes allowed)
        curve_name: Curve the scalar belongs to

    Returns:
        EC private key

    Raises:
        CryptoFailure: If the hex is malformed or the scalar is out of range
    """
    curve = get_curve(curve_name)
    try:
        value = int(private_hex, 16)
        return ec.derive_private_key(value, curve, default_backend())
    except (TypeError, ValueError) as e:
        raise CryptoFailure(f"Invalid private scalar for {curve_name}: {e}") from e


def load_public_key(public_hex: str, curve_name: str) -> ec.EllipticCurvePublicKey:
    """
    Build a public key object from a hex-encoded curve point.

    Raises:
        CryptoFailure: If the point is malformed or not on the curve
    """
    curve = get_curve(curve_name)
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(curve, bytes.fromhex(public_hex))
    except (TypeError, ValueError) as e:
        raise CryptoFailure(f"Invalid public point for {curve_name}: {e}") from e


def private_key_to_hex(private_key: ec.EllipticCurvePrivateKey) -> str:
    """Hex scalar, zero-padded to the curve width."""
    width = ((private_key.curve.key_size + 7) // 8) * 2
    return format(private_key.private_numbers().private_value, f'0{width}x')


def public_key_to_hex(public_key: ec.EllipticCurvePublicKey) -> str:
    """Hex uncompressed point."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint
    ).hex()


def private_key_to_pem(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """Traditional OpenSSL PEM ("EC PRIVATE KEY"), unencrypted."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption()
    )
