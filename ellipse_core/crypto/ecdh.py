"""
Shared Secret Derivation

ECDH over the configured curve: the shared X-coordinate computed from one
party's private scalar and the other party's public point.

Deterministic: the same (point, scalar) pair always yields the same secret,
which the SymmetricVault relies on to decrypt what it encrypted.
"""

from cryptography.hazmat.primitives.asymmetric import ec

from ..errors import CryptoFailure
from ..keys.curves import LOCK_CURVE, load_private_key, load_public_key


class SharedSecretDeriver:
    """
    Elliptic Curve Diffie-Hellman on a fixed curve.

    Example:
        >>> deriver = SharedSecretDeriver('secp256k1')
        >>> secret = deriver.derive_secret(bob.public_key, alice.private_key)  # doctest: +SKIP
    """

    def __init__(self, curve: str = LOCK_CURVE):
        self.curve = curve

    def derive_secret(self, public_point: str, private_scalar: str) -> bytes:
        """
        Derive the shared secret.

        Args:
            public_point: Counterpart public point (hex, uncompressed or compressed)
            private_scalar: Own private scalar (hex)

        Returns:
            Shared X-coordinate (32 bytes on 256-bit curves)

        Raises:
            CryptoFailure: If the point is not on the curve or the scalar is invalid
        """
        peer_public_key = load_public_key(public_point, self.curve)
        private_key = load_private_key(private_scalar, self.curve)
        try:
            return private_key.exchange(ec.ECDH(), peer_public_key)
        except ValueError as e:
            raise CryptoFailure(f"ECDH exchange failed: {e}") from e


def derive_secret(public_point: str, private_scalar: str,
                  curve: str = LOCK_CURVE) -> bytes:
    """Convenience function for a one-off ECDH derivation."""
    return SharedSecretDeriver(curve).derive_secret(public_point, private_scalar)
