"""
Symmetric Vault

Encrypts values at rest under a key derived from an ECDH shared secret.

Key derivation:
    secret  = ECDH(public_point, private_scalar)
    key     = EVP_BytesToKey(MD5, 1 round, no salt) over the secret read as
              UTF-8 text (invalid sequences replaced)
Cipher:
    AES-256-ECB, PKCS#7 padding, hex-encoded ciphertext

This matches the records already stored in the `locks` table. ECB has no
IV: equal plaintexts under the same key pair produce equal ciphertexts.
This is a known limitation kept for on-disk compatibility.
"""

import hashlib
from typing import Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend

from .ecdh import SharedSecretDeriver
from ..errors import CryptoFailure, ValidationFailure
from ..keys.curves import LOCK_CURVE

# Constants
AES_KEY_SIZE = 32       # 256 bits
BLOCK_SIZE = 16         # 128-bit AES block
BLOCK_BITS = BLOCK_SIZE * 8


def evp_bytes_to_key(password: bytes, key_len: int = AES_KEY_SIZE, iv_len: int = 0) -> bytes:
    """
    OpenSSL EVP_BytesToKey with MD5, one iteration and no salt.

    D_1 = MD5(password), D_i = MD5(D_(i-1) || password); the key is the
    first `key_len` bytes of D_1 || D_2 || ...

    Args:
        password: Password bytes
        key_len: Key length in bytes
        iv_len: IV length in bytes (ECB uses none)

    Returns:
        Derived key bytes
    """
    derived = b''
    block = b''
    while len(derived) < key_len + iv_len:
        block = hashlib.md5(block + password).digest()
        derived += block
    return derived[:key_len]


def vault_key_from_secret(secret: bytes) -> bytes:
    """Derive the AES-256 key from a raw ECDH secret."""
    password = secret.decode('utf-8', errors='replace').encode('utf-8')
    return evp_bytes_to_key(password)


def _as_bytes(value: Union[str, bytes]) -> bytes:
    if value is None:
        raise ValidationFailure("Cannot encrypt a missing value", field='value')
    if isinstance(value, str):
        return value.encode('utf-8')
    return bytes(value)


class SymmetricVault:
    """
    AES-256-ECB encryption keyed by an ECDH shared secret.

    Example:
        >>> vault = SymmetricVault()
        >>> ct = vault.encrypt("C73E7F7F6572", keys.public_key, keys.private_key)  # doctest: +SKIP
        >>> vault.decrypt(ct, keys.public_key, keys.private_key)  # doctest: +SKIP
        'C73E7F7F6572'
    """

    def __init__(self, curve: str = LOCK_CURVE):
        self._deriver = SharedSecretDeriver(curve)

    @property
    def curve(self) -> str:
        return self._deriver.curve

    def key_for(self, public_point: str, private_scalar: str) -> bytes:
        """Symmetric key for a key pair."""
        secret = self._deriver.derive_secret(public_point, private_scalar)
        return vault_key_from_secret(secret)

    def encrypt(self, value: Union[str, bytes], public_point: str,
                private_scalar: str) -> str:
        """
        Encrypt a value.

        Args:
            value: Text (encoded as UTF-8) or bytes
            public_point: Hex public point
            private_scalar: Hex private scalar

        Returns:
            Hex ciphertext (a multiple of 32 hex characters)
        """
        plaintext = _as_bytes(value)
        key = self.key_for(public_point, private_scalar)

        padder = padding.PKCS7(BLOCK_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.ECB(), default_backend()).encryptor()
        return (encryptor.update(padded) + encryptor.finalize()).hex()

    def decrypt_bytes(self, ciphertext: str, public_point: str,
                      private_scalar: str) -> bytes:
        """
        Decrypt hex ciphertext to raw bytes.

        Raises:
            CryptoFailure: Malformed ciphertext or wrong key (bad padding)
        """
        try:
            data = bytes.fromhex(ciphertext)
        except (TypeError, ValueError) as e:
            raise CryptoFailure(f"Ciphertext is not valid hex: {e}") from e

        if not data or len(data) % BLOCK_SIZE != 0:
            raise CryptoFailure(
                f"Ciphertext length must be a positive multiple of {BLOCK_SIZE} bytes"
            )

        key = self.key_for(public_point, private_scalar)
        decryptor = Cipher(algorithms.AES(key), modes.ECB(), default_backend()).decryptor()
        padded = decryptor.update(data) + decryptor.finalize()

        unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise CryptoFailure("Decryption failed: invalid padding") from e

    def decrypt(self, ciphertext: str, public_point: str, private_scalar: str) -> str:
        """
        Decrypt hex ciphertext to text.

        Raises:
            CryptoFailure: Malformed ciphertext, wrong key, or non-UTF-8 plaintext
        """
        plaintext = self.decrypt_bytes(ciphertext, public_point, private_scalar)
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise CryptoFailure("Decrypted value is not valid UTF-8") from e


class StorageCipher:
    """
    Storage-boundary cipher: a SymmetricVault bound to the database key pair.

    Every column of a persisted lock record goes through this object.
    """

    def __init__(self, public_key: str, private_key: str,
                 vault: SymmetricVault = None):
        """
        Args:
            public_key: Database public point (hex)
            private_key: Database private scalar (hex)
            vault: Vault to use (default: secp256k1 vault)
        """
        if not public_key or not private_key:
            raise ValidationFailure("Database key pair is incomplete", field='db_keys')
        self._public_key = public_key
        self._private_key = private_key
        self._vault = vault or SymmetricVault()

    def __repr__(self) -> str:
        return f"StorageCipher(curve={self._vault.curve!r})"

    def encrypt(self, value: Union[str, bytes]) -> str:
        """Encrypt a value for storage."""
        return self._vault.encrypt(value, self._public_key, self._private_key)

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored value."""
        return self._vault.decrypt(ciphertext, self._public_key, self._private_key)
