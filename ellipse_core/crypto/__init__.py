# Cryptography Module
"""
Cryptographic building blocks of the lock core:
- ECDH shared-secret derivation
- SymmetricVault (AES-256-ECB under an ECDH-derived key) and StorageCipher
- DER -> 64-byte R || S signature normalization, native and openssl signers
- Compact ES256 JWS

Known limitation: the vault cipher has no IV (see vault.py).
"""

from .ecdh import SharedSecretDeriver, derive_secret

from .vault import (
    SymmetricVault,
    StorageCipher,
    evp_bytes_to_key,
    vault_key_from_secret,
)

from .signatures import (
    SignatureNormalizer,
    NativeSigner,
    OpenSSLSigner,
    parse_der_signature,
    normalize_signature,
    denormalize_signature,
    verify_signature,
    SIGNATURE_SIZE,
)

from .jws import sign_jws, verify_jws, decode_jws

__all__ = [
    'SharedSecretDeriver',
    'derive_secret',
    'SymmetricVault',
    'StorageCipher',
    'evp_bytes_to_key',
    'vault_key_from_secret',
    'SignatureNormalizer',
    'NativeSigner',
    'OpenSSLSigner',
    'parse_der_signature',
    'normalize_signature',
    'denormalize_signature',
    'verify_signature',
    'SIGNATURE_SIZE',
    'sign_jws',
    'verify_jws',
    'decode_jws',
]
