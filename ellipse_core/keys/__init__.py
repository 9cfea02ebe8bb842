# Key Material Module
"""
Elliptic-curve key material:
- Curve registry and hex <-> key object conversion
- KeyMaterialProvider (native or openssl backend)
- Strict parser for openssl key dumps
- Toolkit runner with unique, self-cleaning temporary artifacts
"""

from .curves import (
    LOCK_CURVE,
    SIGNING_CURVE,
    DEFAULT_HASH,
    canonical_curve_name,
    get_curve,
    get_hash,
    load_private_key,
    load_public_key,
)

from .key_dump import parse_key_dump

from .toolkit import OpenSSLToolkit

from .provider import (
    KeyPair,
    KeyMaterialProvider,
    generate_key_pair,
    BACKEND_NATIVE,
    BACKEND_OPENSSL,
)

__all__ = [
    'LOCK_CURVE',
    'SIGNING_CURVE',
    'DEFAULT_HASH',
    'canonical_curve_name',
    'get_curve',
    'get_hash',
    'load_private_key',
    'load_public_key',
    'parse_key_dump',
    'OpenSSLToolkit',
    'KeyPair',
    'KeyMaterialProvider',
    'generate_key_pair',
    'BACKEND_NATIVE',
    'BACKEND_OPENSSL',
]
