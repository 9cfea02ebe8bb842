"""
JWS ES256 Tokens

Compact JSON Web Signatures for server signing contexts (prime256v1):

    base64url(header) . base64url(payload) . base64url(R || S)

Serialization, header checks and the JOSE signature form are handled by
PyJWT; keys are the same hex scalars and points used everywhere else.
"""

import logging
from typing import Union

import jwt

from ..errors import CryptoFailure, ParseFailure
from ..keys.curves import SIGNING_CURVE, load_private_key, load_public_key


logger = logging.getLogger(__name__)

ALGORITHM = 'ES256'


def sign_jws(payload: Union[str, bytes], private_key: str) -> str:
    """
    Create a compact ES256 JWS.

    Args:
        payload: Token payload (text is encoded as UTF-8)
        private_key: prime256v1 private scalar (hex)

    Returns:
        Compact serialization

    Raises:
        CryptoFailure: If the private key is not a prime256v1 scalar
    """
    if isinstance(payload, str):
        payload = payload.encode('utf-8')

    key = load_private_key(private_key, SIGNING_CURVE)
    return jwt.api_jws.PyJWS().encode(payload, key, algorithm=ALGORITHM)


def decode_jws(token: str) -> bytes:
    """
    Return the payload of a compact JWS without verifying it.

    Raises:
        ParseFailure: If the token is not a well-formed compact JWS
    """
    try:
        decoded = jwt.api_jws.PyJWS().decode_complete(
            token, options={'verify_signature': False}
        )
    except jwt.InvalidTokenError as e:
        raise ParseFailure(f"Malformed JWS: {e}") from e
    return decoded['payload']


def verify_jws(token: str, public_key: str) -> bool:
    """
    Verify an ES256 compact JWS.

    Args:
        token: Compact serialization
        public_key: prime256v1 public point (hex)

    Returns:
        True if the header is acceptable for ES256 and the signature is valid
    """
    try:
        key = load_public_key(public_key, SIGNING_CURVE)
    except CryptoFailure:
        return False

    try:
        decoded = jwt.api_jws.PyJWS().decode_complete(token, key=key, algorithms=[ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug(f"JWS rejected: {e}")
        return False

    # No JOSE extensions are understood here (RFC 7515 4.1.11)
    if decoded['header'].get('crit') is not None:
        logger.debug("JWS rejected: unsupported critical header")
        return False
    return True
