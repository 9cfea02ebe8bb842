"""
Lock Authorization Messages

Builds the unlock authorization payload a lock's firmware verifies.

Message Format (hex ASCII, 202 characters):
    [user_type (2) | encrypted_nonce (62) | timestamp (8) | security_option (2) | signature (128)]

    user_type        00 owner, 01 non-owner
    encrypted_nonce  vault ciphertext of mac_id || other_info under the lock's
                     own key pair, truncated to 62 hex characters
    timestamp        expiry as 8 hex digits, ffffffff = no expiry
    security_option  reserved, 00
    signature        ECDSA/SHA-256 over the 74-character header, R || S

The signature covers the ASCII bytes of the hex header exactly as sent.
"""

import logging
import string
from dataclasses import dataclass
from typing import Optional, Union

from .records import LockRecord, LockSecrets, decrypt_lock
from ..crypto.signatures import SignatureNormalizer, verify_signature, SIGNATURE_SIZE
from ..crypto.vault import StorageCipher, SymmetricVault
from ..errors import EllipseError, ValidationFailure
from ..integration.event_logger import EventType
from ..keys.curves import LOCK_CURVE


logger = logging.getLogger(__name__)

# Field values
USER_TYPE_OWNER = '00'
USER_TYPE_GUEST = '01'
SECURITY_OPTION_DEFAULT = '00'
NO_EXPIRY = 'ffffffff'

# Field widths in hex characters
USER_TYPE_LENGTH = 2
NONCE_LENGTH = 62
TIMESTAMP_LENGTH = 8
SECURITY_OPTION_LENGTH = 2
SIGNATURE_LENGTH = SIGNATURE_SIZE * 2

HEADER_LENGTH = USER_TYPE_LENGTH + NONCE_LENGTH + TIMESTAMP_LENGTH + SECURITY_OPTION_LENGTH
MESSAGE_LENGTH = HEADER_LENGTH + SIGNATURE_LENGTH     # 202

MAX_TIMESTAMP = 0xFFFFFFFF


def _is_hex(value: str) -> bool:
    return all(c in string.hexdigits for c in value)


def format_timestamp(timestamp: Optional[Union[int, str]]) -> str:
    """
    Normalize the expiry field.

    Args:
        timestamp: None/'' for no expiry, an int in [0, 2^32), or 8 hex digits

    Returns:
        8 lowercase hex characters

    Raises:
        ValidationFailure: Out of range or malformed
    """
    if timestamp is None or timestamp == '':
        return NO_EXPIRY

    if isinstance(timestamp, bool):
        raise ValidationFailure("Timestamp must be an int or hex string", field='timestamp')

    if isinstance(timestamp, int):
        if not 0 <= timestamp <= MAX_TIMESTAMP:
            raise ValidationFailure(
                f"Timestamp {timestamp} does not fit in 4 bytes", field='timestamp'
            )
        return format(timestamp, '08x')

    if isinstance(timestamp, str) and len(timestamp) == TIMESTAMP_LENGTH and _is_hex(timestamp):
        return timestamp.lower()

    raise ValidationFailure(
        f"Timestamp must be {TIMESTAMP_LENGTH} hex characters", field='timestamp'
    )


@dataclass(frozen=True)
class AuthorizationMessage:
    """Structured authorization message; constructed per request, never persisted."""
    user_type_flag: str
    encrypted_nonce: str
    timestamp: str
    security_option: str
    signature: bytes

    @property
    def header(self) -> str:
        """The signed portion of the message."""
        return self.user_type_flag + self.encrypted_nonce + self.timestamp + self.security_option

    @property
    def is_owner(self) -> bool:
        return self.user_type_flag == USER_TYPE_OWNER

    @property
    def has_expiry(self) -> bool:
        return self.timestamp != NO_EXPIRY

    def to_hex(self) -> str:
        """Serialize to the 202-character wire form."""
        return self.header + self.signature.hex()

    @classmethod
    def from_hex(cls, payload: str) -> 'AuthorizationMessage':
        """
        Parse the wire form.

        Raises:
            ValidationFailure: Wrong length or non-hex content
        """
        if not isinstance(payload, str) or len(payload) != MESSAGE_LENGTH:
            raise ValidationFailure(
                f"Authorization message must be {MESSAGE_LENGTH} hex characters",
                field='payload'
            )
        if not _is_hex(payload):
            raise ValidationFailure("Authorization message is not hex", field='payload')

        offset = 0
        user_type = payload[offset:offset + USER_TYPE_LENGTH]
        offset += USER_TYPE_LENGTH

        nonce = payload[offset:offset + NONCE_LENGTH]
        offset += NONCE_LENGTH

        timestamp = payload[offset:offset + TIMESTAMP_LENGTH]
        offset += TIMESTAMP_LENGTH

        option = payload[offset:offset + SECURITY_OPTION_LENGTH]
        offset += SECURITY_OPTION_LENGTH

        signature = bytes.fromhex(payload[offset:])

        return cls(user_type, nonce, timestamp, option, signature)


class LockAuthorizationAssembler:
    """
    Assembles signed authorization messages for stored locks.

    Example:
        >>> assembler = LockAuthorizationAssembler(storage)  # doctest: +SKIP
        >>> payload = assembler.assemble(lock, is_owner=True)  # doctest: +SKIP
        >>> len(payload)  # doctest: +SKIP
        202
    """

    def __init__(self, storage: StorageCipher,
                 vault: Optional[SymmetricVault] = None,
                 normalizer: Optional[SignatureNormalizer] = None,
                 event_logger=None):
        """
        Args:
            storage: Cipher bound to the database key pair
            vault: Vault for the nonce field (default: secp256k1)
            normalizer: Signer (default: native secp256k1, SHA-256)
            event_logger: Optional EventLogger
        """
        self._storage = storage
        self._vault = vault or SymmetricVault(LOCK_CURVE)
        self._normalizer = normalizer or SignatureNormalizer(curve=LOCK_CURVE)
        self._event_logger = event_logger

    def encrypted_nonce(self, lock_secrets: LockSecrets, other_info: str = '') -> str:
        """
        Nonce field: ciphertext of mac_id || other_info under the lock's key pair,
        truncated (or right-padded with '0') to 62 hex characters.
        """
        ciphertext = self._vault.encrypt(
            lock_secrets.mac_id + other_info,
            lock_secrets.public_key,
            lock_secrets.private_key
        )
        return ciphertext[:NONCE_LENGTH].ljust(NONCE_LENGTH, '0')

    def build(self, lock: LockRecord, timestamp: Optional[Union[int, str]] = None,
              is_owner: bool = False, other_info: Optional[str] = '') -> AuthorizationMessage:
        """
        Build a signed authorization message.

        Args:
            lock: Encrypted lock record
            timestamp: Expiry (None for no expiry)
            is_owner: Whether the requester owns the lock
            other_info: Extra context folded into the nonce

        Returns:
            AuthorizationMessage

        Raises:
            ValidationFailure: Empty decrypted field, bad timestamp or other_info
            CryptoFailure: Undecryptable field or invalid key material
        """
        try:
            message = self._build(lock, timestamp, is_owner, other_info)
        except EllipseError as e:
            logger.error(f"Authorization for lock {lock.id} failed: {e}")
            self._audit(EventType.AUTHORIZATION_FAILED, f"lock:{lock.id}",
                        error=type(e).__name__)
            raise
        return message

    def _build(self, lock, timestamp, is_owner, other_info) -> AuthorizationMessage:
        if other_info is None:
            other_info = ''
        if not isinstance(other_info, str):
            raise ValidationFailure("other_info must be text", field='other_info')

        expiry = format_timestamp(timestamp)
        lock_secrets = decrypt_lock(lock, self._storage)

        user_type = USER_TYPE_OWNER if is_owner else USER_TYPE_GUEST
        nonce = self.encrypted_nonce(lock_secrets, other_info)
        header = user_type + nonce + expiry + SECURITY_OPTION_DEFAULT

        signature = self._normalizer.sign(header, lock_secrets.private_key, LOCK_CURVE)
        self._audit(EventType.MESSAGE_SIGNED, lock_secrets.mac_id)

        message = AuthorizationMessage(
            user_type_flag=user_type,
            encrypted_nonce=nonce,
            timestamp=expiry,
            security_option=SECURITY_OPTION_DEFAULT,
            signature=signature,
        )
        self._audit(EventType.AUTHORIZATION_ISSUED, lock_secrets.mac_id,
                    owner=bool(is_owner), expires=message.has_expiry)
        return message

    def assemble(self, lock: LockRecord, timestamp: Optional[Union[int, str]] = None,
                 is_owner: bool = False, other_info: Optional[str] = '') -> str:
        """Build and serialize an authorization message (202 hex characters)."""
        return self.build(lock, timestamp, is_owner, other_info).to_hex()

    def _audit(self, event_type: EventType, subject: str, **details) -> None:
        if self._event_logger is not None:
            self._event_logger.log(event_type, subject, **details)


def verify_authorization(payload: str, public_key: str, curve: str = LOCK_CURVE) -> bool:
    """
    Verify an authorization message the way the lock does.

    Args:
        payload: 202-character message
        public_key: Lock public point (hex)
        curve: Lock curve

    Returns:
        True if well-formed and signed by the lock's key
    """
    try:
        message = AuthorizationMessage.from_hex(payload)
    except ValidationFailure:
        return False
    return verify_signature(message.header, message.signature, public_key, curve)
