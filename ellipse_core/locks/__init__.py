# Locks Module
"""
Lock records and unlock authorization messages:
- LockRecord (encrypted mac_id / public_key / private_key)
- LockStore persist/fetch boundary and provisioning
- LockAuthorizationAssembler (202-character signed payload)

Message format: [user_type | encrypted_nonce | timestamp | security_option | signature]
"""

from .records import (
    LockRecord,
    LockSecrets,
    LockStore,
    InMemoryLockStore,
    decrypt_lock,
    provision_lock,
)

from .authorization import (
    AuthorizationMessage,
    LockAuthorizationAssembler,
    format_timestamp,
    verify_authorization,
    MESSAGE_LENGTH,
    NO_EXPIRY,
)

__all__ = [
    'LockRecord',
    'LockSecrets',
    'LockStore',
    'InMemoryLockStore',
    'decrypt_lock',
    'provision_lock',
    'AuthorizationMessage',
    'LockAuthorizationAssembler',
    'format_timestamp',
    'verify_authorization',
    'MESSAGE_LENGTH',
    'NO_EXPIRY',
]
