"""
Lock Records

A lock is persisted as three StorageCipher ciphertexts:

    mac_id       hex ciphertext of the lock's MAC id
    public_key   hex ciphertext of the lock's public point
    private_key  hex ciphertext of the lock's private scalar

No plaintext key material crosses the storage boundary. Plaintext only
exists transiently while an authorization message is assembled.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..crypto.vault import StorageCipher
from ..errors import ValidationFailure
from ..integration.event_logger import EventType
from ..keys.curves import LOCK_CURVE
from ..keys.provider import KeyMaterialProvider, KeyPair


logger = logging.getLogger(__name__)

LOCK_COLUMNS = ('mac_id', 'public_key', 'private_key')


@dataclass
class LockRecord:
    """Encrypted lock row."""
    mac_id: str
    public_key: str
    private_key: str
    id: Optional[int] = None

    def to_row(self) -> Dict[str, object]:
        """Column mapping for the storage layer."""
        row = {column: getattr(self, column) for column in LOCK_COLUMNS}
        if self.id is not None:
            row['id'] = self.id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, object]) -> 'LockRecord':
        """
        Build a record from a storage row.

        Raises:
            ValidationFailure: If a column is missing
        """
        missing = [column for column in LOCK_COLUMNS if column not in row]
        if missing:
            raise ValidationFailure(
                f"Lock row is missing columns: {', '.join(missing)}", field=missing[0]
            )
        return cls(
            mac_id=row['mac_id'],
            public_key=row['public_key'],
            private_key=row['private_key'],
            id=row.get('id'),
        )


@dataclass(frozen=True)
class LockSecrets:
    """Decrypted lock fields; never stored."""
    mac_id: str
    public_key: str
    private_key: str

    def __repr__(self) -> str:
        return f"LockSecrets(mac_id=<hidden>, public_key={self.public_key[:16]}...)"


def decrypt_lock(lock: LockRecord, storage: StorageCipher) -> LockSecrets:
    """
    Decrypt a lock's stored fields.

    Raises:
        ValidationFailure: If a field is absent or decrypts to an empty value
        CryptoFailure: If a field cannot be decrypted
    """
    values = {}
    for column in LOCK_COLUMNS:
        ciphertext = getattr(lock, column, None)
        if not ciphertext:
            raise ValidationFailure(f"Lock field {column} is empty", field=column)
        plaintext = storage.decrypt(ciphertext)
        if not plaintext:
            raise ValidationFailure(f"Lock field {column} decrypted to empty", field=column)
        values[column] = plaintext
    return LockSecrets(**values)


# ============================================================================
# Storage boundary
# ============================================================================

class LockStore(ABC):
    """persist/fetch boundary implemented by the storage layer."""

    @abstractmethod
    def persist(self, record: LockRecord) -> LockRecord:
        """Store a record and return it with its assigned id."""

    @abstractmethod
    def fetch(self, lock_id: int) -> Optional[LockRecord]:
        """Fetch a record by id, or None."""


class InMemoryLockStore(LockStore):
    """Dictionary-backed LockStore for tests and tooling."""

    def __init__(self):
        self._rows: Dict[int, Dict[str, object]] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def persist(self, record: LockRecord) -> LockRecord:
        with self._lock:
            lock_id = record.id if record.id is not None else self._next_id
            self._next_id = max(self._next_id, lock_id + 1)
            stored = LockRecord(record.mac_id, record.public_key, record.private_key, lock_id)
            self._rows[lock_id] = stored.to_row()
        return stored

    def fetch(self, lock_id: int) -> Optional[LockRecord]:
        with self._lock:
            row = self._rows.get(lock_id)
        return LockRecord.from_row(row) if row is not None else None

    def __len__(self) -> int:
        return len(self._rows)


# ============================================================================
# Provisioning
# ============================================================================

def provision_lock(mac_id: str, storage: StorageCipher,
                   provider: Optional[KeyMaterialProvider] = None,
                   store: Optional[LockStore] = None,
                   event_logger=None) -> Tuple[LockRecord, KeyPair]:
    """
    Create a lock's key pair and its encrypted record.

    Args:
        mac_id: Lock MAC id
        storage: Cipher bound to the database key pair
        provider: Key provider (default: native secp256k1)
        store: Optional store to persist the record in
        event_logger: Optional EventLogger

    Returns:
        Tuple of (record, key_pair). The key pair is returned so the caller
        can hand the public key to the lock; do not persist it.

    Raises:
        ValidationFailure: Empty MAC id
    """
    if not mac_id:
        raise ValidationFailure("MAC id is required", field='mac_id')

    provider = provider or KeyMaterialProvider(curve=LOCK_CURVE)
    key_pair = provider.generate(LOCK_CURVE)

    record = LockRecord(
        mac_id=storage.encrypt(mac_id),
        public_key=storage.encrypt(key_pair.public_key),
        private_key=storage.encrypt(key_pair.private_key),
    )
    if store is not None:
        record = store.persist(record)

    logger.info(f"Provisioned lock record {record.id if record.id is not None else '(unsaved)'}")
    if event_logger is not None:
        event_logger.log(EventType.LOCK_PROVISIONED, mac_id, curve=LOCK_CURVE)

    return record, key_pair
