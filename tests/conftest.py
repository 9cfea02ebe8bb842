"""
Shared fixtures for the lock core tests.
"""

import pytest

from ellipse_core.crypto.vault import StorageCipher
from ellipse_core.integration.event_logger import EventLogger
from ellipse_core.keys.provider import KeyPair, generate_key_pair
from ellipse_core.locks.records import LockRecord


MAC_ID = "C73E7F7F6572"


def render_key_dump(key_pair: KeyPair, sign_pad: bool = False) -> str:
    """Render a key pair the way `openssl ec -text -noout` prints it."""

    def octet_lines(hex_value):
        octets = [hex_value[i:i + 2] for i in range(0, len(hex_value), 2)]
        lines = []
        for start in range(0, len(octets), 15):
            chunk = octets[start:start + 15]
            last = start + 15 >= len(octets)
            lines.append("    " + ":".join(chunk) + ("" if last else ":"))
        return lines

    private_hex = ("00" if sign_pad else "") + key_pair.private_key
    lines = [f"Private-Key: ({len(key_pair.private_key) * 4} bit)", "priv:"]
    lines += octet_lines(private_hex)
    lines.append("pub:")
    lines += octet_lines(key_pair.public_key)
    lines.append(f"ASN1 OID: {key_pair.curve}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def db_keys():
    return generate_key_pair()


@pytest.fixture
def lock_keys():
    return generate_key_pair()


@pytest.fixture
def storage(db_keys):
    return StorageCipher(db_keys.public_key, db_keys.private_key)


@pytest.fixture
def lock_record(storage, lock_keys):
    """Encrypted lock row as the storage layer would hand it over."""
    return LockRecord(
        mac_id=storage.encrypt(MAC_ID),
        public_key=storage.encrypt(lock_keys.public_key),
        private_key=storage.encrypt(lock_keys.private_key),
        id=1,
    )


@pytest.fixture
def event_logger():
    return EventLogger()
