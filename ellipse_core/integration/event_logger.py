"""
Event Logger Module

Audit trail for security-relevant operations of the lock core.

Features:
- Key generation and toolkit cleanup events
- Lock provisioning and authorization events
- Password verification events
- Privacy-preserving subject hashes (SHA-256): MAC ids and user ids are
  never recorded in plaintext
- Bounded in-memory history, mirrored to the `logging` module

Private scalars, plaintext values and passwords are never passed to the
event logger.
"""

import hashlib
import json
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any, Callable


logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

EVENT_VERSION = "1.0"
DEFAULT_MAX_EVENTS = 1000
SUBJECT_HASH_CHARS = 16


# ============================================================================
# Privacy Functions
# ============================================================================

def get_subject_hash(subject: str) -> str:
    """
    Compute privacy-preserving hash of an event subject.

    Allows correlating events for the same lock or user without storing the
    identifier itself.

    Args:
        subject: Plaintext identifier (MAC id, user id, curve name)

    Returns:
        Hex-encoded SHA-256 hash
    """
    return hashlib.sha256(subject.encode('utf-8')).hexdigest()


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of security events that can be logged."""

    # Key material events
    KEY_GENERATED = "key_generated"
    KEY_GENERATION_FAILED = "key_generation_failed"
    ARTIFACT_MISSING = "artifact_missing"

    # Lock events
    LOCK_PROVISIONED = "lock_provisioned"
    MESSAGE_SIGNED = "message_signed"
    AUTHORIZATION_ISSUED = "authorization_issued"
    AUTHORIZATION_FAILED = "authorization_failed"

    # Credential events
    PASSWORD_VERIFIED = "password_verified"
    PASSWORD_REJECTED = "password_rejected"


_WARNING_EVENTS = {
    EventType.KEY_GENERATION_FAILED,
    EventType.ARTIFACT_MISSING,
    EventType.AUTHORIZATION_FAILED,
    EventType.PASSWORD_REJECTED,
}


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class SecurityEvent:
    """
    Represents a security event to be logged.

    All subject-identifying information is hashed for privacy.
    """
    event_type: EventType
    subject_hash: str
    timestamp: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> str:
        """Serialize event as compact JSON."""
        return json.dumps({
            'version': EVENT_VERSION,
            'type': self.event_type.value,
            'subject': self.subject_hash[:SUBJECT_HASH_CHARS],
            'time': self.timestamp,
            'iso_time': datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat(),
            'details': self.details,
        }, separators=(',', ':'), sort_keys=True)

    @classmethod
    def from_record(cls, record: str) -> 'SecurityEvent':
        """Parse event from its JSON record."""
        data = json.loads(record)
        return cls(
            event_type=EventType(data['type']),
            subject_hash=data['subject'],
            timestamp=data['time'],
            details=data.get('details', {}),
        )

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp, tz=timezone.utc)
        return (
            f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] "
            f"{self.event_type.value} | "
            f"subject:{self.subject_hash[:8]}..."
        )


# ============================================================================
# Event Logger
# ============================================================================

class EventLogger:
    """
    In-memory security audit log.

    Keeps the most recent events, notifies callbacks, and mirrors every
    event to the standard `logging` module.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        """
        Args:
            max_events: Number of events retained in history
        """
        if max_events < 1:
            raise ValueError("max_events must be positive")
        self._events = deque(maxlen=max_events)
        self._callbacks: List[Callable[[SecurityEvent], None]] = []

    def log(self, event_type: EventType, subject: str, **details) -> SecurityEvent:
        """
        Record an event.

        Args:
            event_type: Kind of event
            subject: Plaintext identifier (will be hashed)
            **details: Non-secret context (curve, backend, error class)

        Returns:
            The logged event
        """
        event = SecurityEvent(
            event_type=event_type,
            subject_hash=get_subject_hash(subject),
            timestamp=int(time.time()),
            details=details,
        )
        self._events.append(event)

        level = logging.WARNING if event_type in _WARNING_EVENTS else logging.INFO
        logger.log(level, str(event))

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event callback failed: {e}")

        return event

    def add_callback(self, callback: Callable[[SecurityEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[SecurityEvent], None]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def events(self) -> List[SecurityEvent]:
        return list(self._events)

    def get_events_by_type(self, event_type: EventType) -> List[SecurityEvent]:
        """Get all retained events of a type."""
        return [e for e in self._events if e.event_type == event_type]

    def get_events_for_subject(self, subject: str) -> List[SecurityEvent]:
        """Get all retained events for a plaintext subject."""
        subject_hash = get_subject_hash(subject)
        return [e for e in self._events if e.subject_hash == subject_hash]

    def get_statistics(self) -> Dict[str, int]:
        """Count retained events per type."""
        stats: Dict[str, int] = {}
        for event in self._events:
            stats[event.event_type.value] = stats.get(event.event_type.value, 0) + 1
        return stats

    def export_records(self) -> List[str]:
        """Serialize retained events as JSON records."""
        return [event.to_record() for event in self._events]

    def clear(self) -> None:
        self._events.clear()


def create_event_logger(max_events: int = DEFAULT_MAX_EVENTS) -> EventLogger:
    """Create a new event logger."""
    return EventLogger(max_events=max_events)
