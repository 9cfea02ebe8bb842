# Integration Module
"""
Audit logging for security events across the lock core.

All events are logged with privacy-preserving subject hashes.
"""

from .event_logger import (
    EventType,
    SecurityEvent,
    EventLogger,
    get_subject_hash,
    create_event_logger,
)

__all__ = [
    'EventType',
    'SecurityEvent',
    'EventLogger',
    'get_subject_hash',
    'create_event_logger',
]
