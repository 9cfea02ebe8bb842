# Ellipse Core Test Suite
"""
Test suite including:
- Unit tests per component
- Integration tests (provision -> store -> authorize)
- Security tests (tampering, secret hygiene)

Run with: pytest
Tests that need the openssl binary are skipped when it is not installed.
"""
