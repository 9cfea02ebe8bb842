"""
Key Dump Parser

Parses the text printed by `openssl ec -in key.pem -text -noout`:

    Private-Key: (256 bit)
    priv:
        1f:0c:9a:...:
        ...
    pub:
        04:6e:...:
        ...
    ASN1 OID: secp256k1

The parser is strict about label order. Any deviation is a ParseFailure,
never a partially-populated result.
"""

import re
from typing import List, Tuple

from ..errors import ParseFailure


_OCTET = re.compile(r'^[0-9a-fA-F]{2}$')


def _octets(line: str, line_number: int) -> str:
    """Join one line of colon-separated hex octets."""
    compact = re.sub(r'\s', '', line)
    parts = compact.split(':')
    if parts and parts[-1] == '':
        parts.pop()

    for part in parts:
        if not _OCTET.match(part):
            raise ParseFailure(
                f"Line {line_number}: expected hex octets, got {line.strip()!r}"
            )
    return ''.join(parts).lower()


def _find_label(lines: List[str], label: str, start: int) -> int:
    for index in range(start, len(lines)):
        if label in lines[index].lower():
            return index
    return -1


def parse_key_dump(text: str, curve: str) -> Tuple[str, str]:
    """
    Extract the private scalar and public point from a key dump.

    Args:
        text: Toolkit output
        curve: Curve name expected on the terminating line

    Returns:
        Tuple of (private_hex, public_hex)

    Raises:
        ParseFailure: Missing labels, missing curve line, non-hex content,
            empty components or a compressed public point
    """
    if not text:
        raise ParseFailure("No key dump text to parse")

    lines = text.splitlines()
    curve_label = curve.lower()

    priv_index = _find_label(lines, 'priv:', 0)
    if priv_index < 0:
        raise ParseFailure("Key dump has no 'priv:' section")

    pub_index = _find_label(lines, 'pub:', priv_index + 1)
    if pub_index < 0:
        raise ParseFailure("Key dump has no 'pub:' section")

    end_index = _find_label(lines, curve_label, pub_index + 1)
    if end_index < 0:
        raise ParseFailure(f"Key dump has no line naming curve {curve}")

    private_hex = ''.join(
        _octets(lines[i], i + 1) for i in range(priv_index + 1, pub_index)
    )
    public_hex = ''.join(
        _octets(lines[i], i + 1) for i in range(pub_index + 1, end_index)
    )

    if not private_hex or not public_hex:
        raise ParseFailure("Key dump produced an empty private or public component")

    # Uncompressed X9.62 point
    if not public_hex.startswith('04') or len(public_hex) % 2 != 0 or len(public_hex) < 6:
        raise ParseFailure("Public point in key dump is not uncompressed")

    return private_hex, public_hex
