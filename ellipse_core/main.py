"""
Ellipse Core - Command Line Entry Point

Usage:
    ellipse-core keygen [--curve secp256k1] [--backend native] [--show-private]
    echo -n "password" | ellipse-core hash-password
    ellipse-core provision --mac-id C73E7F7F6572
    ellipse-core authorize --mac-id <ct> --public-key <ct> --private-key <ct>
                           [--timestamp ffffffff] [--owner] [--other-info text]

provision and authorize read the database key pair from the environment
(see ellipse_core.config).
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .auth.credentials import PasswordCredential
from .config import EllipseConfig
from .errors import EllipseError
from .integration.event_logger import create_event_logger
from .keys.curves import LOCK_CURVE
from .keys.provider import BACKENDS, BACKEND_NATIVE, KeyMaterialProvider
from .keys.toolkit import OpenSSLToolkit
from .locks.records import LockRecord, provision_lock


def cmd_keygen(args: argparse.Namespace) -> int:
    """Generate a key pair and print it as JSON."""
    toolkit = OpenSSLToolkit() if args.backend != BACKEND_NATIVE else None
    provider = KeyMaterialProvider(backend=args.backend, curve=args.curve, toolkit=toolkit)
    key_pair = provider.generate()

    output = {'curve': key_pair.curve, 'public_key': key_pair.public_key}
    if args.show_private:
        output['private_key'] = key_pair.private_key
    print(json.dumps(output, indent=2))
    return 0


def cmd_hash_password(args: argparse.Namespace) -> int:
    """Hash a password read from stdin."""
    password = sys.stdin.readline().rstrip('\r\n')
    print(PasswordCredential().hash(password))
    return 0


def cmd_provision(args: argparse.Namespace) -> int:
    """Provision a lock and print its encrypted record plus public key."""
    config = EllipseConfig.from_env()
    event_logger = create_event_logger()

    record, key_pair = provision_lock(
        args.mac_id,
        config.storage_cipher(),
        provider=config.key_provider(event_logger=event_logger),
        event_logger=event_logger
    )
    output = record.to_row()
    output['lock_public_key'] = key_pair.public_key
    print(json.dumps(output, indent=2))
    return 0


def cmd_authorize(args: argparse.Namespace) -> int:
    """Assemble an authorization message for an encrypted lock record."""
    config = EllipseConfig.from_env()
    assembler = config.assembler(event_logger=create_event_logger())

    lock = LockRecord(
        mac_id=args.mac_id,
        public_key=args.public_key,
        private_key=args.private_key,
    )
    timestamp = args.timestamp
    if timestamp is not None and timestamp.isdigit() and len(timestamp) != 8:
        timestamp = int(timestamp)

    print(assembler.assemble(lock, timestamp, is_owner=args.owner, other_info=args.other_info))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ellipse-core',
        description="Smart-lock key management and authorization messages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--verbose', '-v', action='store_true', help="Enable debug logging")
    subparsers = parser.add_subparsers(dest='command', help="Commands")

    # keygen
    p = subparsers.add_parser('keygen', help="Generate an EC key pair")
    p.add_argument('--curve', default=LOCK_CURVE, help="Curve name (default: secp256k1)")
    p.add_argument('--backend', choices=BACKENDS, default=BACKEND_NATIVE,
                   help="Key generation backend")
    p.add_argument('--show-private', action='store_true', help="Include the private scalar")
    p.set_defaults(func=cmd_keygen)

    # hash-password
    p = subparsers.add_parser('hash-password', help="Hash a password read from stdin")
    p.set_defaults(func=cmd_hash_password)

    # provision
    p = subparsers.add_parser('provision', help="Provision a lock record")
    p.add_argument('--mac-id', required=True, help="Lock MAC id")
    p.set_defaults(func=cmd_provision)

    # authorize
    p = subparsers.add_parser('authorize', help="Assemble an unlock authorization message")
    p.add_argument('--mac-id', required=True, help="Encrypted MAC id")
    p.add_argument('--public-key', required=True, help="Encrypted lock public key")
    p.add_argument('--private-key', required=True, help="Encrypted lock private key")
    p.add_argument('--timestamp', help="Expiry: 8 hex digits or unix seconds (default: none)")
    p.add_argument('--owner', action='store_true', help="Requester owns the lock")
    p.add_argument('--other-info', default='', help="Extra context for the nonce")
    p.set_defaults(func=cmd_authorize)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for ellipse-core."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not getattr(args, 'func', None):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except EllipseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
