"""
Configuration

Settings are read from the environment:

    ELLIPSE_ELLIPTICAL_DB_PUBLIC_KEY    database public point (hex)      required
    ELLIPSE_ELLIPTICAL_DB_PRIVATE_KEY   database private scalar (hex)    required
    ELLIPSE_ELLIPTICAL_KEYS_DIR_PATH    directory for toolkit artifacts  default: temp dir
    ELLIPSE_OPENSSL_BIN                 openssl executable               default: openssl
    ELLIPSE_KEY_BACKEND                 native | openssl                 default: native
    ELLIPSE_TOOLKIT_TIMEOUT             seconds per toolkit process      default: none
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .crypto.signatures import OpenSSLSigner, SignatureNormalizer
from .crypto.vault import StorageCipher, SymmetricVault
from .errors import ValidationFailure
from .keys.curves import LOCK_CURVE, SIGNING_CURVE, DEFAULT_HASH
from .keys.provider import BACKENDS, BACKEND_NATIVE, BACKEND_OPENSSL, KeyMaterialProvider
from .keys.toolkit import OpenSSLToolkit, DEFAULT_BINARY
from .locks.authorization import LockAuthorizationAssembler


ENV_DB_PUBLIC_KEY = 'ELLIPSE_ELLIPTICAL_DB_PUBLIC_KEY'
ENV_DB_PRIVATE_KEY = 'ELLIPSE_ELLIPTICAL_DB_PRIVATE_KEY'
ENV_KEYS_DIR = 'ELLIPSE_ELLIPTICAL_KEYS_DIR_PATH'
ENV_OPENSSL_BIN = 'ELLIPSE_OPENSSL_BIN'
ENV_KEY_BACKEND = 'ELLIPSE_KEY_BACKEND'
ENV_TOOLKIT_TIMEOUT = 'ELLIPSE_TOOLKIT_TIMEOUT'

REQUIRED_VARIABLES = (ENV_DB_PUBLIC_KEY, ENV_DB_PRIVATE_KEY)


@dataclass(frozen=True)
class EllipseConfig:
    """Core settings."""
    db_public_key: str
    db_private_key: str
    key_dir: Path = Path(tempfile.gettempdir())
    openssl_bin: str = DEFAULT_BINARY
    key_backend: str = BACKEND_NATIVE
    toolkit_timeout: Optional[float] = None
    lock_curve: str = LOCK_CURVE
    signing_curve: str = SIGNING_CURVE
    hash_name: str = DEFAULT_HASH

    def __repr__(self) -> str:
        return (
            f"EllipseConfig(key_dir={str(self.key_dir)!r}, "
            f"key_backend={self.key_backend!r}, openssl_bin={self.openssl_bin!r})"
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'EllipseConfig':
        """
        Load settings from environment variables.

        Args:
            env: Mapping to read (default: os.environ)

        Returns:
            EllipseConfig

        Raises:
            ValidationFailure: Required variables missing or values invalid
        """
        if env is None:
            env = os.environ

        missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
        if missing:
            raise ValidationFailure(
                "Environment is not configured. Export: " + ', '.join(missing),
                field=missing[0]
            )

        backend = env.get(ENV_KEY_BACKEND, BACKEND_NATIVE).strip().lower()
        if backend not in BACKENDS:
            raise ValidationFailure(
                f"{ENV_KEY_BACKEND} must be one of {', '.join(BACKENDS)}",
                field=ENV_KEY_BACKEND
            )

        timeout = None
        raw_timeout = env.get(ENV_TOOLKIT_TIMEOUT)
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValidationFailure(
                    f"{ENV_TOOLKIT_TIMEOUT} must be a number", field=ENV_TOOLKIT_TIMEOUT
                ) from None
            if timeout <= 0:
                raise ValidationFailure(
                    f"{ENV_TOOLKIT_TIMEOUT} must be positive", field=ENV_TOOLKIT_TIMEOUT
                )

        key_dir = env.get(ENV_KEYS_DIR)
        return cls(
            db_public_key=env[ENV_DB_PUBLIC_KEY].strip(),
            db_private_key=env[ENV_DB_PRIVATE_KEY].strip(),
            key_dir=Path(key_dir) if key_dir else Path(tempfile.gettempdir()),
            openssl_bin=env.get(ENV_OPENSSL_BIN) or DEFAULT_BINARY,
            key_backend=backend,
            toolkit_timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def toolkit(self, event_logger=None) -> OpenSSLToolkit:
        return OpenSSLToolkit(
            binary=self.openssl_bin,
            work_dir=self.key_dir,
            timeout=self.toolkit_timeout,
            event_logger=event_logger
        )

    def key_provider(self, curve: Optional[str] = None, event_logger=None) -> KeyMaterialProvider:
        toolkit = self.toolkit(event_logger) if self.key_backend == BACKEND_OPENSSL else None
        return KeyMaterialProvider(
            backend=self.key_backend,
            curve=curve or self.lock_curve,
            hash_name=self.hash_name,
            toolkit=toolkit,
            event_logger=event_logger
        )

    def normalizer(self, curve: Optional[str] = None, event_logger=None) -> SignatureNormalizer:
        signer = None
        if self.key_backend == BACKEND_OPENSSL:
            signer = OpenSSLSigner(self.toolkit(event_logger))
        return SignatureNormalizer(signer, curve or self.lock_curve, self.hash_name)

    def storage_cipher(self) -> StorageCipher:
        return StorageCipher(
            self.db_public_key,
            self.db_private_key,
            SymmetricVault(self.lock_curve)
        )

    def assembler(self, event_logger=None) -> LockAuthorizationAssembler:
        return LockAuthorizationAssembler(
            self.storage_cipher(),
            vault=SymmetricVault(self.lock_curve),
            normalizer=self.normalizer(event_logger=event_logger),
            event_logger=event_logger
        )
