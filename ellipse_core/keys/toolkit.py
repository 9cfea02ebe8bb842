"""
External Toolkit Runner

Runs the `openssl` command-line toolkit and manages the temporary artifacts
(key files, messages, signatures) each pipeline needs.

Artifact names are unique per invocation:
    [<request_id>-]<millisecond timestamp>-<random hex><suffix>
so concurrent pipelines never touch each other's files.

Cleanup is best-effort: a missing artifact is logged, never raised.
"""

import logging
import os
import re
import secrets
import subprocess
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from ..errors import FileIOFailure, SubprocessFailure, ValidationFailure
from ..integration.event_logger import EventType


logger = logging.getLogger(__name__)

DEFAULT_BINARY = 'openssl'
RANDOM_SUFFIX_BYTES = 4
_REQUEST_ID_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{1,64}$')


class OpenSSLToolkit:
    """
    Thin wrapper around the `openssl` binary.

    Holds configuration only; every call owns its own artifacts.
    """

    def __init__(self, binary: str = DEFAULT_BINARY,
                 work_dir: Optional[Union[str, Path]] = None,
                 timeout: Optional[float] = None,
                 event_logger=None):
        """
        Args:
            binary: Path or name of the openssl executable
            work_dir: Directory for temporary artifacts (default: system temp)
            timeout: Optional deadline in seconds per process; None waits forever
            event_logger: Optional EventLogger for audit events
        """
        self.binary = binary
        self.work_dir = Path(work_dir) if work_dir else Path(tempfile.gettempdir())
        self.timeout = timeout
        self._event_logger = event_logger

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def unique_path(self, suffix: str = '.pem', request_id: Optional[str] = None) -> Path:
        """
        Generate a fresh artifact path in the work directory.

        Args:
            suffix: File extension
            request_id: Optional caller-supplied identifier (alphanumeric, _ . -)

        Returns:
            Path that did not exist at generation time
        """
        if request_id is not None and not _REQUEST_ID_PATTERN.match(request_id):
            raise ValidationFailure(f"Invalid request id: {request_id!r}", field='request_id')

        stamp = f"{int(time.time() * 1000)}-{secrets.token_hex(RANDOM_SUFFIX_BYTES)}"
        name = f"{request_id}-{stamp}" if request_id else stamp
        path = self.work_dir / f"{name}{suffix}"
        while path.exists():
            path = self.work_dir / f"{name}-{secrets.token_hex(RANDOM_SUFFIX_BYTES)}{suffix}"
        return path

    @contextmanager
    def artifact(self, suffix: str = '.pem',
                 request_id: Optional[str] = None) -> Iterator[Path]:
        """
        Reserve an artifact path and remove the file when the block exits,
        whether it succeeded or raised.
        """
        path = self.unique_path(suffix, request_id)
        try:
            yield path
        finally:
            self.remove_artifact(path)

    def remove_artifact(self, path: Path) -> bool:
        """
        Delete an artifact.

        Returns:
            True if a file was removed, False if it was already gone
            or could not be removed (both are logged)
        """
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Artifact already absent at cleanup: {path.name}")
            if self._event_logger is not None:
                self._event_logger.log(EventType.ARTIFACT_MISSING, path.name)
            return False
        except OSError as e:
            logger.error(f"Failed to remove artifact {path.name}: {e}")
            return False

        logger.debug(f"Removed artifact {path.name}")
        return True

    @staticmethod
    def write_artifact(path: Path, data: bytes) -> None:
        """
        Create an artifact exclusively with owner-only permissions.

        Raises:
            FileIOFailure: If the file exists or cannot be written
        """
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        except OSError as e:
            raise FileIOFailure(f"Cannot create artifact {path.name}: {e}", str(path)) from e

        with os.fdopen(fd, 'wb') as f:
            f.write(data)

    @staticmethod
    def read_artifact(path: Path) -> bytes:
        """
        Read an artifact produced by the toolkit.

        Raises:
            FileIOFailure: If the file is missing or unreadable
        """
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileIOFailure(f"Cannot read artifact {path.name}: {e}", str(path)) from e

    # ------------------------------------------------------------------
    # Process
    # ------------------------------------------------------------------

    def run(self, *args: str) -> str:
        """
        Run an openssl subcommand and return its stdout.

        Args:
            *args: Arguments after the binary, e.g. ('ecparam', '-name', ...)

        Returns:
            Captured stdout as text

        Raises:
            SubprocessFailure: Binary missing, non-zero exit, or timeout
        """
        command = [self.binary, *args]
        logger.debug(f"Running toolkit: {' '.join(command[:2])}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise SubprocessFailure(
                f"Toolkit not available: {self.binary}", command
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SubprocessFailure(
                f"Toolkit timed out after {self.timeout}s", command
            ) from e
        except OSError as e:
            raise SubprocessFailure(f"Toolkit could not start: {e}", command) from e

        if result.returncode != 0:
            stderr = (result.stderr or '').strip()
            logger.error(f"Toolkit '{args[0] if args else ''}' exited with {result.returncode}")
            raise SubprocessFailure(
                f"Toolkit exited with status {result.returncode}: {stderr}",
                command, result.returncode, stderr
            )

        return result.stdout

    def is_available(self) -> bool:
        """Check whether the toolkit binary runs."""
        try:
            self.run('version')
            return True
        except SubprocessFailure:
            return False
