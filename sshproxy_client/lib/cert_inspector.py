"""Report the validity window of an installed OpenSSH certificate.

Purely informational: every failure here degrades to "no summary" because the
credential is already installed by the time it runs.
"""

import re
import subprocess
from datetime import UTC, datetime
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from .logging_config import LOGGER
from .models import ValidityWindow

# OpenSSH encodes "no upper bound" as the maximum uint64
_FOREVER = 0xFFFFFFFFFFFFFFFF
_VALID_LINE = re.compile(r"^\s*Valid:\s+(?:from\s+(\S+)\s+to\s+(\S+)|forever)\s*$", re.MULTILINE)


def _from_epoch(value: int, unbounded: int) -> datetime | None:
    if value == unbounded:
        return None
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, ValueError, OSError):
        # beyond what the platform can represent, treat as open-ended
        LOGGER.debug("Certificate timestamp %d out of range", value)
        return None


def _parse_with_cryptography(cert_path: Path) -> ValidityWindow | None:
    for line in cert_path.read_bytes().splitlines():
        if not line.strip():
            continue
        try:
            identity = serialization.load_ssh_public_identity(line.strip())
        except (ValueError, UnsupportedAlgorithm) as e:
            LOGGER.debug("Not an OpenSSH certificate line: %s", e)
            continue
        if isinstance(identity, serialization.SSHCertificate):
            return ValidityWindow(
                valid_after=_from_epoch(identity.valid_after, 0),
                valid_before=_from_epoch(identity.valid_before, _FOREVER),
            )
    return None


def _parse_timestamp(value: str) -> datetime | None:
    if value in ("always", "forever"):
        return None
    # ssh-keygen prints naive local time
    return datetime.fromisoformat(value).astimezone()


def parse_ssh_keygen_listing(listing: str) -> ValidityWindow | None:
    """Extract the validity window from `ssh-keygen -L` output."""
    match = _VALID_LINE.search(listing)
    if match is None:
        return None
    start, end = match.groups()
    if start is None:
        return ValidityWindow(valid_after=None, valid_before=None)
    try:
        return ValidityWindow(valid_after=_parse_timestamp(start), valid_before=_parse_timestamp(end))
    except ValueError:
        return None


def _parse_with_ssh_keygen(cert_path: Path) -> ValidityWindow | None:
    result = subprocess.run(
        ["ssh-keygen", "-L", "-f", str(cert_path)],
        capture_output=True,
        text=True,
        errors="replace",
        check=False,
    )
    if result.returncode != 0:
        LOGGER.debug("ssh-keygen -L failed: %s", result.stderr.strip())
        return None
    return parse_ssh_keygen_listing(result.stdout)


def describe(cert_path: Path) -> ValidityWindow | None:
    """Return the certificate's validity window, or None if it cannot be read."""
    try:
        window = _parse_with_cryptography(cert_path)
        if window is None:
            window = _parse_with_ssh_keygen(cert_path)
    except (OSError, ValueError, OverflowError) as e:
        # missing file, ssh-keygen not installed or unreadable output
        LOGGER.info("Could not inspect certificate %s: %s", cert_path, e)
        return None
    return window


def _format_time(value: datetime | None, unbounded: str) -> str:
    if value is None:
        return unbounded
    return value.astimezone().strftime("%Y-%m-%dT%H:%M:%S")


def format_validity(window: ValidityWindow) -> str:
    """Render the window the way ssh-keygen does, e.g. 'valid from X to Y'."""
    if window.valid_after is None and window.valid_before is None:
        return "valid forever"
    start = _format_time(window.valid_after, "always")
    end = _format_time(window.valid_before, "forever")
    return f"valid from {start} to {end}"
