"""Split the create_pair response into key and certificate and install both."""

import os
import stat
from pathlib import Path

from .errors import InstallationError
from .logging_config import LOGGER
from .models import ArtifactPair

CERT_MARKER = b"ssh-rsa"
OWNER_ONLY = stat.S_IRUSR | stat.S_IWUSR


def extract_certificate(raw_path: Path, cert_path: Path) -> int:
    """Copy every line holding certificate material into cert_path.

    Returns:
        Number of certificate lines written
    """
    count = 0
    with raw_path.open("rb") as src, cert_path.open("wb") as dst:
        for line in src:
            if CERT_MARKER in line:
                dst.write(line)
                count += 1
    return count


def split(raw_path: Path, cert_scratch: Path, pair: ArtifactPair) -> ArtifactPair:
    """Install the downloaded key and certificate at their final paths.

    raw_path holds the whole response and becomes the private key once the
    certificate lines have been copied out of it. Both scratch files are made
    owner-only before anything is copied and are then renamed back to back.
    If the certificate cannot be put in place, the key installed just before
    it is removed again, together with any older certificate at the target,
    so neither file is left without its partner.

    Args:
        raw_path: Scratch file with the validated server response
        cert_scratch: Empty scratch file to receive the certificate
        pair: Final key and certificate paths

    Returns:
        The installed pair

    Raises:
        InstallationError: If any permission change, copy or rename fails.
            Its stranded attribute names a final-path file that could not be
            removed afterwards.
    """
    try:
        os.chmod(raw_path, OWNER_ONLY)
        os.chmod(cert_scratch, OWNER_ONLY)

        lines = extract_certificate(raw_path, cert_scratch)
        if lines == 0:
            LOGGER.warning("No certificate lines found in server response")

        os.replace(raw_path, pair.key_path)
    except OSError as e:
        LOGGER.error("Installation failed after download: %s", e)
        raise InstallationError(e) from e

    try:
        os.replace(cert_scratch, pair.cert_path)
    except OSError as e:
        # neither the new key nor an older certificate may stay at the target
        LOGGER.error(
            "Certificate install failed, removing %s and %s: %s", pair.key_path, pair.cert_path, e
        )
        stranded = None
        for path in (pair.key_path, pair.cert_path):
            if not _discard(path) and stranded is None:
                stranded = path
        raise InstallationError(e, stranded=stranded) from e

    LOGGER.info("Installed %s and %s", pair.key_path, pair.cert_path)
    return pair


def _discard(path: Path) -> bool:
    """Remove path if present. Returns False when it is still there."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        LOGGER.error("Could not remove %s: %s", path, e)
        return False
    return True
