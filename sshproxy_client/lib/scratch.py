"""Scratch files staged next to the final key location."""

import os
import tempfile
from pathlib import Path

from .logging_config import LOGGER


class ScratchFiles:
    """Tracks temporary files created during one run and removes them on release.

    Files are created in the install directory so the final move is a rename
    within one filesystem.
    """

    def __init__(self) -> None:
        self._paths: list[Path] = []

    def __enter__(self) -> "ScratchFiles":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release_all()

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def allocate(self, target_dir: Path, prefix: str) -> Path:
        """Create an empty owner-only file named {prefix}XXXXXX in target_dir.

        Args:
            target_dir: Directory the final artifact will live in
            prefix: Name prefix, e.g. 'key.' or 'cert.'

        Returns:
            Path to the new file
        """
        # mkstemp opens with O_EXCL and mode 0600
        fd, name = tempfile.mkstemp(prefix=prefix, dir=target_dir)
        os.close(fd)
        path = Path(name)
        self._paths.append(path)
        LOGGER.debug("Allocated scratch file %s", path)
        return path

    def forget(self, path: Path) -> None:
        """Stop tracking a file that has been renamed into its final place."""
        if path in self._paths:
            self._paths.remove(path)

    def release_all(self) -> None:
        """Remove every tracked file that still exists. Safe to call repeatedly."""
        while self._paths:
            path = self._paths.pop()
            try:
                path.unlink()
                LOGGER.debug("Removed scratch file %s", path)
            except FileNotFoundError:
                pass
            except OSError as e:
                LOGGER.warning("Could not remove scratch file %s: %s", path, e)
