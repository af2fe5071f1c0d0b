"""Client configuration dataclass."""

import getpass
import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import ArtifactPair

CERT_SUFFIX = "-cert.pub"


def _default_username() -> str:
    return os.environ.get("USER") or getpass.getuser()


@dataclass
class ProxyConfig:
    """Resolved settings for one key-issuance run.

    The CLI fills this from its flags; everything else uses the defaults of the
    NERSC sshproxy service.
    """

    server_url: str = "sshproxy.nersc.gov"
    default_id: str = "nersc"
    ssh_dir: Path = field(default_factory=lambda: Path("~/.ssh").expanduser())
    scope: str = "default"
    scope_given: bool = False
    username: str = field(default_factory=_default_username)
    output_path: Path | None = None
    timeout: float = 60.0

    def artifact_pair(self) -> ArtifactPair:
        """Resolve final key and certificate paths.

        Explicit output path wins, then the scope name when a scope was
        requested, then the default identifier.
        """
        if self.output_path is not None:
            key_path = Path(self.output_path).expanduser()
        elif self.scope_given:
            key_path = self.ssh_dir / self.scope
        else:
            key_path = self.ssh_dir / self.default_id

        return ArtifactPair(
            key_path=key_path,
            cert_path=key_path.with_name(key_path.name + CERT_SUFFIX),
        )
