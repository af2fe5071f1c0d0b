"""HTTPS client for the sshproxy create_pair endpoint."""

import base64
import http.client
import urllib.error
import urllib.request
from pathlib import Path
from typing import BinaryIO

from .errors import InstallationError, TransportError
from .logging_config import LOGGER
from .models import CredentialRequest

CHUNK_SIZE = 64 * 1024


class IssuanceClient:
    """Requests a key pair from the sshproxy server.

    Failures are never retried: a retry would resubmit a one-time password.
    """

    def __init__(self, server_url: str, timeout: float | None = 60.0) -> None:
        """Initialize client.

        Args:
            server_url: Host (and optional port) of the sshproxy server, no scheme
            timeout: Socket timeout in seconds, None to wait forever
        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout

    def endpoint(self, scope: str) -> str:
        return f"https://{self.server_url}/create_pair/{scope}/"

    def request(self, credential: CredentialRequest, destination: Path) -> int:
        """POST the credential and stream the response body into destination.

        The server reports bad credentials as a plain-text body on an error
        status, so error bodies are written out for the validator too.

        Args:
            credential: Username, secret and scope for this run
            destination: Scratch file to receive the body

        Returns:
            Number of bytes written

        Raises:
            TransportError: On network failure or an empty body
            InstallationError: If the destination cannot be written
        """
        url = self.endpoint(credential.scope)
        token = base64.b64encode(
            f"{credential.username}:{credential.secret}".encode("utf-8")
        ).decode("ascii")
        headers = {"Authorization": f"Basic {token}"}

        LOGGER.info("Requesting key pair for %s from %s", credential.username, url)

        req = urllib.request.Request(url, data=b"", headers=headers, method="POST")
        try:
            out = destination.open("wb", buffering=0)
        except OSError as e:
            raise InstallationError(e) from e
        with out:
            try:
                with urllib.request.urlopen(req, timeout=self.timeout) as response:
                    written = _stream_to_file(response, out)
                    status = response.status
            except urllib.error.HTTPError as e:
                # HTTPError is also a response object carrying the error body
                with e:
                    written = _stream_to_file(e, out)
                LOGGER.info("Server answered HTTP %s with %d bytes", e.code, written)
                if written == 0:
                    raise TransportError(e.reason, status=e.code) from e
                return written
            except urllib.error.URLError as e:
                raise TransportError(e.reason) from e
            except (OSError, http.client.HTTPException) as e:
                # socket timeouts and connection resets during the read
                raise TransportError(e) from e

        LOGGER.info("Server answered HTTP %s with %d bytes", status, written)
        if written == 0:
            raise TransportError("empty response from server", status=status)
        return written


def _stream_to_file(source: BinaryIO, out: BinaryIO) -> int:
    """Copy source into out chunk by chunk.

    Read errors propagate to the caller's transport handling. Errors writing
    the local file are raised as InstallationError so they are not mistaken
    for network failures.
    """
    written = 0
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        view = memoryview(chunk)
        try:
            # unbuffered writes may be short
            while view:
                view = view[out.write(view) :]
        except OSError as e:
            raise InstallationError(e) from e
        written += len(chunk)
    return written
