"""Error taxonomy for key issuance, one process exit code per failure class."""

from pathlib import Path

EXIT_SUCCESS = 0
EXIT_TRANSPORT = 1
EXIT_AUTHENTICATION = 2
EXIT_PROTOCOL = 3
EXIT_INSTALLATION = 4
EXIT_USAGE = 64
EXIT_ABORTED = 255


class SSHProxyError(Exception):
    """Base class for failures that end a run with a specific exit code."""

    exit_code = EXIT_ABORTED


class UserAbort(SSHProxyError):
    """Run was interrupted by Ctrl-C or a termination signal."""

    exit_code = EXIT_ABORTED

    def __init__(self, reason: str = "Exited on interrupt/error") -> None:
        super().__init__(reason)
        self.reason = reason


class TransportError(SSHProxyError):
    """The HTTPS request failed before a usable response body arrived.

    Attributes:
        status: HTTP status code, when the server answered at all
        reason: Underlying cause (URLError reason, errno string, ...)
    """

    exit_code = EXIT_TRANSPORT

    def __init__(self, reason: object, status: int | None = None) -> None:
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP status {status}: {reason}"
        else:
            message = str(reason)
        super().__init__(message)


class AuthenticationError(SSHProxyError):
    """Server rejected the password+OTP."""

    exit_code = EXIT_AUTHENTICATION

    def __init__(self, server_message: str) -> None:
        super().__init__(server_message)
        self.server_message = server_message


class ProtocolError(SSHProxyError):
    """Server returned something other than a private key or an auth failure."""

    exit_code = EXIT_PROTOCOL

    def __init__(self, content: str) -> None:
        super().__init__("Did not get in a proper ssh private key")
        self.content = content


class InstallationError(SSHProxyError):
    """Keys were downloaded but could not be put in place.

    Raised only after the server has issued a credential.

    Attributes:
        cause: Underlying OSError or message
        stranded: File at a final path that could not be removed, if any
    """

    exit_code = EXIT_INSTALLATION

    def __init__(self, cause: object, stranded: Path | None = None) -> None:
        message = f"keys were downloaded but not installed: {cause}"
        if stranded is not None:
            message += f" (left behind: {stranded})"
        super().__init__(message)
        self.cause = cause
        self.stranded = stranded
