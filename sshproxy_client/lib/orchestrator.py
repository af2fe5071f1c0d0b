"""Run one key issuance: prompt, request, validate, install, describe."""

import signal
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path

from .artifact_splitter import split
from .cert_inspector import describe
from .config import ProxyConfig
from .errors import UserAbort
from .issuance_client import IssuanceClient
from .logging_config import LOGGER
from .models import CredentialRequest, IssuanceResult, ValidityWindow
from .response_validator import raise_for_outcome, validate
from .scratch import ScratchFiles
from .secret_prompt import TerminalState, prompt_secret

_ABORT_SIGNAL_NAMES = ("SIGTERM", "SIGHUP", "SIGPIPE", "SIGABRT")
ABORT_SIGNALS = tuple(
    sig for sig in (getattr(signal, name, None) for name in _ABORT_SIGNAL_NAMES) if sig is not None
)


@contextmanager
def signal_guard(signals: tuple[int, ...] = ABORT_SIGNALS) -> Iterator[None]:
    """Turn termination signals into UserAbort for the duration of the block.

    The exception unwinds through the enclosing context managers, so cleanup
    runs the same way as for any other failure. Previous handlers are put back
    on exit.
    """

    def _abort(signum, _frame):
        raise UserAbort(f"Exited on signal {signal.Signals(signum).name}")

    previous = {}
    try:
        for sig in signals:
            previous[sig] = signal.signal(sig, _abort)
    except ValueError:
        # signal handlers can only be installed from the main thread
        LOGGER.debug("Not in main thread, signal handlers left alone")
    try:
        yield
    finally:
        for sig, handler in previous.items():
            # None means the old handler was not installed from Python
            if handler is not None:
                signal.signal(sig, handler)


def run_issuance(
    config: ProxyConfig,
    prompt: Callable[[], str] = prompt_secret,
    client: IssuanceClient | None = None,
    inspect: Callable[[Path], ValidityWindow | None] = describe,
) -> IssuanceResult:
    """Obtain a key pair from the sshproxy server and install it.

    1. Read password+OTP with echo off
    2. Allocate scratch files next to the target key
    3. POST to create_pair and stream the body to the raw scratch file
    4. Classify the first line of the response
    5. Split key and certificate, rename both into place
    6. Read the certificate validity (best effort)

    Scratch files are removed and the terminal restored before this returns
    or raises, whatever the outcome.

    Args:
        config: Resolved settings for this run
        prompt: Secret reader, replaceable for tests
        client: Issuance client, built from config when omitted
        inspect: Certificate validity reader

    Returns:
        IssuanceResult with installed paths and validity window

    Raises:
        UserAbort: On Ctrl-C or SIGTERM/SIGHUP/SIGPIPE/SIGABRT
        TransportError: If the HTTPS request fails
        AuthenticationError: If the server rejects the password+OTP
        ProtocolError: If the server response is not a key
        InstallationError: If the downloaded keys cannot be installed
    """
    pair = config.artifact_pair()
    target_dir = pair.key_path.parent
    if client is None:
        client = IssuanceClient(config.server_url, timeout=config.timeout)

    try:
        with ExitStack() as stack:
            stack.enter_context(signal_guard())
            terminal = stack.enter_context(TerminalState())
            scratch = stack.enter_context(ScratchFiles())

            secret = prompt()
            terminal.restore()
            LOGGER.info("Secret captured for %s, scope %s", config.username, config.scope)

            target_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            raw_path = scratch.allocate(target_dir, "key.")
            cert_scratch = scratch.allocate(target_dir, "cert.")

            credential = CredentialRequest(
                username=config.username,
                secret=secret,
                scope=config.scope,
                server_url=config.server_url,
            )
            del secret
            client.request(credential, raw_path)
            del credential

            raise_for_outcome(validate(raw_path))

            split(raw_path, cert_scratch, pair)
            scratch.forget(raw_path)
            scratch.forget(cert_scratch)

        validity = inspect(pair.cert_path)
    except KeyboardInterrupt as e:
        raise UserAbort() from e

    return IssuanceResult(pair=pair, validity=validity)
