#!/usr/bin/env python3
"""Obtain a short-lived ssh key and certificate from an sshproxy server.

Exit codes:
    0    success
    1    could not reach the server (network, TLS, HTTP)
    2    server rejected the password+OTP
    3    server returned something other than a key
    4    keys were downloaded but could not be installed
    64   bad command line
    255  interrupted or unexpected error
"""

import argparse
import sys
from pathlib import Path

from sshproxy_client.lib.cert_inspector import format_validity
from sshproxy_client.lib.config import ProxyConfig
from sshproxy_client.lib.errors import (
    EXIT_ABORTED,
    EXIT_SUCCESS,
    EXIT_USAGE,
    AuthenticationError,
    InstallationError,
    ProtocolError,
    TransportError,
    UserAbort,
)
from sshproxy_client.lib.logging_config import LOGGER, set_verbosity
from sshproxy_client.lib.orchestrator import run_issuance

PROG = "sshproxy"


def eprint(*args, **kwargs) -> None:
    """Print to stderr."""
    print(*args, file=sys.stderr, **kwargs)


def error(*parts: object) -> None:
    """Print 'sshproxy: a: b: c' to stderr."""
    eprint(f"{PROG}: " + ": ".join(str(p) for p in parts))


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser exiting with EXIT_USAGE, not 2, on bad arguments."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser(defaults: ProxyConfig) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Obtain an ssh key and certificate from the sshproxy server",
    )
    parser.add_argument(
        "-u",
        "--user",
        default=defaults.username,
        help=f"Specify remote username (default: {defaults.username})",
    )
    parser.add_argument(
        "-s",
        "--scope",
        default=None,
        help=f"Specify scope (default: '{defaults.scope}')",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help=f"Key file to write (default: {defaults.ssh_dir}/<scope> or "
        f"{defaults.ssh_dir}/{defaults.default_id})",
    )
    parser.add_argument(
        "-U",
        "--url",
        default=defaults.server_url,
        help="Specify alternate URL for sshproxy server (generally only used for testing purposes)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help=f"Seconds to wait for the server (default: {defaults.timeout:g})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr as JSON (-vv for debug)",
    )
    return parser


def config_from_args(args: argparse.Namespace, defaults: ProxyConfig) -> ProxyConfig:
    """Resolve parsed flags into the run configuration."""
    return ProxyConfig(
        server_url=args.url,
        default_id=defaults.default_id,
        ssh_dir=defaults.ssh_dir,
        scope=args.scope if args.scope else defaults.scope,
        scope_given=bool(args.scope),
        username=args.user,
        output_path=args.output,
        timeout=args.timeout,
    )


def main(argv: list[str] | None = None) -> int:
    """Request a key pair and install it.

    Returns:
        Process exit code, see module docstring
    """
    defaults = ProxyConfig()
    args = build_parser(defaults).parse_args(argv)
    set_verbosity(args.verbose)
    config = config_from_args(args, defaults)

    try:
        result = run_issuance(config)
    except UserAbort as e:
        error(e.reason)
        return e.exit_code
    except TransportError as e:
        error("Failed.", "Could not get keys from " + config.server_url, e)
        return e.exit_code
    except AuthenticationError as e:
        error(f"The sshproxy server said: {e.server_message}")
        error("This usually means you did not enter the correct password or OTP")
        return e.exit_code
    except ProtocolError as e:
        error("Did not get in a proper ssh private key. Output was:")
        sys.stderr.write(e.content)
        if e.content and not e.content.endswith("\n"):
            eprint()
        error("Hopefully that's informative")
        return e.exit_code
    except InstallationError as e:
        error("An error occurred after successfully downloading keys (!!!)", e.cause)
        if e.stranded is not None:
            error(f"Incomplete key pair left at {e.stranded}, remove it by hand")
        return e.exit_code
    except Exception as e:
        LOGGER.exception("Unexpected failure")
        error("Exited on interrupt/error", e)
        return EXIT_ABORTED

    print(f"Successfully obtained ssh key {result.pair.key_path}")
    if result.validity is not None:
        print(f"Key is {format_validity(result.validity)}")
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
