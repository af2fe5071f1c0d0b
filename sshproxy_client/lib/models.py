"""Data models for key issuance."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class CredentialRequest:
    """One authenticated request to the issuance endpoint.

    The secret is the password and OTP concatenated. It is kept out of repr so
    it cannot leak into logs or tracebacks.
    """

    username: str
    secret: str = field(repr=False)
    scope: str
    server_url: str


@dataclass(frozen=True)
class ArtifactPair:
    """Final install locations for the private key and its certificate."""

    key_path: Path
    cert_path: Path


@dataclass(frozen=True)
class ValidityWindow:
    """Certificate validity period. None means unbounded on that side."""

    valid_after: datetime | None
    valid_before: datetime | None


@dataclass(frozen=True)
class Authenticated:
    """Response starts with a private key header."""

    first_line: str


@dataclass(frozen=True)
class AuthFailed:
    """Server rejected the credentials."""

    message: str


@dataclass(frozen=True)
class Malformed:
    """Response is neither a key nor an auth failure; content kept for diagnosis."""

    content: str


ValidationOutcome = Authenticated | AuthFailed | Malformed


@dataclass
class IssuanceResult:
    """Result of a successful run."""

    pair: ArtifactPair
    validity: ValidityWindow | None
