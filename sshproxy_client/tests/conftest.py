"""Test fixtures for sshproxy_client tests."""

import io
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from sshproxy_client.lib.config import ProxyConfig
from sshproxy_client.lib.models import CredentialRequest

VALID_AFTER = 1_700_000_000
VALID_BEFORE = 1_700_086_400


class FakeHTTPResponse(io.BytesIO):
    """Stands in for the object returned by urllib.request.urlopen."""

    def __init__(self, body: bytes, status: int = 200) -> None:
        super().__init__(body)
        self.status = status


class StubIssuanceClient:
    """Issuance client that writes a canned body instead of calling the network."""

    def __init__(self, body: bytes = b"", error: BaseException | None = None) -> None:
        self.body = body
        self.error = error
        self.credentials: list[CredentialRequest] = []
        self.destinations: list[Path] = []

    def request(self, credential: CredentialRequest, destination: Path) -> int:
        self.credentials.append(credential)
        self.destinations.append(destination)
        if self.error is not None:
            raise self.error
        destination.write_bytes(self.body)
        return len(self.body)


def scratch_leftovers(directory: Path) -> list[Path]:
    """Return scratch files (key.XXXXXX / cert.XXXXXX) left in directory."""
    if not directory.exists():
        return []
    return sorted(p for p in directory.iterdir() if p.name.startswith(("key.", "cert.")))


@pytest.fixture
def ssh_dir(tmp_path: Path) -> Path:
    """Return a per-test ~/.ssh replacement (not created yet)."""
    return tmp_path / ".ssh"


@pytest.fixture
def proxy_config(ssh_dir: Path) -> ProxyConfig:
    """Return client config pointed at the temporary ssh directory."""
    return ProxyConfig(
        server_url="sshproxy.example.org",
        ssh_dir=ssh_dir,
        username="alice",
        timeout=5.0,
    )


@pytest.fixture
def credential() -> CredentialRequest:
    """Return a credential request with a recognisable secret."""
    return CredentialRequest(
        username="alice",
        secret="hunter2123456",
        scope="default",
        server_url="sshproxy.example.org",
    )


@pytest.fixture(scope="session")
def user_key() -> RSAPrivateKey:
    """Generate the RSA key the fake server 'issues'."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ca_key() -> RSAPrivateKey:
    """Generate the RSA key that signs the fake certificate."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(user_key: RSAPrivateKey) -> bytes:
    """Return the issued key in the traditional 'BEGIN RSA PRIVATE KEY' form."""
    return user_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def certificate_line(user_key: RSAPrivateKey, ca_key: RSAPrivateKey) -> bytes:
    """Return a signed OpenSSH user certificate line (ssh-rsa-cert-v01@openssh.com)."""
    cert = (
        serialization.SSHCertificateBuilder()
        .public_key(user_key.public_key())
        .serial(42)
        .type(serialization.SSHCertificateType.USER)
        .key_id(b"alice")
        .valid_principals([b"alice"])
        .valid_after(VALID_AFTER)
        .valid_before(VALID_BEFORE)
        .sign(ca_key)
    )
    return cert.public_bytes() + b" alice@sshproxy\n"


@pytest.fixture
def server_response(private_key_pem: bytes, certificate_line: bytes) -> bytes:
    """Return a successful create_pair body: key block then certificate line."""
    return private_key_pem + certificate_line


@pytest.fixture
def auth_failed_response() -> bytes:
    """Return the body the server sends for a wrong password+OTP."""
    return b"Authentication failed. Failed login for user alice\n"


@pytest.fixture
def fake_response() -> type[FakeHTTPResponse]:
    """Return the urlopen response stand-in class."""
    return FakeHTTPResponse


@pytest.fixture
def stub_client() -> type[StubIssuanceClient]:
    """Return the network-free issuance client class."""
    return StubIssuanceClient


@pytest.fixture
def leftovers():
    """Return a callable listing scratch files left in a directory."""
    return scratch_leftovers
