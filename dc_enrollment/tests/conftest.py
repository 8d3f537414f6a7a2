"""Test fixtures for dc_enrollment tests."""

from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from dc_enrollment.lib.config import EnrollmentConfig, RequestParameters
from dc_enrollment.lib.errors import ResolutionError
from dc_enrollment.lib.models import (
    AuthorityRecord,
    HostIdentity,
    IssuedCertificate,
    TemplateMetadata,
)

TODAY = date(2026, 10, 18)


def make_identity(name: str, domain: str = "corp.example.com") -> HostIdentity:
    """Build a computer identity record under the Domain Controllers OU."""
    dc_parts = ",".join(f"DC={part}" for part in domain.split("."))
    return HostIdentity(
        distinguished_name=f"CN={name},OU=Domain Controllers,{dc_parts}",
        dns_host_name=f"{name.lower()}.{domain}",
        netbios_name=name,
    )


def make_certificate(dns_names: list[str], common_name: str = "dc1.corp.example.com") -> x509.Certificate:
    """Self-signed certificate carrying the given DNS SANs."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False
        )
    )
    if dns_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in dns_names]), critical=False
        )
    return builder.sign(key, hashes.SHA256())


@pytest.fixture
def temp_output_dir(tmp_path: Path) -> Path:
    """Return temporary directory for request artifacts."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def enrollment_config() -> EnrollmentConfig:
    """Return default enrollment configuration."""
    return EnrollmentConfig()


@pytest.fixture
def request_params(temp_output_dir: Path) -> RequestParameters:
    """Return generate-only request parameters."""
    return RequestParameters(ldap_vip_name="ldap.corp.example.com", output_dir=temp_output_dir)


@pytest.fixture
def dc1_identity() -> HostIdentity:
    return make_identity("DC1")


@pytest.fixture
def issued_cert_pem() -> bytes:
    """PEM certificate carrying every SAN requested for DC1."""
    cert = make_certificate(
        ["ldap.corp.example.com", "dc1.corp.example.com", "corp.example.com", "DC1"]
    )
    return cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def mock_directory() -> MagicMock:
    """Directory client resolving DC1, DC2 and DC3 and a compliant template."""
    directory = MagicMock()
    identities = {name: make_identity(name) for name in ("DC1", "DC2", "DC3")}

    def resolve_host(name: str) -> HostIdentity:
        identity = identities.get(name.split(".", 1)[0].upper())
        if identity is None:
            raise ResolutionError(f"computer '{name}' not found in directory")
        return identity

    directory.resolve_host.side_effect = resolve_host
    directory.find_template.return_value = TemplateMetadata(
        name="DCServerAuthentication",
        display_name="DC Server Authentication",
        extended_key_usages=frozenset({"1.3.6.1.5.5.7.3.1", "1.3.6.1.5.5.7.3.2"}),
    )
    directory.domain_dns_root.return_value = "corp.example.com"
    directory.list_authorities.return_value = [
        AuthorityRecord(display_name="Corp Issuing CA", dns_host_name="ca1.corp.example.com")
    ]
    return directory


@pytest.fixture
def mock_network() -> MagicMock:
    """Network client whose local host is DC1."""
    network = MagicMock()
    network.local_host_names.return_value = {"dc1", "dc1.corp.example.com"}
    network.resolve_dns_a.return_value = "10.0.0.10"
    network.resolve_site.return_value = "London"
    network.resolve_local_site.return_value = "London"
    return network


@pytest.fixture
def mock_certreq(issued_cert_pem: bytes) -> MagicMock:
    """certreq client that writes files the way certreq.exe would."""
    certreq = MagicMock()

    def encode(artifact):
        artifact.path.write_bytes(b"-----BEGIN NEW CERTIFICATE REQUEST-----\n")
        artifact.encoded = True
        return artifact

    def submit(_authority, request_path: Path) -> IssuedCertificate:
        cert_path = request_path.with_suffix(".cer")
        cert_path.write_bytes(issued_cert_pem)
        return IssuedCertificate(path=cert_path, request_path=request_path)

    certreq.encode.side_effect = encode
    certreq.submit.side_effect = submit
    certreq.accept.return_value = "AB12CD34"
    certreq.find_by_fingerprint.return_value = True
    return certreq


@pytest.fixture
def mock_selector() -> MagicMock:
    selector = MagicMock()
    selector.select.return_value = AuthorityRecord(
        display_name="Corp Issuing CA",
        dns_host_name="ca1.corp.example.com",
        ip_address="10.0.0.10",
        site="London",
    )
    return selector


@pytest.fixture
def today() -> date:
    """Fixed date stamped on artifact names."""
    return TODAY


@pytest.fixture
def certificate_factory():
    """Return the make_certificate helper."""
    return make_certificate
