"""Certificate inspection helpers for issued certificates."""

import re
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes


def load_certificate(data: bytes) -> x509.Certificate:
    """Load a certificate from PEM or DER bytes."""
    if b"-----BEGIN CERTIFICATE-----" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def load_certificate_file(path: Path) -> x509.Certificate:
    """Load a certificate file written by certreq (PEM or DER)."""
    return load_certificate(path.read_bytes())


def certificate_thumbprint(cert: x509.Certificate) -> str:
    """Return the SHA-1 thumbprint as upper-case hex, the form Windows stores use."""
    return cert.fingerprint(hashes.SHA1()).hex().upper()


def normalize_thumbprint(value: str) -> str:
    """Strip separators and whitespace from a thumbprint and upper-case it."""
    return re.sub(r"[^0-9A-Fa-f]", "", value).upper()


def extract_dns_names(cert: x509.Certificate) -> set[str]:
    """Return the lower-cased DNS entries of the SAN extension (empty if absent)."""
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return set()
    return {name.lower() for name in san.value.get_values_for_type(x509.DNSName)}


def missing_dns_names(cert: x509.Certificate, requested: list[str]) -> list[str]:
    """Requested DNS SAN values the certificate does not carry."""
    present = extract_dns_names(cert)
    return [name for name in requested if name and name.lower() not in present]
