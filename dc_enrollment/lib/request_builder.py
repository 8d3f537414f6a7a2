"""Builds per-host certificate request files from the INF template."""

import os
import tempfile
from datetime import date
from pathlib import Path

from dc_enrollment.lib.errors import ArtifactWriteError, ResolutionError, UnresolvedPlaceholderError
from dc_enrollment.lib.logging_config import LOGGER
from dc_enrollment.lib.models import CertificateTemplateRef, HostTarget, RequestArtifact

CERTIFICATE_TEMPLATE = "{{CERTIFICATE_TEMPLATE}}"
SUBJECT_DN = "{{SUBJECT_DN}}"
LDAP_SAN = "{{LDAP_SAN}}"
HOST_SAN = "{{HOST_SAN}}"
DOMAIN_SAN = "{{DOMAIN_SAN}}"
NETBIOS_SAN = "{{NETBIOS_SAN}}"

PLACEHOLDERS = (CERTIFICATE_TEMPLATE, SUBJECT_DN, LDAP_SAN, HOST_SAN, DOMAIN_SAN, NETBIOS_SAN)

REQUEST_TEMPLATE = """[Version]
Signature = "$Windows NT$"

[NewRequest]
Subject = "{{SUBJECT_DN}}"
KeySpec = 1
KeyLength = 2048
Exportable = FALSE
MachineKeySet = TRUE
SMIME = FALSE
PrivateKeyArchive = FALSE
UserProtected = FALSE
UseExistingKeySet = FALSE
ProviderName = "Microsoft RSA SChannel Cryptographic Provider"
ProviderType = 12
RequestType = PKCS10
KeyUsage = 0xa0

[EnhancedKeyUsageExtension]
OID = 1.3.6.1.5.5.7.3.1 ; Server Authentication
OID = 1.3.6.1.5.5.7.3.2 ; Client Authentication

[RequestAttributes]
CertificateTemplate = {{CERTIFICATE_TEMPLATE}}

[Extensions]
2.5.29.17 = "{text}"
_continue_ = "dns={{LDAP_SAN}}&"
_continue_ = "dns={{HOST_SAN}}&"
_continue_ = "dns={{DOMAIN_SAN}}&"
_continue_ = "dns={{NETBIOS_SAN}}"
"""


def write_text_atomic(path: Path, text: str) -> Path:
    """Write text to path via a temporary file in the same directory and a rename.

    Raises:
        ArtifactWriteError: On any I/O failure
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", delete=False
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise ArtifactWriteError(f"failed to write {path}: {e}") from e
    return path


def substitute(template_text: str, values: dict[str, str]) -> str:
    """Replace every occurrence of each placeholder token with its value.

    Raises:
        UnresolvedPlaceholderError: If a value is empty or a known token survives
    """
    empty = [token for token, value in values.items() if not value]
    if empty:
        raise UnresolvedPlaceholderError(f"no value supplied for {', '.join(empty)}")

    text = template_text
    for token, value in values.items():
        text = text.replace(token, value)

    leftover = [token for token in PLACEHOLDERS if token in text]
    if leftover:
        raise UnresolvedPlaceholderError(f"unresolved placeholders: {', '.join(leftover)}")
    return text


class RequestBuilder:
    """Fills the request template for one host and writes the request text."""

    def __init__(
        self,
        output_dir: Path,
        staging_dir: Path,
        domain_dns_root: str,
        export_inf: bool = False,
        date_format: str = "%Y%m%d",
        today: date | None = None,
    ) -> None:
        """Initialize request builder.

        Args:
            output_dir: Directory receiving .req (and exported .inf) files
            staging_dir: Scratch directory for the request text fed to certreq
            domain_dns_root: Domain DNS root used as the domain SAN
            export_inf: Also write a human-readable .inf next to the request
            date_format: strftime format of the date part of file names
            today: Date stamped on artifact names (defaults to today)
        """
        self.output_dir = output_dir
        self.staging_dir = staging_dir
        self.domain_dns_root = domain_dns_root
        self.export_inf = export_inf
        self.date_format = date_format
        self.today = today

    def artifact_stem(self, host: HostTarget) -> str:
        if host.identity is None:
            raise ResolutionError(f"host '{host.requested_name}' is not resolved")
        stamp = (self.today or date.today()).strftime(self.date_format)
        return f"{host.identity.netbios_name}_{stamp}"

    def build(
        self,
        host: HostTarget,
        template: CertificateTemplateRef,
        ldap_vip_name: str,
        template_text: str = REQUEST_TEMPLATE,
    ) -> RequestArtifact:
        """Substitute host values into the template and write the request text.

        Args:
            host: Resolved host target
            template: Certificate template reference
            ldap_vip_name: SAN for the load-balanced LDAP name
            template_text: Raw request template

        Returns:
            Unencoded RequestArtifact

        Raises:
            ResolutionError: If the host has no identity record
            ArtifactWriteError: If substitution leaves a placeholder or the write fails
        """
        stem = self.artifact_stem(host)
        identity = host.identity
        fields = {
            CERTIFICATE_TEMPLATE: template.name,
            SUBJECT_DN: identity.distinguished_name,
            LDAP_SAN: ldap_vip_name,
            HOST_SAN: identity.dns_host_name,
            DOMAIN_SAN: self.domain_dns_root,
            NETBIOS_SAN: identity.netbios_name,
        }
        text = substitute(template_text, fields)

        source_path = write_text_atomic(self.staging_dir / f"{stem}.inf", text)
        artifact = RequestArtifact(
            path=self.output_dir / f"{stem}.req",
            source_path=source_path,
            fields=fields,
        )
        if self.export_inf:
            artifact.exported_inf_path = write_text_atomic(self.output_dir / f"{stem}.inf", text)
            LOGGER.info("Exported request INF to %s", artifact.exported_inf_path)

        LOGGER.debug("Built request text for %s at %s", host.requested_name, source_path)
        return artifact
