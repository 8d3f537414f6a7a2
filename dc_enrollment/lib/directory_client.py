"""Active Directory lookups through the ActiveDirectory PowerShell module."""

import json
from typing import Any

from dc_enrollment.lib.command_runner import CommandRunner
from dc_enrollment.lib.errors import ResolutionError
from dc_enrollment.lib.models import AuthorityRecord, HostIdentity, TemplateMetadata

PUBLIC_KEY_SERVICES = "CN=Public Key Services,CN=Services,$((Get-ADRootDSE).configurationNamingContext)"


def _quote(value: str) -> str:
    """Quote a value for a single-quoted PowerShell filter literal."""
    return "'" + value.replace("'", "''") + "'"


def _as_list(payload: Any) -> list[dict[str, Any]]:
    """ConvertTo-Json emits a bare object for one result and nothing for none."""
    if payload is None:
        return []
    if isinstance(payload, dict):
        return [payload]
    return list(payload)


class DirectoryClient:
    """Directory lookups (computers, enrollment services, templates)."""

    def __init__(self, runner: CommandRunner, powershell_path: str = "powershell") -> None:
        """Initialize directory client.

        Args:
            runner: Command runner used to invoke PowerShell
            powershell_path: PowerShell executable
        """
        self.runner = runner
        self.powershell_path = powershell_path

    def _query(self, script: str) -> list[dict[str, Any]]:
        cmd = [
            self.powershell_path,
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            f"Import-Module ActiveDirectory; {script} | ConvertTo-Json -Compress -Depth 3",
        ]
        result = self.runner.run(cmd)
        if not result.success:
            raise ResolutionError("directory query failed", output=result.output)
        if not result.output.strip():
            return []
        try:
            return _as_list(json.loads(result.output))
        except json.JSONDecodeError as e:
            raise ResolutionError(
                "directory query returned unparseable output", output=result.output
            ) from e

    def resolve_host(self, name: str) -> HostIdentity:
        """Resolve a computer by NetBIOS or DNS host name.

        Args:
            name: Host name as given by the caller

        Returns:
            The single matching identity record

        Raises:
            ResolutionError: If there are zero or several matches
        """
        short_name = name.split(".", 1)[0]
        matches = self._query(
            "Get-ADComputer -Filter "
            f'"Name -eq {_quote(short_name)} -or DNSHostName -eq {_quote(name)}" '
            "-Properties DNSHostName | Select-Object DistinguishedName,DNSHostName,Name"
        )
        if not matches:
            raise ResolutionError(f"computer '{name}' not found in directory")
        if len(matches) > 1:
            names = ", ".join(str(m.get("DistinguishedName")) for m in matches)
            raise ResolutionError(f"computer '{name}' is ambiguous: {names}")

        match = matches[0]
        return HostIdentity(
            distinguished_name=match["DistinguishedName"],
            dns_host_name=match.get("DNSHostName") or "",
            netbios_name=match["Name"],
        )

    def list_authorities(self) -> list[AuthorityRecord]:
        """Enumerate enrollment services registered in the configuration partition."""
        records = self._query(
            f'Get-ADObject -SearchBase "CN=Enrollment Services,{PUBLIC_KEY_SERVICES}" '
            "-Filter \"objectClass -eq 'pKIEnrollmentService'\" -Properties dNSHostName "
            "| Select-Object Name,dNSHostName"
        )
        return [
            AuthorityRecord(display_name=record["Name"], dns_host_name=record["dNSHostName"])
            for record in records
            if record.get("dNSHostName")
        ]

    def find_template(self, name: str) -> TemplateMetadata | None:
        """Look up a certificate template by name or display name.

        Raises:
            ResolutionError: If more than one template matches
        """
        matches = self._query(
            f'Get-ADObject -SearchBase "CN=Certificate Templates,{PUBLIC_KEY_SERVICES}" '
            f'-Filter "Name -eq {_quote(name)} -or displayName -eq {_quote(name)}" '
            "-Properties displayName,pKIExtendedKeyUsage "
            "| Select-Object Name,displayName,pKIExtendedKeyUsage"
        )
        if not matches:
            return None
        if len(matches) > 1:
            raise ResolutionError(f"certificate template '{name}' is ambiguous")

        match = matches[0]
        return TemplateMetadata(
            name=match["Name"],
            display_name=match.get("displayName") or match["Name"],
            extended_key_usages=frozenset(match.get("pKIExtendedKeyUsage") or []),
        )

    def domain_dns_root(self) -> str:
        """Return the DNS root of the current domain."""
        records = self._query("Get-ADDomain | Select-Object DNSRoot")
        if not records or not records[0].get("DNSRoot"):
            raise ResolutionError("could not determine domain DNS root")
        return records[0]["DNSRoot"]

    def list_subnets(self) -> list[tuple[str, str]]:
        """Return (subnet CIDR, site name) pairs from the site topology."""
        records = self._query("Get-ADReplicationSubnet -Filter * | Select-Object Name,Site")
        subnets = []
        for record in records:
            site_dn = record.get("Site")
            if not site_dn:
                continue
            # CN=<site>,CN=Sites,CN=Configuration,...
            site_name = site_dn.split(",", 1)[0].removeprefix("CN=")
            subnets.append((record["Name"], site_name))
        return subnets
