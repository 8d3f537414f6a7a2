"""Name resolution and site-topology lookups."""

import ipaddress
import socket

from dc_enrollment.lib.command_runner import CommandRunner
from dc_enrollment.lib.directory_client import DirectoryClient
from dc_enrollment.lib.errors import ResolutionError
from dc_enrollment.lib.logging_config import LOGGER


class NetworkClient:
    """DNS A lookups and IP-to-site mapping."""

    def __init__(
        self,
        runner: CommandRunner,
        directory: DirectoryClient,
        nltest_path: str = "nltest",
    ) -> None:
        """Initialize network client.

        Args:
            runner: Command runner used for nltest
            directory: Directory client providing the replication subnets
            nltest_path: nltest executable
        """
        self.runner = runner
        self.directory = directory
        self.nltest_path = nltest_path
        self._subnets: list[tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, str]] | None = None

    def resolve_dns_a(self, name: str) -> str | None:
        """Resolve a host name to an IPv4 address, or None if it does not resolve."""
        try:
            return socket.gethostbyname(name)
        except OSError as e:
            LOGGER.warning("DNS lookup failed for %s: %s", name, e)
            return None

    def _load_subnets(self) -> list[tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, str]]:
        if self._subnets is None:
            try:
                entries = self.directory.list_subnets()
            except ResolutionError as e:
                LOGGER.warning("Site topology unavailable, continuing without sites: %s", e)
                self._subnets = []
                return self._subnets
            subnets = []
            for cidr, site in entries:
                try:
                    subnets.append((ipaddress.ip_network(cidr, strict=False), site))
                except ValueError:
                    LOGGER.warning("Ignoring malformed subnet %s for site %s", cidr, site)
            # Longest prefix first so the most specific subnet wins
            subnets.sort(key=lambda item: item[0].prefixlen, reverse=True)
            self._subnets = subnets
        return self._subnets

    def resolve_site(self, ip_address: str) -> str | None:
        """Map an IP address to the site of its most specific subnet."""
        try:
            address = ipaddress.ip_address(ip_address)
        except ValueError:
            return None
        for network, site in self._load_subnets():
            if address.version == network.version and address in network:
                return site
        return None

    def resolve_local_site(self) -> str | None:
        """Return the site of the machine running the enrollment."""
        result = self.runner.run([self.nltest_path, "/dsgetsite"])
        if not result.success:
            LOGGER.warning("Local site lookup failed: %s", result.output)
            return None
        for line in result.output.splitlines():
            line = line.strip()
            if line:
                return line
        return None

    def local_host_names(self) -> set[str]:
        """Names under which the local machine may appear, lower-cased."""
        hostname = socket.gethostname()
        names = {hostname.lower(), hostname.split(".", 1)[0].lower()}
        fqdn = socket.getfqdn()
        if fqdn:
            names.add(fqdn.lower())
        return names
