"""Issuing authority discovery and load-balanced selection."""

import random
from dataclasses import replace

from dc_enrollment.lib.config import LoadBalancing
from dc_enrollment.lib.directory_client import DirectoryClient
from dc_enrollment.lib.errors import AuthorityError, NoAuthorityFound, ResolutionError
from dc_enrollment.lib.logging_config import LOGGER
from dc_enrollment.lib.models import AuthorityRecord
from dc_enrollment.lib.network_client import NetworkClient


class AuthoritySelector:
    """Picks one enrollment service per request.

    The catalog is rebuilt on every call to select(); nothing is cached
    between hosts.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        network: NetworkClient,
        rng: random.Random | None = None,
    ) -> None:
        self.directory = directory
        self.network = network
        self.rng = rng or random.Random()

    def discover(self) -> list[AuthorityRecord]:
        """Enumerate authorities and annotate each with its IP address and site.

        Lookup misses leave the field as None; they never drop the authority.
        """
        try:
            authorities = self.directory.list_authorities()
        except ResolutionError as e:
            raise AuthorityError("failed to enumerate issuing authorities", output=e.output) from e

        catalog = []
        for authority in authorities:
            ip_address = self.network.resolve_dns_a(authority.dns_host_name)
            site = self.network.resolve_site(ip_address) if ip_address else None
            if site is None:
                LOGGER.warning("No site found for authority %s", authority.config_string)
            catalog.append(replace(authority, ip_address=ip_address, site=site))
        LOGGER.info("Discovered %d issuing authorities", len(catalog))
        return catalog

    def select(self, policy: LoadBalancing) -> AuthorityRecord:
        """Select an authority under the given load-balancing policy.

        Args:
            policy: Random over the full catalog, or ADSite preferring
                authorities in the local site

        Returns:
            The chosen authority

        Raises:
            NoAuthorityFound: If the catalog is empty
        """
        catalog = self.discover()
        if not catalog:
            raise NoAuthorityFound("no issuing authority registered in the directory")

        if policy is LoadBalancing.ADSITE:
            local_site = self.network.resolve_local_site()
            in_site = [a for a in catalog if local_site is not None and a.site == local_site]
            if in_site:
                chosen = self.rng.choice(in_site)
                LOGGER.info("Selected %s in site %s", chosen.config_string, local_site)
                return chosen
            LOGGER.info("No authority in local site %s, falling back to random", local_site)

        chosen = self.rng.choice(catalog)
        LOGGER.info("Selected %s", chosen.config_string)
        return chosen
