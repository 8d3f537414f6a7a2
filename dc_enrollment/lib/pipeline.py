"""Per-host request pipeline: build, encode, and optionally submit and install."""

from dc_enrollment.lib.authority_selector import AuthoritySelector
from dc_enrollment.lib.cert_utils import load_certificate_file, missing_dns_names
from dc_enrollment.lib.certreq_client import CertReqClient
from dc_enrollment.lib.config import RequestParameters
from dc_enrollment.lib.directory_client import DirectoryClient
from dc_enrollment.lib.errors import InstallVerificationError
from dc_enrollment.lib.logging_config import LOGGER
from dc_enrollment.lib.models import (
    CertificateTemplateRef,
    HostOutcome,
    HostTarget,
    IssuedCertificate,
    PipelineState,
    RequestArtifact,
)
from dc_enrollment.lib.network_client import NetworkClient
from dc_enrollment.lib.request_builder import DOMAIN_SAN, HOST_SAN, LDAP_SAN, NETBIOS_SAN, RequestBuilder


class RequestPipeline:
    """Drives one host from directory lookup to a terminal state.

    Failures are raised as EnrollmentError subclasses; deciding whether a
    failure aborts the batch is left to the caller.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        network: NetworkClient,
        builder: RequestBuilder,
        certreq: CertReqClient,
        selector: AuthoritySelector,
        template: CertificateTemplateRef,
        params: RequestParameters,
        install_allowed: bool,
    ) -> None:
        """Initialize pipeline.

        Args:
            directory: Directory client for host resolution
            network: Network client, used to recognize the local host
            builder: Request builder bound to this run's output directory
            certreq: Certificate request client
            selector: Authority selector
            template: Resolved certificate template
            params: Caller inputs for the run
            install_allowed: Whether the batch permits local installation at all
        """
        self.directory = directory
        self.network = network
        self.builder = builder
        self.certreq = certreq
        self.selector = selector
        self.template = template
        self.params = params
        self.install_allowed = install_allowed

    def _enter(self, host: HostTarget, state: PipelineState) -> None:
        LOGGER.info("%s: %s", host.requested_name, state.value)

    def resolve(self, requested_name: str) -> HostTarget:
        """Look the host up in the directory.

        Raises:
            ResolutionError: If no computer object, or more than one, matches
        """
        identity = self.directory.resolve_host(requested_name)
        return HostTarget(requested_name=requested_name, identity=identity)

    def is_local_host(self, host: HostTarget) -> bool:
        """True when the host's NetBIOS or DNS name is one of this machine's names."""
        local_names = self.network.local_host_names()
        identity = host.identity
        return identity is not None and (
            identity.netbios_name.lower() in local_names
            or identity.dns_host_name.lower() in local_names
        )

    def should_install(self, host: HostTarget) -> bool:
        """Install only on the machine itself, and only when the batch allows it."""
        return self.install_allowed and self.is_local_host(host)

    def run(self, requested_name: str) -> HostOutcome:
        """Run the pipeline for one host.

        Returns:
            HostOutcome in state Completed, Issued or Installed

        Raises:
            EnrollmentError: On any stage failure
        """
        host = self.resolve(requested_name)

        artifact = self.builder.build(host, self.template, self.params.ldap_vip_name)
        self._enter(host, PipelineState.BUILT)

        self.certreq.encode(artifact)
        self._enter(host, PipelineState.ENCODED)

        if not self.params.complete_request:
            self._enter(host, PipelineState.COMPLETED)
            return HostOutcome(
                host=requested_name, state=PipelineState.COMPLETED, request_path=artifact.path
            )

        authority = self.selector.select(self.params.load_balancing)
        issued = self.certreq.submit(authority, artifact.path)
        self._enter(host, PipelineState.SUBMITTED)
        self._warn_on_missing_sans(host, artifact, issued)

        if not self.should_install(host):
            self._enter(host, PipelineState.ISSUED)
            return HostOutcome(
                host=requested_name,
                state=PipelineState.ISSUED,
                request_path=artifact.path,
                certificate_path=issued.path,
            )

        issued.fingerprint = self.install(issued)
        self._enter(host, PipelineState.INSTALLED)
        return HostOutcome(
            host=requested_name,
            state=PipelineState.INSTALLED,
            request_path=artifact.path,
            certificate_path=issued.path,
            fingerprint=issued.fingerprint,
        )

    def install(self, issued: IssuedCertificate) -> str:
        """Accept the certificate locally and confirm it landed in the store.

        Raises:
            InstallVerificationError: If accept fails or the thumbprint is not found
        """
        fingerprint = self.certreq.accept(issued)
        if not self.certreq.find_by_fingerprint(fingerprint):
            raise InstallVerificationError(
                f"certificate {fingerprint} not found in local store after install"
            )
        return fingerprint

    def _warn_on_missing_sans(
        self, host: HostTarget, artifact: RequestArtifact, issued: IssuedCertificate
    ) -> None:
        requested = [
            artifact.fields[token] for token in (LDAP_SAN, HOST_SAN, DOMAIN_SAN, NETBIOS_SAN)
        ]
        try:
            missing = missing_dns_names(load_certificate_file(issued.path), requested)
        except (OSError, ValueError) as e:
            LOGGER.warning("%s: could not inspect %s: %s", host.requested_name, issued.path, e)
            return
        if missing:
            LOGGER.warning(
                "%s: issued certificate lacks requested SANs: %s",
                host.requested_name,
                ", ".join(missing),
            )
