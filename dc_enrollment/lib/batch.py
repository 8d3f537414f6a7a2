"""Batch coordinator running the request pipeline over a list of hosts."""

import tempfile
from datetime import date
from pathlib import Path

from dc_enrollment.lib.authority_selector import AuthoritySelector
from dc_enrollment.lib.certreq_client import CertReqClient
from dc_enrollment.lib.config import EnrollmentConfig, RequestParameters
from dc_enrollment.lib.directory_client import DirectoryClient
from dc_enrollment.lib.errors import EnrollmentError, ResolutionError, TemplateComplianceWarning
from dc_enrollment.lib.logging_config import LOGGER
from dc_enrollment.lib.models import BatchResult, CertificateTemplateRef, HostOutcome, PipelineState
from dc_enrollment.lib.network_client import NetworkClient
from dc_enrollment.lib.pipeline import RequestPipeline
from dc_enrollment.lib.request_builder import RequestBuilder


class BatchCoordinator:
    """Runs every requested host through a RequestPipeline.

    A single-host batch re-raises the first failure. A multi-host batch
    records failures per host and always processes every host.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        network: NetworkClient,
        certreq: CertReqClient,
        selector: AuthoritySelector,
        config: EnrollmentConfig,
    ) -> None:
        self.directory = directory
        self.network = network
        self.certreq = certreq
        self.selector = selector
        self.config = config

    def resolve_template(self, name: str) -> CertificateTemplateRef:
        """Look up the certificate template and compare its EKUs with the required set.

        Raises:
            ResolutionError: If the template is missing or ambiguous
        """
        metadata = self.directory.find_template(name)
        if metadata is None:
            raise ResolutionError(f"certificate template '{name}' not found in directory")
        return CertificateTemplateRef(
            requested_name=name,
            name=metadata.name,
            required_ekus=self.config.required_ekus,
            present_ekus=metadata.extended_key_usages,
        )

    def run_batch(
        self,
        host_names: list[str],
        params: RequestParameters,
        today: date | None = None,
    ) -> BatchResult:
        """Process hosts in order and collect their outcomes.

        Args:
            host_names: Hosts to request certificates for
            params: Caller inputs for the run
            today: Date stamped on artifact names (defaults to today)

        Returns:
            BatchResult with one outcome per host, in input order

        Raises:
            ValueError: If host_names is empty
            EnrollmentError: Template check failures, or any failure of a single-host batch
        """
        if not host_names:
            raise ValueError("at least one host name is required")

        is_single_target = len(host_names) == 1
        result = BatchResult(complete_request=params.complete_request)

        template = self.resolve_template(params.template_name)
        if not template.is_compliant:
            message = (
                f"template {template.name} is missing extended key usages: "
                f"{', '.join(sorted(template.missing_ekus))}"
            )
            LOGGER.warning("%s", message)
            result.warnings.append(f"{TemplateComplianceWarning.__name__}: {message}")

        domain_dns_root = self.directory.domain_dns_root()
        params.output_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="dc-enrollment-") as staging_dir:
            builder = RequestBuilder(
                output_dir=params.output_dir,
                staging_dir=Path(staging_dir),
                domain_dns_root=domain_dns_root,
                export_inf=params.export_inf,
                date_format=self.config.date_format,
                today=today,
            )
            pipeline = RequestPipeline(
                directory=self.directory,
                network=self.network,
                builder=builder,
                certreq=self.certreq,
                selector=self.selector,
                template=template,
                params=params,
                install_allowed=is_single_target and not params.skip_install,
            )

            for host_name in host_names:
                try:
                    outcome = pipeline.run(host_name)
                except EnrollmentError as e:
                    if is_single_target:
                        raise
                    state = (
                        PipelineState.SKIPPED
                        if isinstance(e, ResolutionError)
                        else PipelineState.FAILED
                    )
                    LOGGER.error("%s: %s (%s) %s", host_name, state.value, e, e.output)
                    outcome = HostOutcome(
                        host=host_name, state=state, reason=f"{type(e).__name__}: {e}"
                    )
                result.outcomes.append(outcome)

        LOGGER.info(
            "Batch complete: %d succeeded, %d failed or skipped",
            len(result.successes),
            len(result.failures),
        )
        return result
