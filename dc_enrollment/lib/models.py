"""Data model for DC certificate enrollment."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class HostIdentity:
    """Directory record of one computer object."""

    distinguished_name: str
    dns_host_name: str
    netbios_name: str


@dataclass(frozen=True)
class HostTarget:
    """A host as requested by the caller plus its resolved identity."""

    requested_name: str
    identity: HostIdentity | None = None


@dataclass(frozen=True)
class TemplateMetadata:
    """Certificate template object as registered in the directory."""

    name: str
    display_name: str
    extended_key_usages: frozenset[str] = frozenset()


@dataclass(frozen=True)
class CertificateTemplateRef:
    """Template chosen for the run, with EKU compliance information."""

    requested_name: str
    name: str
    required_ekus: frozenset[str]
    present_ekus: frozenset[str]

    @property
    def missing_ekus(self) -> frozenset[str]:
        return self.required_ekus - self.present_ekus

    @property
    def is_compliant(self) -> bool:
        return not self.missing_ekus


@dataclass(frozen=True)
class AuthorityRecord:
    """One enrollment service discovered in the directory.

    ip_address and site stay None when the corresponding lookup failed.
    """

    display_name: str
    dns_host_name: str
    ip_address: str | None = None
    site: str | None = None

    @property
    def config_string(self) -> str:
        """Authority reference in the ``host\\name`` form certreq expects."""
        return f"{self.dns_host_name}\\{self.display_name}"


@dataclass
class RequestArtifact:
    """Request generated for one host.

    source_path holds the substituted request text; path is where the
    encoded request is (or will be) written.
    """

    path: Path
    source_path: Path
    fields: dict[str, str]
    encoded: bool = False
    exported_inf_path: Path | None = None


@dataclass
class IssuedCertificate:
    """Certificate returned by an authority for a request artifact."""

    path: Path
    request_path: Path
    response_path: Path | None = None
    fingerprint: str | None = None


@dataclass(frozen=True)
class CommandResult:
    """Structured result of one external tool invocation."""

    success: bool
    output: str
    produced_path: Path | None = None


class PipelineState(str, Enum):
    """States of the per-host request pipeline."""

    BUILT = "Built"
    ENCODED = "Encoded"
    COMPLETED = "Completed"
    SUBMITTED = "Submitted"
    ISSUED = "Issued"
    INSTALLED = "Installed"
    FAILED = "Failed"
    SKIPPED = "Skipped"


TERMINAL_SUCCESS_STATES = frozenset(
    {PipelineState.COMPLETED, PipelineState.ISSUED, PipelineState.INSTALLED}
)


@dataclass
class HostOutcome:
    """Terminal result of one host's pipeline."""

    host: str
    state: PipelineState
    request_path: Path | None = None
    certificate_path: Path | None = None
    fingerprint: str | None = None
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state in TERMINAL_SUCCESS_STATES


@dataclass
class BatchResult:
    """Ordered per-host outcomes of a batch plus non-fatal warnings."""

    outcomes: list[HostOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    complete_request: bool = False

    def by_state(self, *states: PipelineState) -> list[HostOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state in states]

    @property
    def successes(self) -> list[HostOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failures(self) -> list[HostOutcome]:
        return self.by_state(PipelineState.FAILED, PipelineState.SKIPPED)
