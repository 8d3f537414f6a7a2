"""Enrollment configuration dataclasses."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from cryptography.x509.oid import ExtendedKeyUsageOID

DEFAULT_TEMPLATE_NAME = "DCServerAuthentication"


class LoadBalancing(str, Enum):
    """Policy used to pick one issuing authority out of the catalog."""

    RANDOM = "Random"
    ADSITE = "ADSite"

    def __str__(self) -> str:
        return self.value


def _default_required_ekus() -> frozenset[str]:
    return frozenset(
        {
            ExtendedKeyUsageOID.SERVER_AUTH.dotted_string,
            ExtendedKeyUsageOID.CLIENT_AUTH.dotted_string,
        }
    )


@dataclass
class EnrollmentConfig:
    """Tooling and policy settings shared by every host in a run."""

    certreq_path: str = "certreq"
    certutil_path: str = "certutil"
    nltest_path: str = "nltest"
    powershell_path: str = "powershell"
    command_timeout: int = 120
    certificate_store: str = "My"
    date_format: str = "%Y%m%d"
    required_ekus: frozenset[str] = field(default_factory=_default_required_ekus)


@dataclass
class RequestParameters:
    """Caller inputs for one enrollment invocation."""

    ldap_vip_name: str
    output_dir: Path = Path(".")
    template_name: str = DEFAULT_TEMPLATE_NAME
    export_inf: bool = False
    complete_request: bool = False
    load_balancing: LoadBalancing = LoadBalancing.RANDOM
    skip_install: bool = False
