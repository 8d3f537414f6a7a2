"""certreq/certutil wrapper for encoding, submitting and installing requests."""

import os
import re
from pathlib import Path

from dc_enrollment.lib.cert_utils import (
    certificate_thumbprint,
    load_certificate_file,
    normalize_thumbprint,
)
from dc_enrollment.lib.command_runner import CommandRunner
from dc_enrollment.lib.errors import (
    ArtifactWriteError,
    EncodeError,
    InstallVerificationError,
    SubmissionPendingError,
    SubmitError,
)
from dc_enrollment.lib.models import AuthorityRecord, IssuedCertificate, RequestArtifact

REQUEST_ID_PATTERN = re.compile(r"RequestId:\s*\"?(\d+)")
CERT_HASH_PATTERN = re.compile(r"Cert Hash\(sha1\):\s*(.+)", re.IGNORECASE)


class CertReqClient:
    """Certificate request client backed by certreq.exe and certutil.exe."""

    def __init__(
        self,
        runner: CommandRunner,
        certreq_path: str = "certreq",
        certutil_path: str = "certutil",
        store: str = "My",
    ) -> None:
        """Initialize certificate request client.

        Args:
            runner: Command runner used for certreq/certutil
            certreq_path: certreq executable
            certutil_path: certutil executable
            store: Local machine store the certificate is accepted into
        """
        self.runner = runner
        self.certreq_path = certreq_path
        self.certutil_path = certutil_path
        self.store = store

    def encode(self, artifact: RequestArtifact) -> RequestArtifact:
        """Encode the artifact's request text into a signed PKCS#10 request.

        The request is produced under a temporary name and renamed onto
        artifact.path only once certreq reports success.

        Raises:
            EncodeError: If certreq fails or writes no request
        """
        partial_path = artifact.path.with_name(artifact.path.name + ".partial")
        partial_path.unlink(missing_ok=True)
        result = self.runner.run(
            [
                self.certreq_path,
                "-new",
                "-q",
                "-machine",
                str(artifact.source_path),
                str(partial_path),
            ],
            expected_path=partial_path,
        )
        if not result.success:
            partial_path.unlink(missing_ok=True)
            raise EncodeError(f"failed to encode request {artifact.path.name}", output=result.output)

        try:
            os.replace(partial_path, artifact.path)
        except OSError as e:
            raise ArtifactWriteError(f"failed to move request into {artifact.path}: {e}") from e
        artifact.encoded = True
        return artifact

    def submit(self, authority: AuthorityRecord, request_path: Path) -> IssuedCertificate:
        """Submit an encoded request to an authority.

        Success requires both a clean certreq exit and a certificate file on
        disk; either missing is a failure.

        Raises:
            SubmissionPendingError: If the authority parked the request
            SubmitError: For any other failure
        """
        cert_path = request_path.with_suffix(".cer")
        response_path = request_path.with_suffix(".rsp")
        result = self.runner.run(
            [
                self.certreq_path,
                "-submit",
                "-q",
                "-config",
                authority.config_string,
                str(request_path),
                str(cert_path),
                str(response_path),
            ],
            expected_path=cert_path,
        )
        if not result.success:
            request_id = REQUEST_ID_PATTERN.search(result.output)
            if request_id and "pending" in result.output.lower():
                raise SubmissionPendingError(
                    f"request {request_path.name} is pending on {authority.config_string} "
                    f"(RequestId {request_id.group(1)})",
                    request_id=request_id.group(1),
                    output=result.output,
                )
            raise SubmitError(
                f"submission of {request_path.name} to {authority.config_string} failed",
                output=result.output,
            )

        return IssuedCertificate(
            path=cert_path,
            request_path=request_path,
            response_path=response_path if response_path.exists() else None,
        )

    def accept(self, certificate: IssuedCertificate) -> str:
        """Install an issued certificate into the local machine store.

        Returns:
            SHA-1 thumbprint of the installed certificate

        Raises:
            InstallVerificationError: If certreq -accept fails or the accepted
                certificate file cannot be read back
        """
        result = self.runner.run(
            [self.certreq_path, "-accept", "-q", "-machine", str(certificate.path)]
        )
        if not result.success:
            raise InstallVerificationError(
                f"failed to accept {certificate.path.name}", output=result.output
            )
        try:
            return certificate_thumbprint(load_certificate_file(certificate.path))
        except (OSError, ValueError) as e:
            raise InstallVerificationError(
                f"could not read accepted certificate {certificate.path.name}: {e}",
                output=result.output,
            ) from e

    def find_by_fingerprint(self, fingerprint: str) -> bool:
        """Check whether the local machine store holds a certificate with this thumbprint."""
        wanted = normalize_thumbprint(fingerprint)
        result = self.runner.run([self.certutil_path, "-store", self.store, wanted])
        if not result.success:
            return False
        return any(
            normalize_thumbprint(match.group(1)) == wanted
            for match in CERT_HASH_PATTERN.finditer(result.output)
        )
