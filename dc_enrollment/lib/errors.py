"""Exception taxonomy for certificate enrollment."""


class EnrollmentError(Exception):
    """Base class for every enrollment failure.

    Carries the captured output of the external tool involved, when there
    was one, so the caller can report it alongside the message.
    """

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class ResolutionError(EnrollmentError):
    """Host or template not found in the directory, or matched ambiguously."""


class AuthorityError(EnrollmentError):
    """Issuing authority discovery or selection failed."""


class NoAuthorityFound(AuthorityError):
    """The directory lists no enrollment services."""


class EncodeError(EnrollmentError):
    """The request text could not be encoded into a PKCS#10 request."""


class SubmitError(EnrollmentError):
    """Submission failed or produced no certificate file."""


class SubmissionPendingError(SubmitError):
    """The authority accepted the request but parked it for approval."""

    def __init__(self, message: str, request_id: str, output: str = "") -> None:
        super().__init__(message, output)
        self.request_id = request_id


class InstallVerificationError(EnrollmentError):
    """Accept failed, or the certificate is absent from the store afterwards."""


class ArtifactWriteError(EnrollmentError):
    """A request artifact could not be written."""


class UnresolvedPlaceholderError(ArtifactWriteError):
    """Template text would be written with a placeholder left in it."""


class TemplateComplianceWarning(UserWarning):
    """Certificate template lacks required extended key usages."""
