"""Human-readable summary of a finished batch."""

from dc_enrollment.lib.models import BatchResult, PipelineState


def format_summary(result: BatchResult) -> list[str]:
    """Render the end-of-run summary lines.

    A single installed certificate is reported as its bare thumbprint so
    the output can be consumed by other tooling.
    """
    installed = result.by_state(PipelineState.INSTALLED)
    if len(result.outcomes) == 1 and len(installed) == 1:
        return [installed[0].fingerprint or ""]

    lines: list[str] = []
    if result.complete_request:
        issued = result.by_state(PipelineState.ISSUED, PipelineState.INSTALLED)
        if len(issued) > 0:
            lines.append("Certificate issued:")
            lines.extend(f"  {outcome.certificate_path}" for outcome in issued)
            lines.append("Next steps:")
            lines.append("  1. Copy each certificate file to its domain controller")
            lines.append("  2. On the domain controller run: certreq -accept -machine <certificate file>")
            lines.append("  3. Confirm the installation with: certutil -store My")
        else:
            lines.append("No certificates were issued.")
    else:
        created = result.by_state(PipelineState.COMPLETED)
        if len(created) > 0:
            lines.append("Request created:")
            lines.extend(f"  {outcome.request_path}" for outcome in created)
            lines.append("Next steps:")
            lines.append(
                '  1. Submit the request: certreq -submit -config "<CA host>\\<CA name>" '
                "<request file> <certificate file>"
            )
            lines.append("  2. Copy the issued certificate file to the domain controller")
            lines.append("  3. On the domain controller run: certreq -accept -machine <certificate file>")
        else:
            lines.append("No requests were created.")

    failures = result.failures
    if failures:
        lines.append(f"{len(failures)} host(s) failed or were skipped; see the log for details.")
    return lines
