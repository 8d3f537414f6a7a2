"""Tests for summary formatting."""

from pathlib import Path

from dc_enrollment.lib.models import BatchResult, HostOutcome, PipelineState
from dc_enrollment.lib.reporting import format_summary


def test_single_request_created() -> None:
    result = BatchResult(
        outcomes=[
            HostOutcome(
                host="DC1",
                state=PipelineState.COMPLETED,
                request_path=Path("DC1_20261018.req"),
            )
        ]
    )

    lines = format_summary(result)

    assert lines[0] == "Request created:"
    assert lines[1].strip() == "DC1_20261018.req"
    assert lines[2] == "Next steps:"
    steps = lines[3:]
    assert len(steps) == 3
    assert "certreq -submit" in steps[0]
    assert "certreq -accept" in steps[2]


def test_single_installed_prints_only_fingerprint() -> None:
    result = BatchResult(
        outcomes=[
            HostOutcome(
                host="DC1",
                state=PipelineState.INSTALLED,
                request_path=Path("DC1_20261018.req"),
                certificate_path=Path("DC1_20261018.cer"),
                fingerprint="AB12CD34",
            )
        ],
        complete_request=True,
    )

    assert format_summary(result) == ["AB12CD34"]


def test_issued_certificates_listed_with_install_steps() -> None:
    result = BatchResult(
        outcomes=[
            HostOutcome(
                host="DC1",
                state=PipelineState.ISSUED,
                certificate_path=Path("DC1_20261018.cer"),
            ),
            HostOutcome(host="DC2", state=PipelineState.FAILED, reason="SubmitError: denied"),
            HostOutcome(
                host="DC3",
                state=PipelineState.ISSUED,
                certificate_path=Path("DC3_20261018.cer"),
            ),
        ],
        complete_request=True,
    )

    lines = format_summary(result)

    assert lines[0] == "Certificate issued:"
    assert [line.strip() for line in lines[1:3]] == ["DC1_20261018.cer", "DC3_20261018.cer"]
    assert any("certreq -accept" in line for line in lines)
    assert not any("DC2" in line for line in lines)
    assert lines[-1].startswith("1 host(s) failed or were skipped")


def test_only_successful_requests_listed() -> None:
    result = BatchResult(
        outcomes=[
            HostOutcome(host="DC9", state=PipelineState.SKIPPED, reason="ResolutionError: not found"),
            HostOutcome(
                host="DC2",
                state=PipelineState.COMPLETED,
                request_path=Path("DC2_20261018.req"),
            ),
        ]
    )

    lines = format_summary(result)

    listed = [line.strip() for line in lines if line.strip().endswith(".req")]
    assert listed == ["DC2_20261018.req"]


def test_nothing_succeeded() -> None:
    result = BatchResult(
        outcomes=[
            HostOutcome(host="DC1", state=PipelineState.FAILED, reason="EncodeError: x"),
            HostOutcome(host="DC2", state=PipelineState.FAILED, reason="EncodeError: y"),
        ]
    )

    lines = format_summary(result)

    assert lines[0] == "No requests were created."
    assert "Request created:" not in lines
