#!/usr/bin/env python3
"""Request LDAPS certificates for domain controllers from an enterprise CA."""

import argparse
import socket
import sys
from pathlib import Path

from dc_enrollment.lib.authority_selector import AuthoritySelector
from dc_enrollment.lib.batch import BatchCoordinator
from dc_enrollment.lib.certreq_client import CertReqClient
from dc_enrollment.lib.command_runner import CommandRunner
from dc_enrollment.lib.config import (
    DEFAULT_TEMPLATE_NAME,
    EnrollmentConfig,
    LoadBalancing,
    RequestParameters,
)
from dc_enrollment.lib.directory_client import DirectoryClient
from dc_enrollment.lib.errors import EnrollmentError
from dc_enrollment.lib.logging_config import LOGGER, set_verbose
from dc_enrollment.lib.network_client import NetworkClient
from dc_enrollment.lib.reporting import format_summary


def build_coordinator(config: EnrollmentConfig) -> BatchCoordinator:
    """Wire the real collaborators together."""
    runner = CommandRunner(timeout=config.command_timeout)
    directory = DirectoryClient(runner, powershell_path=config.powershell_path)
    network = NetworkClient(runner, directory, nltest_path=config.nltest_path)
    certreq = CertReqClient(
        runner,
        certreq_path=config.certreq_path,
        certutil_path=config.certutil_path,
        store=config.certificate_store,
    )
    selector = AuthoritySelector(directory, network)
    return BatchCoordinator(directory, network, certreq, selector, config)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments, with computer_names defaulting to the short local host name
    """
    parser = argparse.ArgumentParser(
        description="Generate, submit and install domain controller certificate requests"
    )
    parser.add_argument(
        "--computer-name",
        action="append",
        dest="computer_names",
        help="Host to request a certificate for; repeat for several (default: local host)",
    )
    parser.add_argument(
        "--ldap-vip-name",
        required=True,
        help="DNS name of the load-balanced LDAP endpoint, added as a SAN",
    )
    parser.add_argument(
        "--certificate-template-name",
        default=DEFAULT_TEMPLATE_NAME,
        help=f"Certificate template to request (default: {DEFAULT_TEMPLATE_NAME})",
    )
    parser.add_argument(
        "--export-request-inf",
        action="store_true",
        help="Also write the human-readable .inf next to each request",
    )
    parser.add_argument(
        "--complete-request",
        action="store_true",
        help="Submit the request and install the certificate when possible",
    )
    parser.add_argument(
        "--load-balancing",
        type=LoadBalancing,
        choices=list(LoadBalancing),
        default=LoadBalancing.RANDOM,
        help="Issuing authority selection policy (default: Random)",
    )
    parser.add_argument(
        "--skip-certificate-install",
        action="store_true",
        help="Submit and retrieve the certificate but never install it locally",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for request and certificate files (default: current directory)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    if not args.computer_names:
        args.computer_names = [socket.gethostname().split(".", 1)[0]]
    return args


def main(argv: list[str] | None = None, coordinator: BatchCoordinator | None = None) -> int:
    """Run certificate enrollment for the requested hosts.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = parse_args(argv)
    set_verbose(args.verbose)

    params = RequestParameters(
        ldap_vip_name=args.ldap_vip_name,
        output_dir=args.output_dir,
        template_name=args.certificate_template_name,
        export_inf=args.export_request_inf,
        complete_request=args.complete_request,
        load_balancing=args.load_balancing,
        skip_install=args.skip_certificate_install,
    )

    try:
        coordinator = coordinator or build_coordinator(EnrollmentConfig())
        result = coordinator.run_batch(args.computer_names, params)
    except EnrollmentError as e:
        LOGGER.error("Certificate enrollment failed: %s", e)
        if e.output:
            LOGGER.error("Tool output: %s", e.output)
        return 1
    except Exception as e:
        LOGGER.error("Certificate enrollment failed: %s", e)
        return 1

    for line in format_summary(result):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
