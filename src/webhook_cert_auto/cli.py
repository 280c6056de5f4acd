#!/usr/bin/env python
"""Command-line interface for webhook-cert-auto.

This module provides the main CLI entry point, handling command-line
argument parsing and running the provisioning workflow.
"""

import sys

import click
from icecream import ic

from webhook_cert_auto import __version__, console
from webhook_cert_auto.exceptions import WebhookCertError
from webhook_cert_auto.models import (
    DEFAULT_NAMESPACE,
    DEFAULT_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SECRET,
    DEFAULT_SERVICE,
    DEFAULT_SIGNER_NAME,
    PollPolicy,
    WebhookIdentity,
    validate_k8s_name,
)
from webhook_cert_auto.provisioner import Provisioner


def _validate_name(ctx: click.Context, param: click.Parameter, value: str) -> str:  # noqa: ARG001
    """Reject values that are not valid Kubernetes resource names."""
    result = validate_k8s_name(value)
    if result is not True:
        raise click.BadParameter(str(result))
    return value


@click.command(
    help=(
        "Generate a certificate suitable for use with an admission webhook service, "
        "signed by the cluster CA through the CertificateSigningRequest API, "
        "and store the key pair in a secret."
    )
)
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option(
    "--service", default=DEFAULT_SERVICE, show_default=True, callback=_validate_name, help="service name of webhook"
)
@click.option(
    "--secret",
    default=DEFAULT_SECRET,
    show_default=True,
    callback=_validate_name,
    help="secret name for the server certificate/key pair",
)
@click.option(
    "--namespace",
    default=DEFAULT_NAMESPACE,
    show_default=True,
    callback=_validate_name,
    help="namespace where webhook service and secret reside",
)
@click.option(
    "--signer-name", default=DEFAULT_SIGNER_NAME, show_default=True, help="signer requested on the CSR"
)
@click.option(
    "--attempts",
    type=click.IntRange(min=1),
    default=DEFAULT_POLL_ATTEMPTS,
    show_default=True,
    help="poll attempts while waiting on the CSR",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=DEFAULT_POLL_INTERVAL,
    show_default=True,
    help="seconds between poll attempts",
)
@click.option(
    "--backoff",
    type=click.FloatRange(min=1),
    default=1.0,
    show_default=True,
    help="multiplier applied to the interval after every attempt",
)
def cli(
    debug: bool,
    select: bool,
    service: str,
    secret: str,
    namespace: str,
    signer_name: str,
    attempts: int,
    interval: float,
    backoff: float,
    version: bool,
) -> None:
    """Process CLI arguments and provision the webhook certificate.

    Args:
        debug: Enable debug output.
        select: Prompt for Kubernetes context selection.
        service: Webhook service name.
        secret: Name of the secret receiving the key pair.
        namespace: Namespace of the service and the secret.
        signer_name: Signer requested on the CSR.
        attempts: Poll attempts per wait.
        interval: Seconds between poll attempts.
        backoff: Growth factor of the interval.
        version: Print version and exit.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    identity = WebhookIdentity(service=service, namespace=namespace, secret=secret)
    policy = PollPolicy(attempts=attempts, interval=interval, backoff=backoff)
    ic(identity, policy)

    try:
        with Provisioner(identity, select_context=select, signer_name=signer_name, policy=policy) as provisioner:
            provisioner.provision()
    except WebhookCertError as e:
        console.error(str(e))
        sys.exit(1)


def main() -> None:
    """Console script entry point.

    Usage errors exit with status 1, like every other failure.
    """
    try:
        cli.main(standalone_mode=False)
    except click.Abort:
        console.error("Aborted!")
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(1)


if __name__ == "__main__":
    main()
