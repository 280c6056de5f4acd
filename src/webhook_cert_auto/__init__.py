"""webhook-cert-auto: cluster-signed TLS certificates for admission webhooks.

This package issues a serving certificate for a webhook service through
the Kubernetes CertificateSigningRequest API and stores the key pair in
a secret the webhook server can mount.

Example usage:
    from webhook_cert_auto import Provisioner, WebhookIdentity

    identity = WebhookIdentity(service="my-webhook", namespace="default", secret="my-webhook-certs")
    with Provisioner(identity, select_context=False) as provisioner:
        provisioner.provision()
"""

__version__ = "0.1.0"

from webhook_cert_auto.cli import cli
from webhook_cert_auto.exceptions import (
    BinaryNotFoundError,
    CertificateDecodeError,
    ClusterConnectionError,
    SecretApplyError,
    SigningRequestError,
    SigningRequestTimeoutError,
    WebhookCertError,
)
from webhook_cert_auto.models import PollPolicy, WebhookIdentity
from webhook_cert_auto.provisioner import Provisioner

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Classes
    "PollPolicy",
    "Provisioner",
    "WebhookIdentity",
    # Exceptions
    "WebhookCertError",
    "BinaryNotFoundError",
    "CertificateDecodeError",
    "ClusterConnectionError",
    "SecretApplyError",
    "SigningRequestError",
    "SigningRequestTimeoutError",
]
