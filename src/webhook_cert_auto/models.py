"""Data models for webhook-cert-auto.

This module provides the small, type-safe data structures passed between
the workflow stages, along with the defaults the CLI falls back to.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple

DEFAULT_SERVICE = "kuberhealthy-webhook"
DEFAULT_SECRET = "kuberhealthy-webhook-secrets"
DEFAULT_NAMESPACE = "kuberhealthy"
KUBELET_SERVING_SIGNER = "kubernetes.io/kubelet-serving"
DEFAULT_SIGNER_NAME = KUBELET_SERVING_SIGNER
DEFAULT_POLL_ATTEMPTS = 10
DEFAULT_POLL_INTERVAL = 1.0

# Keys of the generated secret, read by the webhook server
SECRET_KEY_ENTRY = "key.pem"
SECRET_CERT_ENTRY = "cert.pem"

# Kubernetes DNS subdomain name validation (RFC 1123)
_DNS_SUBDOMAIN_MAX_LENGTH = 253
_DNS_SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")


def validate_k8s_name(name: str) -> bool | str:
    """Validate a Kubernetes resource name (DNS subdomain).

    Args:
        name: The name to validate.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if not name:
        return "Name cannot be empty"
    if len(name) > _DNS_SUBDOMAIN_MAX_LENGTH:
        return f"Name must be {_DNS_SUBDOMAIN_MAX_LENGTH} characters or less"
    if not _DNS_SUBDOMAIN_PATTERN.match(name):
        return (
            "Name must consist of lowercase alphanumeric characters, '-' or '.', "
            "and must start and end with an alphanumeric character"
        )
    return True


class SigningState(str, Enum):
    """Lifecycle of the CertificateSigningRequest driven by this tool."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    VISIBLE = "visible"
    APPROVED = "approved"
    SIGNED = "signed"


@dataclass(frozen=True, slots=True)
class WebhookIdentity:
    """Names identifying the webhook whose certificate is provisioned.

    Attributes:
        service: The webhook service name.
        namespace: The namespace of the service and the secret.
        secret: The name of the secret receiving the key pair.

    """

    service: str
    namespace: str
    secret: str

    @property
    def csr_name(self) -> str:
        """Deterministic CertificateSigningRequest name."""
        return f"{self.service}.{self.namespace}"

    @property
    def common_name(self) -> str:
        """Subject common name of the certificate."""
        return f"{self.service}.{self.namespace}.svc"

    @property
    def dns_names(self) -> tuple[str, str, str]:
        """The in-cluster DNS names the certificate must cover."""
        return (self.service, f"{self.service}.{self.namespace}", self.common_name)


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """Bounded retry policy for waiting on the signing request.

    Attributes:
        attempts: Maximum number of probes before giving up.
        interval: Delay in seconds before the second probe.
        backoff: Multiplier applied to the delay after every failed probe.
        max_interval: Upper bound for the delay between probes.

    """

    attempts: int = DEFAULT_POLL_ATTEMPTS
    interval: float = DEFAULT_POLL_INTERVAL
    backoff: float = 1.0
    max_interval: float = 30.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.interval < 0:
            raise ValueError("interval cannot be negative")
        if self.backoff < 1:
            raise ValueError("backoff must be at least 1")

    def delays(self) -> list[float]:
        """Return the sleep durations between consecutive probes."""
        delays: list[float] = []
        delay = self.interval
        for _ in range(self.attempts - 1):
            delays.append(min(delay, self.max_interval))
            delay *= self.backoff
        return delays


class KeyMaterial(NamedTuple):
    """Private key and certificate request, both PEM encoded."""

    private_key_pem: bytes
    csr_pem: bytes


class CertificateInfo(NamedTuple):
    """Human-readable summary of an issued certificate."""

    subject: str
    issuer: str
    dns_names: list[str]
    not_after: str


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Outcome of a successful provisioning run.

    Attributes:
        identity: The webhook identity the certificate was issued for.
        certificate: Summary of the issued certificate.
        ca_bundle: Base64 CA data from the kubeconfig, if it could be read.

    """

    identity: WebhookIdentity
    certificate: CertificateInfo
    ca_bundle: str | None = None


class Workspace(NamedTuple):
    """Paths inside the scoped temporary directory."""

    root: Path
    key_path: Path
    cert_path: Path
