"""Shared test fixtures for webhook-cert-auto tests."""

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from kubernetes import client

from webhook_cert_auto.models import PollPolicy, WebhookIdentity


@pytest.fixture
def identity():
    """Webhook identity used across tests."""
    return WebhookIdentity(service="kuberhealthy-webhook", namespace="kuberhealthy", secret="kuberhealthy-webhook-secrets")


@pytest.fixture
def fast_policy():
    """Poll policy with short bounds; sleeps are patched out anyway."""
    return PollPolicy(attempts=3, interval=1.0)


@pytest.fixture
def mock_sleep():
    """Mock time.sleep used by the poller."""
    with patch("webhook_cert_auto.polling.time.sleep") as mock:
        yield mock


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = ([{"name": "test-context"}], {"name": "test-context"})
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def mock_which():
    """Mock shutil.which so kubectl is always found."""
    with patch("shutil.which") as mock:
        mock.side_effect = lambda name: f"/usr/local/bin/{name}"
        yield mock


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for command execution."""
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock


@pytest.fixture
def cluster_mocks(mock_kube_contexts, mock_kube_config, mock_which):
    """Combined fixture for creating Cluster and Provisioner instances without cluster access."""
    return {
        "contexts": mock_kube_contexts,
        "config": mock_kube_config,
        "which": mock_which,
    }


@pytest.fixture(scope="session")
def test_ca():
    """A throwaway CA key and certificate."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "test-cluster-ca")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return key, cert


@pytest.fixture
def sign_csr(test_ca):
    """Return a function signing a PEM CSR the way the cluster signer would.

    The returned value is base64 of the PEM certificate, as published on
    the request's status.certificate field.
    """
    ca_key, ca_cert = test_ca

    def _sign(csr_pem: bytes) -> str:
        from cryptography.hazmat.primitives import serialization

        csr = x509.load_pem_x509_csr(csr_pem)
        san = csr.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        now = datetime.now(timezone.utc)
        cert = (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(ca_cert.subject)
            .public_key(csr.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=5))
            .not_valid_after(now + timedelta(days=365))
            .add_extension(san, critical=False)
            .sign(ca_key, hashes.SHA256())
        )
        return base64.b64encode(cert.public_bytes(serialization.Encoding.PEM)).decode("ascii")

    return _sign


def make_csr_resource(name: str, *, certificate: str | None = None, conditions: list | None = None):
    """Build a CertificateSigningRequest as returned by the API server."""
    return client.V1CertificateSigningRequest(
        metadata=client.V1ObjectMeta(name=name),
        spec=client.V1CertificateSigningRequestSpec(request="cmVxdWVzdA==", signer_name="kubernetes.io/kubelet-serving"),
        status=client.V1CertificateSigningRequestStatus(certificate=certificate, conditions=conditions),
    )


@pytest.fixture
def csr_resource():
    """Factory fixture for CertificateSigningRequest resources."""
    return make_csr_resource
