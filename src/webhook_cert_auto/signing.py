"""CertificateSigningRequest workflow.

This module submits the webhook's certificate request to the cluster,
approves it and waits for the signer to publish the certificate. The
request moves through ``submitted -> visible -> approved -> signed``; every
wait is bounded by the configured PollPolicy.
"""

import base64
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone

from icecream import ic
from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from webhook_cert_auto import console
from webhook_cert_auto.exceptions import ClusterConnectionError, SigningRequestError
from webhook_cert_auto.keys import decode_certificate
from webhook_cert_auto.models import PollPolicy, SigningState, WebhookIdentity
from webhook_cert_auto.polling import poll_until

REQUEST_GROUPS = ["system:authenticated"]
REQUEST_USAGES = ["digital signature", "key encipherment", "server auth"]

_APPROVAL_REASON = "WebhookCertAutoApprove"
_APPROVAL_MESSAGE = "This CSR was approved by webhook-cert-auto"
_APPROVAL_ATTEMPTS = 2
_TERMINAL_CONDITIONS = ("Denied", "Failed")
_MANAGED_BY_LABEL = {"app.kubernetes.io/managed-by": "webhook-cert-auto"}


@contextmanager
def _api_errors(action: str) -> Generator[None, None, None]:
    """Translate client errors raised while performing ``action``."""
    try:
        yield
    except MaxRetryError as e:
        raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
    except ApiException as e:
        raise SigningRequestError(f"Failed to {action}: {e.status} {e.reason}") from e


def build_signing_request(
    identity: WebhookIdentity, csr_pem: bytes, signer_name: str
) -> client.V1CertificateSigningRequest:
    """Build the CertificateSigningRequest resource for the webhook.

    Args:
        identity: The webhook identity; its csr_name names the resource.
        csr_pem: The PEM encoded PKCS#10 request.
        signer_name: The signer expected to issue the certificate.

    Returns:
        The resource body ready to be created.

    """
    return client.V1CertificateSigningRequest(
        api_version="certificates.k8s.io/v1",
        kind="CertificateSigningRequest",
        metadata=client.V1ObjectMeta(name=identity.csr_name, labels=dict(_MANAGED_BY_LABEL)),
        spec=client.V1CertificateSigningRequestSpec(
            groups=list(REQUEST_GROUPS),
            request=base64.b64encode(csr_pem).decode("ascii"),
            signer_name=signer_name,
            usages=list(REQUEST_USAGES),
        ),
    )


def _conditions(csr: client.V1CertificateSigningRequest) -> list[client.V1CertificateSigningRequestCondition]:
    if csr.status is None or not csr.status.conditions:
        return []
    return list(csr.status.conditions)


def _has_condition(csr: client.V1CertificateSigningRequest, condition_type: str) -> bool:
    return any(c.type == condition_type and c.status == "True" for c in _conditions(csr))


class SigningRequest:
    """Drives a single CertificateSigningRequest through its lifecycle.

    Attributes:
        api: The certificates.k8s.io/v1 API client.
        identity: The webhook identity being certified.
        signer_name: The signer named on the request.
        policy: Bounded retry policy for the waits.
        state: The last lifecycle state reached.

    """

    def __init__(
        self,
        api: client.CertificatesV1Api,
        identity: WebhookIdentity,
        *,
        signer_name: str,
        policy: PollPolicy,
    ) -> None:
        self.api = api
        self.identity = identity
        self.signer_name = signer_name
        self.policy = policy
        self.state: SigningState = SigningState.PENDING

    @property
    def name(self) -> str:
        """The CertificateSigningRequest name."""
        return self.identity.csr_name

    def delete_stale(self) -> bool:
        """Delete a request left behind by a previous run.

        A missing request is expected on the first run and is not an error.

        Returns:
            True if a request was deleted, False if none existed.

        Raises:
            SigningRequestError: If the API refuses the deletion.

        """
        console.step(f"Deleting previous certificate signing request {console.highlight(self.name)}")
        try:
            with _api_errors(f"delete certificate signing request {self.name}"):
                self.api.delete_certificate_signing_request(self.name)
        except SigningRequestError as e:
            if isinstance(e.__cause__, ApiException) and e.__cause__.status == 404:
                ic("no stale request", self.name)
                return False
            raise
        return True

    def submit(self, csr_pem: bytes) -> None:
        """Create the signing request in the cluster.

        Args:
            csr_pem: The PEM encoded PKCS#10 request.

        Raises:
            SigningRequestError: If the API rejects the request.

        """
        console.step("Creating certificate signing request in cluster")
        body = build_signing_request(self.identity, csr_pem, self.signer_name)
        ic(body.metadata.name, body.spec.signer_name, body.spec.usages)
        with _api_errors(f"create certificate signing request {self.name}"):
            self.api.create_certificate_signing_request(body)
        self.state = SigningState.SUBMITTED

    def _read(self) -> client.V1CertificateSigningRequest:
        with _api_errors(f"read certificate signing request {self.name}"):
            return self.api.read_certificate_signing_request(self.name)

    def _read_if_present(self) -> client.V1CertificateSigningRequest | None:
        try:
            return self._read()
        except SigningRequestError as e:
            if isinstance(e.__cause__, ApiException) and e.__cause__.status == 404:
                return None
            raise

    def wait_until_visible(self) -> client.V1CertificateSigningRequest:
        """Wait until the submitted request can be read back by name.

        Returns:
            The request as stored by the API server.

        Raises:
            SigningRequestTimeoutError: If the request never becomes readable.

        """
        with console.spinner(f"Waiting for {self.name} to become visible..."):
            csr = poll_until(
                self._read_if_present,
                self.policy,
                timeout_message=(
                    f"Certificate signing request {self.name} did not become visible. "
                    f"Giving up after {self.policy.attempts} attempts."
                ),
            )
        self.state = SigningState.VISIBLE
        return csr

    def _append_approval(self, csr: client.V1CertificateSigningRequest) -> None:
        condition = client.V1CertificateSigningRequestCondition(
            type="Approved",
            status="True",
            reason=_APPROVAL_REASON,
            message=_APPROVAL_MESSAGE,
            last_update_time=datetime.now(timezone.utc),
        )
        if csr.status is None:
            csr.status = client.V1CertificateSigningRequestStatus()
        csr.status.conditions = [*_conditions(csr), condition]
        with _api_errors(f"approve certificate signing request {self.name}"):
            self.api.replace_certificate_signing_request_approval(self.name, csr)

    def approve(self) -> None:
        """Approve the request, as ``kubectl certificate approve`` does.

        A conflict on the approval update means the request changed since it
        was read; it is read again and the approval retried once.

        Raises:
            SigningRequestError: If the request was denied or the approval fails.

        """
        console.step(f"Approving certificate signing request {console.highlight(self.name)}")
        for attempt in range(_APPROVAL_ATTEMPTS):
            csr = self._read()

            if _has_condition(csr, "Denied"):
                raise SigningRequestError(f"Certificate signing request {self.name} has been denied")
            if _has_condition(csr, "Approved"):
                break

            try:
                self._append_approval(csr)
            except SigningRequestError as e:
                conflict = isinstance(e.__cause__, ApiException) and e.__cause__.status == 409
                if not conflict or attempt == _APPROVAL_ATTEMPTS - 1:
                    raise
                ic("approval conflict", self.name)
            else:
                break

        self.state = SigningState.APPROVED

    def _issued_certificate(self) -> str | None:
        csr = self._read()
        for condition in _conditions(csr):
            if condition.type in _TERMINAL_CONDITIONS and condition.status == "True":
                raise SigningRequestError(
                    f"Certificate signing request {self.name} is {condition.type.lower()}: "
                    f"{condition.message or condition.reason or 'no reason given'}"
                )
        if csr.status is None:
            return None
        return csr.status.certificate or None

    def wait_for_certificate(self) -> bytes:
        """Wait for the signer to publish the certificate on the request status.

        Returns:
            The PEM encoded signed certificate.

        Raises:
            SigningRequestTimeoutError: If no certificate appears in time.
            SigningRequestError: If the request is denied or fails meanwhile.
            CertificateDecodeError: If the published certificate is malformed.

        """
        with console.spinner(f"Waiting for {self.name} to be signed..."):
            encoded = poll_until(
                self._issued_certificate,
                self.policy,
                timeout_message=(
                    f"After approving csr {self.name}, the signed certificate did not appear "
                    f"on the resource. Giving up after {self.policy.attempts} attempts."
                ),
            )
        cert_pem = decode_certificate(encoded)
        self.state = SigningState.SIGNED
        return cert_pem

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"SigningRequest(name={self.name!r}, signer_name={self.signer_name!r}, state={self.state.value!r})"
