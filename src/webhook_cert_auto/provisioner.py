"""Provisioner facade class.

This module provides the Provisioner class which serves as the main entry
point of the workflow, coordinating key generation, the signing request
lifecycle and the secret writer.
"""

from contextlib import ExitStack

from icecream import ic

from webhook_cert_auto import console
from webhook_cert_auto.cluster import Cluster
from webhook_cert_auto.host import Host
from webhook_cert_auto.keys import describe_certificate, generate_key_material
from webhook_cert_auto.models import (
    DEFAULT_SIGNER_NAME,
    PollPolicy,
    ProvisionResult,
    WebhookIdentity,
    Workspace,
)
from webhook_cert_auto.secret import write_webhook_secret
from webhook_cert_auto.signing import SigningRequest


class Provisioner:
    """Issues a cluster-signed serving certificate for an admission webhook.

    Use as a context manager: the temporary directory holding the private
    key exists only while the context is open.

    Attributes:
        identity: The webhook identity being certified.
        signer_name: The signer named on the signing request.
        policy: Bounded retry policy for the waits.
        host: Host instance with the resolved binaries.
        cluster: Cluster instance for the selected context.
        workspace: The open temporary workspace, None outside the context.

    """

    def __init__(
        self,
        identity: WebhookIdentity,
        *,
        select_context: bool,
        signer_name: str = DEFAULT_SIGNER_NAME,
        policy: PollPolicy | None = None,
    ) -> None:
        """Check local prerequisites and connect to the cluster.

        Args:
            identity: The webhook identity being certified.
            select_context: If True, prompt user to select a Kubernetes context.
            signer_name: The signer named on the signing request.
            policy: Bounded retry policy; defaults to 10 attempts one second apart.

        Raises:
            BinaryNotFoundError: If kubectl is missing. Raised before any cluster access.
            ClusterConnectionError: If the kubeconfig cannot be loaded.

        """
        self.identity: WebhookIdentity = identity
        self.signer_name: str = signer_name
        self.policy: PollPolicy = policy or PollPolicy()
        self.host: Host = Host()
        self.cluster: Cluster = Cluster(select_context=select_context, kubectl=self.host.binaries["kubectl"])
        self.workspace: Workspace | None = None
        self._stack: ExitStack | None = None

    def __enter__(self) -> "Provisioner":
        """Enter context manager and open the temporary workspace.

        Returns:
            The Provisioner instance.

        """
        self._stack = ExitStack()
        self.workspace = self._stack.enter_context(Host.workspace())
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Exit context manager and remove the temporary workspace.

        Args:
            exc_type: Exception type if an exception was raised.
            exc_val: Exception value if an exception was raised.
            exc_tb: Exception traceback if an exception was raised.

        """
        if self._stack is not None:
            self._stack.close()
        self._stack = None
        self.workspace = None

    def provision(self) -> ProvisionResult:
        """Run the whole workflow and write the webhook secret.

        Returns:
            ProvisionResult describing the issued certificate.

        Raises:
            RuntimeError: If called outside the context manager.
            WebhookCertError: If any stage of the workflow fails.

        """
        if self.workspace is None:
            raise RuntimeError("Provisioner must be used as a context manager")
        workspace = self.workspace

        # Nothing in the cluster is touched until the key material exists
        material = generate_key_material(self.identity, signer_name=self.signer_name)
        Host.write_private(workspace.key_path, material.private_key_pem)

        request = SigningRequest(
            self.cluster.certificates_api(),
            self.identity,
            signer_name=self.signer_name,
            policy=self.policy,
        )
        request.delete_stale()
        request.submit(material.csr_pem)
        request.wait_until_visible()
        request.approve()
        cert_pem = request.wait_for_certificate()
        ic(request)
        console.success(f"Certificate for {console.highlight(self.identity.common_name)} has been signed")

        Host.write_private(workspace.cert_path, cert_pem)
        write_webhook_secret(
            self.identity,
            workspace.key_path,
            workspace.cert_path,
            kubectl=self.host.binaries["kubectl"],
            context=self.cluster.context,
        )

        certificate = describe_certificate(cert_pem)
        result = ProvisionResult(
            identity=self.identity,
            certificate=certificate,
            ca_bundle=self.cluster.read_ca_bundle(),
        )

        console.newline()
        console.summary_panel(
            "Webhook Certificate Provisioned",
            {
                "Context": self.cluster.context,
                "Signing request": self.identity.csr_name,
                "Secret": f"{self.identity.namespace}/{self.identity.secret}",
                "DNS names": ", ".join(certificate.dns_names),
                "Issuer": certificate.issuer,
                "Expires": certificate.not_after,
            },
        )
        console.ca_bundle_instructions(self.cluster.ca_bundle_shell_command(), result.ca_bundle)
        return result

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return (
            f"Provisioner(identity={self.identity!r}, signer_name={self.signer_name!r}, "
            f"cluster={self.cluster!r})"
        )
