"""Kubernetes cluster interaction utilities.

This module provides the Cluster class which selects the kube context,
loads the client configuration and reads the CA bundle of the cluster.
"""

import shlex
import subprocess

import click
import questionary
from icecream import ic
from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from questionary import Style

from webhook_cert_auto import console
from webhook_cert_auto.exceptions import ClusterConnectionError

_CA_DATA_JSONPATH = "{.clusters[0].cluster.certificate-authority-data}"

PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#af87ff bold"),
        ("question", "bold"),
        ("answer", "fg:#ff87d7 bold"),
        ("pointer", "fg:#ff87d7 bold"),
        ("highlighted", "fg:#1c1c1c bg:#ff87d7 bold"),
        ("instruction", "fg:#6c6c6c italic"),
    ]
)


class Cluster:
    """Manages the connection to the cluster issuing the webhook certificate.

    Attributes:
        context: The active Kubernetes context name.
        kubectl: Path of the kubectl binary used for kubeconfig queries.

    """

    def __init__(self, *, select_context: bool, kubectl: str = "kubectl") -> None:
        """Initialize Cluster with context selection.

        Args:
            select_context: If True, prompt user to select a context.
                           If False, use the current context.
                           Must be passed as a keyword argument.
            kubectl: Path of the kubectl binary.

        Raises:
            ClusterConnectionError: If the kubeconfig cannot be loaded.

        """
        self.kubectl: str = kubectl
        self.context: str = self._set_context(select_context=select_context)
        try:
            config.load_kube_config(context=self.context)
        except ConfigException as e:
            raise ClusterConnectionError(f"Unable to load kubeconfig for context {self.context}: {e}") from e

    @staticmethod
    def _set_context(*, select_context: bool) -> str:
        """Set the Kubernetes context to use.

        Args:
            select_context: If True, prompt user to select a context.

        Returns:
            The selected or current context name.

        Raises:
            ClusterConnectionError: If kubeconfig is invalid or missing.
            click.Abort: If user cancels context selection.

        """
        try:
            contexts, current_context = config.list_kube_config_contexts()
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e
        if select_context:
            context: str | None = questionary.select(
                "Select context to work with",
                choices=[context["name"] for context in contexts],
                style=PROMPT_STYLE,
            ).ask()
            if context is None:
                console.warning("Context selection cancelled.")
                raise click.Abort()
        else:
            if not current_context:
                raise ClusterConnectionError("No current context is set in the kubeconfig")
            context = str(current_context["name"])
        console.action(f"Creating new CA data for {console.highlight(context)}")
        return context

    @staticmethod
    def certificates_api() -> client.CertificatesV1Api:
        """Return an API client for certificates.k8s.io/v1."""
        return client.CertificatesV1Api()

    def ca_bundle_command(self) -> list[str]:
        """Build the kubectl command printing the CA data of the context."""
        return [
            self.kubectl,
            "config",
            "view",
            "--raw",
            "--minify",
            "--flatten",
            f"--context={self.context}",
            "-o",
            f"jsonpath={_CA_DATA_JSONPATH}",
        ]

    def ca_bundle_shell_command(self) -> str:
        """Return the CA data command in a form the operator can paste."""
        cmd = self.ca_bundle_command()
        cmd[0] = "kubectl"
        return shlex.join(cmd)

    def read_ca_bundle(self) -> str | None:
        """Read the base64 CA data of the current context from the kubeconfig.

        Returns:
            The CA bundle, or None if the kubeconfig does not embed one or
            kubectl could not read it.

        """
        cmd = self.ca_bundle_command()
        ic(cmd)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except (OSError, subprocess.CalledProcessError) as err:
            ic(err)
            console.warning("Could not read the CA data from the kubeconfig")
            return None

        ca_bundle = result.stdout.strip()
        if not ca_bundle:
            console.warning(f"The kubeconfig of {console.highlight(self.context)} does not embed CA data")
            return None
        return ca_bundle

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r})"
