"""Webhook secret rendering and apply.

The secret is rendered client-side with ``kubectl create --dry-run=client``
and then applied, so re-running the workflow updates an existing secret
instead of failing on a name conflict.
"""

import subprocess
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from webhook_cert_auto import console
from webhook_cert_auto.exceptions import BinaryNotFoundError, SecretApplyError
from webhook_cert_auto.models import SECRET_CERT_ENTRY, SECRET_KEY_ENTRY, WebhookIdentity

# CLI flag constants for kubectl commands
_DRY_RUN_CLIENT = "--dry-run=client"

# Error message constants
_ERR_KUBECTL_NOT_FOUND = "kubectl not found; please install kubectl and ensure it's on PATH"
_ERR_KUBECTL_FAILED = "Failed to {action} secret {name} (exit code {code}){details}"


def _context_args(context: str | None) -> list[str]:
    return [f"--context={context}"] if context else []


def _run_kubectl(cmd: list[str], action: str, name: str, *, input_data: str | None = None) -> str:
    """Run a kubectl command and return its stdout.

    Args:
        cmd: The kubectl command to execute.
        action: What the command does, for error messages.
        name: The secret name, for error messages.
        input_data: Optional text passed on stdin.

    Raises:
        BinaryNotFoundError: If kubectl is not installed.
        SecretApplyError: If the command fails.

    """
    try:
        result = subprocess.run(
            cmd,
            input=input_data,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as err:
        raise BinaryNotFoundError(_ERR_KUBECTL_NOT_FOUND) from err
    except subprocess.CalledProcessError as err:
        stderr_msg = err.stderr.strip() if err.stderr else ""
        details = f" - {stderr_msg}" if stderr_msg else ""
        raise SecretApplyError(
            _ERR_KUBECTL_FAILED.format(action=action, name=name, code=err.returncode, details=details)
        ) from err
    return result.stdout


def render_secret_manifest(
    identity: WebhookIdentity,
    key_path: Path,
    cert_path: Path,
    *,
    kubectl: str = "kubectl",
    context: str | None = None,
) -> str:
    """Render the webhook secret manifest without touching the cluster.

    Args:
        identity: The webhook identity naming the secret and namespace.
        key_path: File holding the PEM private key.
        cert_path: File holding the PEM signed certificate.
        kubectl: Path of the kubectl binary.
        context: Kube context to render against; the current one if None.

    Returns:
        The Secret manifest as YAML.

    """
    cmd: list[str] = [
        kubectl,
        *_context_args(context),
        "create",
        "secret",
        "generic",
        identity.secret,
        "--namespace",
        identity.namespace,
        f"--from-file={SECRET_KEY_ENTRY}={key_path}",
        f"--from-file={SECRET_CERT_ENTRY}={cert_path}",
        _DRY_RUN_CLIENT,
        "-o",
        "yaml",
    ]
    ic(cmd)
    return _run_kubectl(cmd, "render", identity.secret)


def parse_secret_manifest(manifest: str) -> dict[str, Any]:
    """Parse a rendered manifest and check it carries the key pair.

    Args:
        manifest: YAML produced by render_secret_manifest.

    Returns:
        The parsed Secret document.

    Raises:
        SecretApplyError: If the manifest is not a Secret with both entries.

    """
    try:
        secret = yaml.safe_load(manifest)
    except yaml.YAMLError as err:
        raise SecretApplyError(f"Rendered secret manifest is malformed YAML: {err}") from err

    if not isinstance(secret, dict) or secret.get("kind") != "Secret":
        raise SecretApplyError("Rendered manifest is not a Kubernetes Secret")

    data = secret.get("data") or {}
    missing = [entry for entry in (SECRET_KEY_ENTRY, SECRET_CERT_ENTRY) if not data.get(entry)]
    if missing:
        raise SecretApplyError(f"Rendered secret is missing entries: {', '.join(missing)}")

    ic(secret["metadata"], sorted(data))
    return secret


def apply_secret_manifest(
    manifest: str, namespace: str, *, kubectl: str = "kubectl", context: str | None = None
) -> str:
    """Create or update the secret from a rendered manifest.

    Args:
        manifest: YAML of the Secret.
        namespace: Namespace to apply into.
        kubectl: Path of the kubectl binary.
        context: Kube context to apply into; the current one if None.

    Returns:
        kubectl's report, e.g. ``secret/name created`` or ``secret/name configured``.

    """
    secret = parse_secret_manifest(manifest)
    name = secret["metadata"]["name"]
    cmd: list[str] = [kubectl, *_context_args(context), "-n", namespace, "apply", "-f", "-"]
    ic(cmd)
    return _run_kubectl(cmd, "apply", name, input_data=manifest).strip()


def write_webhook_secret(
    identity: WebhookIdentity,
    key_path: Path,
    cert_path: Path,
    *,
    kubectl: str = "kubectl",
    context: str | None = None,
) -> str:
    """Render and apply the webhook secret.

    Args:
        identity: The webhook identity naming the secret and namespace.
        key_path: File holding the PEM private key.
        cert_path: File holding the PEM signed certificate.
        kubectl: Path of the kubectl binary.
        context: Kube context holding the webhook; the current one if None.

    Returns:
        kubectl's apply report.

    """
    console.step(f"Creating secret with name {console.highlight(identity.secret)}")
    manifest = render_secret_manifest(identity, key_path, cert_path, kubectl=kubectl, context=context)
    report = apply_secret_manifest(manifest, identity.namespace, kubectl=kubectl, context=context)
    console.success(report or f"secret/{identity.secret} applied")
    return report
