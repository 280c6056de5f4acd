"""Host system utilities for webhook-cert-auto.

This module provides the Host class which checks the external binaries the
workflow shells out to and owns the temporary directory holding the key
material while the secret is rendered.
"""

import os
import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from icecream import ic

from webhook_cert_auto import console
from webhook_cert_auto.exceptions import BinaryNotFoundError
from webhook_cert_auto.models import SECRET_CERT_ENTRY, SECRET_KEY_ENTRY, Workspace

REQUIRED_BINARIES: tuple[str, ...] = ("kubectl",)

_INSTALL_HINTS = {
    "kubectl": "See: https://kubernetes.io/docs/tasks/tools/#kubectl",
}


class Host:
    """Manages the local side of the provisioning workflow.

    Attributes:
        binaries: Mapping of required binary names to their resolved paths.

    """

    def __init__(self, required: tuple[str, ...] = REQUIRED_BINARIES) -> None:
        """Resolve every required binary.

        Args:
            required: Names of the binaries that must be on PATH.

        Raises:
            BinaryNotFoundError: If any of the binaries is missing.

        """
        self.binaries: dict[str, str] = {name: self.require_binary(name) for name in required}

    @staticmethod
    def require_binary(name: str) -> str:
        """Return the full path of a binary found on PATH.

        Args:
            name: The binary to look up.

        Returns:
            The resolved path.

        Raises:
            BinaryNotFoundError: If the binary is not installed or not on PATH.

        """
        path = shutil.which(name)
        if path is None:
            hint = _INSTALL_HINTS.get(name, "")
            raise BinaryNotFoundError(
                f"Unable to find {name} binary. Please install {name} or ensure it's in your PATH. {hint}".strip()
            )
        ic(name, path)
        return path

    @staticmethod
    @contextmanager
    def workspace() -> Generator[Workspace, None, None]:
        """Create a private temporary directory for key material.

        The directory and everything written into it is removed when the
        context exits, whether the workflow succeeded or not.

        Yields:
            Workspace with the paths of the key and certificate files.

        """
        with tempfile.TemporaryDirectory(prefix="webhook-cert-") as tmpdir:
            root = Path(tmpdir)
            ic(root)
            console.step(f"Creating certificate data in temp directory: {console.highlight(str(root))}")
            yield Workspace(root=root, key_path=root / SECRET_KEY_ENTRY, cert_path=root / SECRET_CERT_ENTRY)

    @staticmethod
    def write_private(path: Path, data: bytes) -> None:
        """Write data to a file readable only by the current user.

        Args:
            path: Destination file.
            data: Bytes to write.

        """
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(data)

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Host(binaries={self.binaries!r})"
