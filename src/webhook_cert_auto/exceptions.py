"""Custom exceptions for webhook-cert-auto.

This module defines the exception hierarchy used throughout the application
to provide meaningful error messages and proper error handling.
"""


class WebhookCertError(Exception):
    """Base exception for all webhook-cert-auto errors.

    All custom exceptions in this package inherit from this class,
    allowing the CLI to report any provisioning failure with a single
    except clause.
    """

    pass


class ClusterConnectionError(WebhookCertError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """

    pass


class BinaryNotFoundError(WebhookCertError):
    """Raised when a required binary (kubectl) is not found on PATH."""

    pass


class SigningRequestError(WebhookCertError):
    """Raised when the CertificateSigningRequest workflow fails.

    This can occur when:
    - The API server rejects the request or the approval
    - The request is denied or marked as failed by the signer
    """

    pass


class SigningRequestTimeoutError(SigningRequestError):
    """Raised when a bounded wait on the signing request runs out of attempts."""

    pass


class CertificateDecodeError(WebhookCertError):
    """Raised when the issued certificate is not valid base64-encoded PEM."""

    pass


class SecretApplyError(WebhookCertError):
    """Raised when rendering or applying the webhook secret fails.

    This can occur when:
    - kubectl exits with a non-zero status
    - The rendered manifest is not a Secret carrying the key and certificate
    """

    pass
