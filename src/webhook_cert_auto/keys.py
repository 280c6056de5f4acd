"""Key and certificate request generation.

This module produces the RSA private key and the PKCS#10 certificate
request submitted to the cluster, and decodes the certificate the cluster
signs in return.
"""

import base64
import binascii

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from icecream import ic

from webhook_cert_auto import console
from webhook_cert_auto.exceptions import CertificateDecodeError
from webhook_cert_auto.models import KUBELET_SERVING_SIGNER, CertificateInfo, KeyMaterial, WebhookIdentity

DEFAULT_KEY_SIZE = 2048
_PUBLIC_EXPONENT = 65537


def _subject(identity: WebhookIdentity, signer_name: str | None) -> x509.Name:
    """Build the request subject the signer will accept.

    The kubelet-serving signer only issues for the system:nodes group with a
    system:node: common name.
    """
    if signer_name == KUBELET_SERVING_SIGNER:
        return x509.Name(
            [
                x509.NameAttribute(NameOID.ORGANIZATION_NAME, "system:nodes"),
                x509.NameAttribute(NameOID.COMMON_NAME, f"system:node:{identity.common_name}"),
            ]
        )
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, identity.common_name)])


def _server_key_usage() -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=True,
        content_commitment=True,
        key_encipherment=True,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=False,
        crl_sign=False,
        encipher_only=False,
        decipher_only=False,
    )


def generate_key_material(
    identity: WebhookIdentity, key_size: int = DEFAULT_KEY_SIZE, *, signer_name: str | None = None
) -> KeyMaterial:
    """Generate a private key and a certificate request for the webhook service.

    The request carries the service's in-cluster DNS names as subject
    alternative names and is restricted to server authentication.

    Args:
        identity: The webhook identity to issue the request for.
        key_size: RSA modulus size in bits.
        signer_name: The signer the request is meant for; shapes the subject.

    Returns:
        KeyMaterial with the PEM encoded key and request.

    """
    console.step(f"Generating {key_size}-bit RSA key and certificate request")

    private_key = rsa.generate_private_key(public_exponent=_PUBLIC_EXPONENT, key_size=key_size)

    csr = (
        x509.CertificateSigningRequestBuilder()
        .subject_name(_subject(identity, signer_name))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=False)
        .add_extension(_server_key_usage(), critical=False)
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in identity.dns_names]),
            critical=False,
        )
        .sign(private_key, hashes.SHA256())
    )
    ic(identity.common_name, identity.dns_names)

    return KeyMaterial(
        private_key_pem=private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        ),
        csr_pem=csr.public_bytes(serialization.Encoding.PEM),
    )


def _dns_names(extensions: x509.Extensions) -> list[str]:
    try:
        san = extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return []
    return san.value.get_values_for_type(x509.DNSName)


def csr_dns_names(csr_pem: bytes) -> list[str]:
    """Return the subject alternative DNS names of a PEM certificate request."""
    return _dns_names(x509.load_pem_x509_csr(csr_pem).extensions)


def decode_certificate(encoded: str) -> bytes:
    """Decode the certificate published on the signing request status.

    Args:
        encoded: Base64 encoded PEM certificate, as found in ``status.certificate``.

    Returns:
        The PEM certificate bytes.

    Raises:
        CertificateDecodeError: If the value is not base64 or not a PEM certificate.

    """
    try:
        pem = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as err:
        raise CertificateDecodeError(f"Signed certificate is not valid base64: {err}") from err

    try:
        x509.load_pem_x509_certificate(pem)
    except ValueError as err:
        raise CertificateDecodeError(f"Signed certificate is not a valid PEM certificate: {err}") from err

    return pem


def describe_certificate(cert_pem: bytes) -> CertificateInfo:
    """Summarize a PEM certificate for display.

    Args:
        cert_pem: The PEM encoded certificate.

    Returns:
        CertificateInfo with subject, issuer, DNS names and expiry.

    """
    cert = x509.load_pem_x509_certificate(cert_pem)
    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        dns_names=_dns_names(cert.extensions),
        not_after=cert.not_valid_after_utc.isoformat(),
    )
