"""
Certificate utilities — CSR generation and certificate fingerprints.

Uses cryptography (PyCA) for RSA key generation, PKCS#10 construction and
X.509 parsing. Stateless; failures surface as CRYPTO_ERROR Results.
"""

from __future__ import annotations

import structlog
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from railway import ErrorCode
from railway.result import Result

from contract_provider.domain.models import SigningRequest

log = structlog.get_logger()

ORGANIZATION_NAME = "WirePact PKI"
KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


def create_csr(common_name: str) -> Result[SigningRequest]:
    """
    Generate a fresh RSA key and a SHA-256 signed CSR for `common_name`.

    The subject carries CN=<common_name> and O=WirePact PKI. The key is
    returned as unencrypted PKCS#8 PEM, the request as PEM.
    """
    return Result.from_computation(
        lambda: _build_signing_request(common_name),
        ErrorCode.CRYPTO_ERROR,
        f"Creating a CSR for {common_name!r} failed",
    )


def _build_signing_request(common_name: str) -> SigningRequest:
    key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=KEY_SIZE)
    subject = x509.Name(
        [
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, ORGANIZATION_NAME),
        ]
    )
    csr = x509.CertificateSigningRequestBuilder().subject_name(subject).sign(key, hashes.SHA256())
    log.debug("certs.csr_created", common_name=common_name)
    return SigningRequest(
        csr_pem=csr.public_bytes(serialization.Encoding.PEM),
        private_key_pem=key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ),
    )


def certificate_hash(pem: bytes) -> Result[str]:
    """
    SHA-256 fingerprint of a PEM certificate, lowercase hex.

    The digest is taken over the DER encoding, so re-encoding the same
    certificate as PEM with different line breaks yields the same hash.
    """
    return Result.from_computation(
        lambda: x509.load_pem_x509_certificate(pem).fingerprint(hashes.SHA256()).hex(),
        ErrorCode.CRYPTO_ERROR,
        "Computing the certificate fingerprint failed",
    )


def is_certificate(pem: bytes) -> bool:
    """True if `pem` parses as an X.509 certificate."""
    try:
        x509.load_pem_x509_certificate(pem)
    except ValueError:
        return False
    return True


def is_private_key(pem: bytes) -> bool:
    """True if `pem` parses as an unencrypted private key."""
    try:
        serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        return False
    return True
