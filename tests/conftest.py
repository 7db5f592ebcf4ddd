"""
Shared test fixtures for the contract-provider test suite.

Generates real RSA keys and self-signed X.509 certificates with cryptography,
so storage backends and the workflow are exercised with parseable PEM data.
Key generation is slow, so material is created once per session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


@dataclass(frozen=True)
class PemMaterial:
    """A certificate and the key it was issued for, both PEM encoded."""

    certificate: bytes
    key: bytes


def make_self_signed(common_name: str) -> PemMaterial:
    """Create a self-signed certificate for `common_name`."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return PemMaterial(
        certificate=certificate.public_bytes(serialization.Encoding.PEM),
        key=key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ),
    )


@pytest.fixture(scope="session")
def ca_material() -> PemMaterial:
    """The PKI's CA certificate."""
    return make_self_signed("Test PKI CA")


@pytest.fixture(scope="session")
def client_material() -> PemMaterial:
    """A client certificate and its private key."""
    return make_self_signed("svc-a")


@pytest.fixture(scope="session")
def partner_certificates() -> list[bytes]:
    """Two certificates the contract repository returns for contract partners."""
    return [
        make_self_signed("partner-x").certificate,
        make_self_signed("partner-y").certificate,
    ]


@pytest.fixture(scope="session")
def ca_pem(ca_material: PemMaterial) -> bytes:
    return ca_material.certificate
