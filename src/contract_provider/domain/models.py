"""
Domain models — immutable value objects exchanged between the workflow,
the certificate utilities and the storage backends.

Artifacts themselves live in the storage backend; these objects only carry
byte buffers in and out of a single call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ArtifactKey(StrEnum):
    """Logical names of the persisted artifacts."""

    CA = "ca"
    CERT = "cert"
    KEY = "key"
    CHAIN = "chain"
    CERT_WITH_CA = "cert_with_ca"


@dataclass(frozen=True, slots=True)
class CaCertificate:
    """
    The stored CA certificate together with its SHA-256 fingerprint.

    The fingerprint is the participant identifier sent to the contract
    repository; it is recomputed from the stored bytes on every read.
    """

    pem: bytes = field(repr=False)
    fingerprint: str


@dataclass(frozen=True, slots=True)
class SigningRequest:
    """A freshly generated PKCS#10 request and the private key it was signed with."""

    csr_pem: bytes = field(repr=False)
    private_key_pem: bytes = field(repr=False)


@dataclass(frozen=True, slots=True)
class ProvisioningOutcome:
    """Summary of one provisioning cycle."""

    ca_fetched: bool
    certificate_issued: bool
    chain_length: int
