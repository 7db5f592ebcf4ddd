"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the provisioning workflow needs without specifying HOW:

  Workflow ← Ports (protocols) ← Adapters (filesystem, Kubernetes, gRPC)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods, without inheritance.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from railway.result import Result

from contract_provider.domain.models import CaCertificate


@runtime_checkable
class CertificateStorage(Protocol):
    """
    Port: persist the CA, the private identity and the verification chain.

    The `has_*` probes never fail: any backend error or unparsable artifact
    means "absent", which makes the workflow fetch or regenerate it.
    Every other operation reports failures through its Result.
    """

    def has_ca(self) -> bool: ...

    def get_ca(self) -> Result[CaCertificate]:
        """Read the stored CA and compute its fingerprint (NOT_FOUND if absent)."""
        ...

    def store_ca(self, certificate: bytes) -> Result[int]: ...

    def has_certificate(self) -> bool:
        """True only when both certificate and key exist and each parses."""
        ...

    def store_certificate(self, certificate: bytes, key: bytes) -> Result[int]:
        """
        Upsert the signed certificate and its private key.

        Backends deriving the certificate+CA bundle read the CA first and
        propagate NOT_FOUND when it was never stored.
        """
        ...

    def store_chain(self, certificates: Sequence[bytes]) -> Result[int]:
        """Replace the chain with the concatenation of the given certificates, in order."""
        ...


@runtime_checkable
class PkiClient(Protocol):
    """Port: the participant's home PKI (issues the CA, signs CSRs)."""

    def get_ca(self) -> Result[bytes]: ...

    def sign_csr(self, csr_pem: bytes) -> Result[bytes]: ...

    def close(self) -> None: ...


@runtime_checkable
class ContractRepositoryClient(Protocol):
    """Port: the contract repository, queried by CA fingerprint."""

    def get_certificates(self, ca_hash: str) -> Result[list[bytes]]: ...

    def close(self) -> None: ...
