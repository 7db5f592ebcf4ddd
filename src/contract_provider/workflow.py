"""
Provisioning workflow — one bootstrap/refresh cycle as an ROP pipeline.

Domain layer: all I/O is injected: the endpoint connectors, the storage
factory and the storage port itself. One cycle runs strictly in order:

  connect PKI → connect repository → open storage
    → ensure CA            (has_ca? else PKI.GetCA → store_ca)
      → ensure certificate (has_certificate? else create_csr → PKI.SignCsr → store_certificate)
        → refresh chain    (get_ca → repository.GetCertificates(fingerprint) → store_chain)

The first failure short-circuits the rest. Nothing is rolled back: artifacts
stored before the failure make the next cycle skip the work already done.
No state is kept between cycles; every decision is re-derived from storage.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, TypeVar

import structlog
from railway.result import Result

from contract_provider.certs import create_csr
from contract_provider.domain.models import ProvisioningOutcome
from contract_provider.domain.ports import (
    CertificateStorage,
    ContractRepositoryClient,
    PkiClient,
)

log = structlog.get_logger()

T = TypeVar("T")


class _Closeable(Protocol):
    def close(self) -> None: ...


C = TypeVar("C", bound=_Closeable)


def _using(resource: C, body: Callable[[C], Result[T]]) -> Result[T]:
    """Run `body` with an open client and close it afterwards, whatever the outcome."""
    try:
        return body(resource)
    finally:
        resource.close()


def ensure_ca(pki: PkiClient, storage: CertificateStorage) -> Result[bool]:
    """Fetch and store the CA unless a valid one is stored. True if it was fetched."""
    if storage.has_ca():
        log.debug("provisioning.ca_present")
        return Result.success(False)

    log.info("provisioning.ca_missing", action="fetching CA from PKI")
    return pki.get_ca().flat_map(storage.store_ca).map(lambda _: True)


def ensure_certificate(
    pki: PkiClient,
    storage: CertificateStorage,
    common_name: str,
) -> Result[bool]:
    """Create, sign and store the private identity unless one is stored. True if issued."""
    if storage.has_certificate():
        log.debug("provisioning.certificate_present")
        return Result.success(False)

    log.info("provisioning.certificate_missing", common_name=common_name)
    return (
        create_csr(common_name)
        .flat_map(
            lambda request: pki.sign_csr(request.csr_pem).flat_map(
                lambda certificate: storage.store_certificate(
                    certificate, request.private_key_pem
                )
            )
        )
        .map(lambda _: True)
    )


def refresh_chain(repository: ContractRepositoryClient, storage: CertificateStorage) -> Result[int]:
    """
    Replace the stored chain with the repository's certificates followed by the CA.

    The fingerprint is computed from the CA as currently stored, never from
    a value remembered earlier in the cycle.
    """
    return (
        storage.get_ca()
        .flat_map(
            lambda ca: repository.get_certificates(ca.fingerprint).map(
                lambda certificates: [*certificates, ca.pem]
            )
        )
        .flat_map(storage.store_chain)
        .peek(lambda count: log.info("provisioning.chain_stored", certificates=count))
    )


def provision(
    pki: PkiClient,
    repository: ContractRepositoryClient,
    storage: CertificateStorage,
    common_name: str,
) -> Result[ProvisioningOutcome]:
    """Run the three idempotent steps against already connected collaborators."""
    return ensure_ca(pki, storage).flat_map(
        lambda ca_fetched: ensure_certificate(pki, storage, common_name).flat_map(
            lambda certificate_issued: refresh_chain(repository, storage).map(
                lambda chain_length: ProvisioningOutcome(
                    ca_fetched=ca_fetched,
                    certificate_issued=certificate_issued,
                    chain_length=chain_length,
                )
            )
        )
    )


def run_provisioning(
    connect_pki: Callable[[], Result[PkiClient]],
    connect_repository: Callable[[], Result[ContractRepositoryClient]],
    open_storage: Callable[[], Result[CertificateStorage]],
    common_name: str,
) -> Result[ProvisioningOutcome]:
    """
    Execute one full provisioning cycle.

    Connects both endpoints, opens the configured storage backend and runs
    `provision`. Channels are closed when the cycle ends, on success or failure.

    Returns Result[ProvisioningOutcome] on success,
    or the failure of the first failing stage.
    """
    log.info("provisioning.started")

    def _with_pki(pki: PkiClient) -> Result[ProvisioningOutcome]:
        return connect_repository().flat_map(
            lambda repository: _using(repository, lambda repo: _with_clients(pki, repo))
        )

    def _with_clients(
        pki: PkiClient, repository: ContractRepositoryClient
    ) -> Result[ProvisioningOutcome]:
        return open_storage().flat_map(
            lambda storage: provision(pki, repository, storage, common_name)
        )

    return connect_pki().flat_map(lambda pki: _using(pki, _with_pki))
