"""
gRPC adapter — PKI and contract-repository clients.

Adapter layer: implements the PkiClient and ContractRepositoryClient ports
using grpcio. Message and stub modules are compiled at import time from the
.proto files shipped in `contract_provider/protos` (grpcio-tools).

Every call:
  - carries the optional API key as `authorization` metadata (interceptor)
  - has a deadline (configured timeout)
  - is retried via tenacity when the server is UNAVAILABLE or the deadline
    is exceeded (3 attempts, exponential backoff)

All gRPC errors are captured into TRANSPORT_ERROR failures; no exceptions
leak to the workflow.
"""

from __future__ import annotations

import collections
from urllib.parse import urlsplit

import grpc
import structlog
from google.protobuf import empty_pb2
from railway import ErrorCode
from railway.result import Result
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger()

pki_pb2, pki_pb2_grpc = grpc.protos_and_services("contract_provider/protos/pki.proto")
contracts_pb2, contracts_pb2_grpc = grpc.protos_and_services(
    "contract_provider/protos/contracts.proto"
)

DEFAULT_TIMEOUT_SECONDS = 30.0

_TRANSIENT_CODES = frozenset({grpc.StatusCode.UNAVAILABLE, grpc.StatusCode.DEADLINE_EXCEEDED})


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, grpc.RpcError) and error.code() in _TRANSIENT_CODES


_transient_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=5),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)


# ─────────────────────── Channel setup ───────────────────────


class _ClientCallDetails(
    collections.namedtuple(
        "_ClientCallDetails",
        ("method", "timeout", "metadata", "credentials", "wait_for_ready", "compression"),
    ),
    grpc.ClientCallDetails,
):
    pass


class ApiKeyInterceptor(grpc.UnaryUnaryClientInterceptor):
    """Attach the API key as `authorization` metadata to every unary call."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    def intercept_unary_unary(self, continuation, client_call_details, request):  # type: ignore[no-untyped-def]
        metadata = list(client_call_details.metadata or [])
        metadata.append(("authorization", self._api_key))
        details = _ClientCallDetails(
            client_call_details.method,
            client_call_details.timeout,
            metadata,
            client_call_details.credentials,
            client_call_details.wait_for_ready,
            client_call_details.compression,
        )
        return continuation(details, request)


def parse_target(address: str) -> tuple[str, bool]:
    """
    Split an endpoint address into (grpc target, use_tls).

    "http://pki:8080" → ("pki:8080", False)
    "https://pki:443" → ("pki:443", True)
    "pki:8080"        → ("pki:8080", False)
    """
    parts = urlsplit(address)
    if parts.scheme in ("http", "https") and parts.netloc:
        return parts.netloc, parts.scheme == "https"
    return address, False


def open_channel(address: str, api_key: str | None, timeout: float) -> grpc.Channel:
    """
    Open a channel, wait until it is ready, and wrap it with the API key interceptor.

    Raises grpc.FutureTimeoutError when the endpoint is not reachable in time.
    """
    target, use_tls = parse_target(address)
    channel = (
        grpc.secure_channel(target, grpc.ssl_channel_credentials())
        if use_tls
        else grpc.insecure_channel(target)
    )
    try:
        grpc.channel_ready_future(channel).result(timeout=timeout)
    except grpc.FutureTimeoutError:
        channel.close()
        raise
    log.debug("grpc.connected", target=target, tls=use_tls, authenticated=api_key is not None)
    if api_key:
        return grpc.intercept_channel(channel, ApiKeyInterceptor(api_key))
    return channel


# ─────────────────────── PKI ───────────────────────


class GrpcPkiClient:
    """
    Talk to the participant's PKI.

    Implements the PkiClient port.
    """

    def __init__(self, channel: grpc.Channel, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._channel = channel
        self._stub = pki_pb2_grpc.PkiServiceStub(channel)
        self._timeout = timeout

    @classmethod
    def connect(
        cls,
        address: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> Result[GrpcPkiClient]:
        return Result.from_computation(
            lambda: cls(open_channel(address, api_key, timeout), timeout),
            ErrorCode.TRANSPORT_ERROR,
            f"Connecting to PKI at {address} failed",
        )

    def get_ca(self) -> Result[bytes]:
        """Fetch the PEM encoded CA certificate."""
        return Result.from_computation(
            self._do_get_ca,
            ErrorCode.TRANSPORT_ERROR,
            "Fetching the CA certificate from the PKI failed",
        )

    def sign_csr(self, csr_pem: bytes) -> Result[bytes]:
        """Send a PEM encoded CSR and return the issued PEM certificate."""
        return Result.from_computation(
            lambda: self._do_sign_csr(csr_pem),
            ErrorCode.TRANSPORT_ERROR,
            "Signing the CSR at the PKI failed",
        )

    def close(self) -> None:
        self._channel.close()

    @_transient_retry
    def _do_get_ca(self) -> bytes:
        response = self._stub.GetCA(empty_pb2.Empty(), timeout=self._timeout)
        certificate: bytes = response.certificate
        log.info("pki.ca_fetched", size_bytes=len(certificate))
        return certificate

    @_transient_retry
    def _do_sign_csr(self, csr_pem: bytes) -> bytes:
        response = self._stub.SignCsr(pki_pb2.SignCsrRequest(csr=csr_pem), timeout=self._timeout)
        certificate: bytes = response.certificate
        log.info("pki.csr_signed", size_bytes=len(certificate))
        return certificate


# ─────────────────────── Contract repository ───────────────────────


class GrpcContractRepositoryClient:
    """
    Fetch public certificates of contract partners.

    Implements the ContractRepositoryClient port.
    """

    def __init__(self, channel: grpc.Channel, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._channel = channel
        self._stub = contracts_pb2_grpc.ContractsServiceStub(channel)
        self._timeout = timeout

    @classmethod
    def connect(
        cls,
        address: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> Result[GrpcContractRepositoryClient]:
        return Result.from_computation(
            lambda: cls(open_channel(address, api_key, timeout), timeout),
            ErrorCode.TRANSPORT_ERROR,
            f"Connecting to contract repository at {address} failed",
        )

    def get_certificates(self, ca_hash: str) -> Result[list[bytes]]:
        """Certificates relevant to the participant identified by its CA fingerprint."""
        return Result.from_computation(
            lambda: self._do_get_certificates(ca_hash),
            ErrorCode.TRANSPORT_ERROR,
            "Fetching certificates from the contract repository failed",
        )

    def close(self) -> None:
        self._channel.close()

    @_transient_retry
    def _do_get_certificates(self, ca_hash: str) -> list[bytes]:
        request = contracts_pb2.GetCertificatesRequest(hash=ca_hash)
        response = self._stub.GetCertificates(request, timeout=self._timeout)
        certificates = list(response.certificates)
        log.info("repository.certificates_fetched", count=len(certificates), ca_hash=ca_hash)
        return certificates
