"""
Kubernetes storage adapter — artifacts as entries of one named secret.

Adapter layer: implements the CertificateStorage port with the official
`kubernetes` client. All artifacts live in a single secret:

  data.ca            the PKI's CA certificate
  data.cert          the signed client certificate
  data.key           the client's private key (PKCS#8)
  data.chain         concatenated certificates used to verify other participants
  data.cert_with_ca  cert ‖ ca, a convenience bundle for consumers

Namespace discovery (once, at construction), first hit wins:
  1. namespace of the current context in the local kubeconfig (if non-empty)
  2. POD_NAMESPACE environment variable (downward API)
  3. the service-account namespace file (downward API, if non-empty)
  4. "default"

Mutation is read-modify-write. The replace request carries the
resourceVersion that was read, so a concurrent writer makes the API server
answer 409 and the cycle fails with CONFLICT_ERROR instead of silently
overwriting the other update.
"""

from __future__ import annotations

import base64
import os
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeAlias

import structlog
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from railway import ErrorCode, ResultFailures
from railway.result import Result

from contract_provider.certs import certificate_hash, is_certificate, is_private_key
from contract_provider.domain.models import ArtifactKey, CaCertificate

log = structlog.get_logger()

DEFAULT_NAMESPACE = "default"
DOWNWARD_API_ENV = "POD_NAMESPACE"
DOWNWARD_API_FILE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")

_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409

_DataMutator: TypeAlias = Callable[[dict[str, str]], None]


# ─────────────────────── Namespace discovery ───────────────────────


def _kubeconfig_namespace(kube_config_file: str | None) -> str | None:
    """Namespace of the current kubeconfig context, or None if unavailable."""
    try:
        _, current = config.list_kube_config_contexts(config_file=kube_config_file)
    except (ConfigException, OSError, ValueError) as e:
        log.debug("kubernetes_storage.no_kubeconfig", reason=str(e))
        return None
    namespace = (current or {}).get("context", {}).get("namespace")
    return namespace or None


def resolve_namespace(
    kube_config_file: str | None = None,
    environ: Mapping[str, str] = os.environ,
    namespace_file: Path = DOWNWARD_API_FILE,
) -> str:
    """Resolve the namespace holding the secret (see module docstring for precedence)."""
    namespace = _kubeconfig_namespace(kube_config_file)
    if namespace:
        log.debug("kubernetes_storage.namespace", source="kubeconfig", namespace=namespace)
        return namespace

    namespace = environ.get(DOWNWARD_API_ENV)
    if namespace:
        log.debug("kubernetes_storage.namespace", source="env", namespace=namespace)
        return namespace

    if namespace_file.is_file():
        namespace = namespace_file.read_text(encoding="utf-8").strip()
        if namespace:
            log.debug("kubernetes_storage.namespace", source="file", namespace=namespace)
            return namespace

    log.debug("kubernetes_storage.namespace", source="default", namespace=DEFAULT_NAMESPACE)
    return DEFAULT_NAMESPACE


def _load_client_configuration() -> None:
    """Local kubeconfig first, in-cluster service account second."""
    try:
        config.load_kube_config()
    except ConfigException:
        config.load_incluster_config()


# ─────────────────────── Encoding helpers ───────────────────────


def _encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _decode(data: str) -> bytes:
    return base64.b64decode(data)


# ─────────────────────── Adapter ───────────────────────


class KubernetesSecretStorage:
    """
    Persist artifacts as entries of one Kubernetes secret.

    Implements the CertificateStorage port.
    The secret is re-read on every call; nothing is cached between calls.
    """

    def __init__(self, api: Any, namespace: str, secret_name: str) -> None:
        self._api = api
        self._namespace = namespace
        self._secret_name = secret_name

    @classmethod
    def open(cls, secret_name: str) -> Result[KubernetesSecretStorage]:
        """Configure the API client, resolve the namespace and return the adapter."""
        return Result.from_computation(
            lambda: cls._create(secret_name),
            ErrorCode.STORAGE_ERROR,
            "Configuring the Kubernetes client failed",
        )

    @classmethod
    def _create(cls, secret_name: str) -> KubernetesSecretStorage:
        _load_client_configuration()
        namespace = resolve_namespace()
        log.info("kubernetes_storage.ready", namespace=namespace, secret=secret_name)
        return cls(client.CoreV1Api(), namespace, secret_name)

    @property
    def location(self) -> str:
        return f"secret {self._namespace}/{self._secret_name}"

    # ─────────────────────── CA ───────────────────────

    def has_ca(self) -> bool:
        return (
            self._read_data()
            .map(lambda data: _has_valid(data, ArtifactKey.CA, is_certificate))
            .get_or_else(False)
        )

    def get_ca(self) -> Result[CaCertificate]:
        return self._read_entry(ArtifactKey.CA, "CA certificate").flat_map(
            lambda pem: certificate_hash(pem).map(
                lambda fingerprint: CaCertificate(pem=pem, fingerprint=fingerprint)
            )
        )

    def store_ca(self, certificate: bytes) -> Result[int]:
        def _set_ca(data: dict[str, str]) -> None:
            data[ArtifactKey.CA] = _encode(certificate)

        return self._modify_secret(_set_ca).map(lambda _: len(certificate))

    # ─────────────────────── Private identity ───────────────────────

    def has_certificate(self) -> bool:
        return (
            self._read_data()
            .map(
                lambda data: _has_valid(data, ArtifactKey.CERT, is_certificate)
                and _has_valid(data, ArtifactKey.KEY, is_private_key)
            )
            .get_or_else(False)
        )

    def store_certificate(self, certificate: bytes, key: bytes) -> Result[int]:
        def _set_identity(ca: CaCertificate) -> _DataMutator:
            def _mutate(data: dict[str, str]) -> None:
                data[ArtifactKey.CERT] = _encode(certificate)
                data[ArtifactKey.KEY] = _encode(key)
                data[ArtifactKey.CERT_WITH_CA] = _encode(certificate + ca.pem)

            return _mutate

        return (
            self.get_ca()
            .flat_map(lambda ca: self._modify_secret(_set_identity(ca)))
            .map(lambda _: len(certificate) + len(key))
        )

    # ─────────────────────── Chain ───────────────────────

    def store_chain(self, certificates: Sequence[bytes]) -> Result[int]:
        chain = b"".join(certificates)

        def _set_chain(data: dict[str, str]) -> None:
            data[ArtifactKey.CHAIN] = _encode(chain)

        return self._modify_secret(_set_chain).map(lambda _: len(certificates))

    # ─────────────────────── Secret access ───────────────────────

    def _read_secret(self) -> Any:
        """Return the secret, or None when it does not exist yet."""
        try:
            return self._api.read_namespaced_secret(self._secret_name, self._namespace)
        except ApiException as e:
            if e.status == _HTTP_NOT_FOUND:
                return None
            raise

    def _read_data(self) -> Result[dict[str, str]]:
        return Result.from_computation(
            lambda: dict(getattr(self._read_secret(), "data", None) or {}),
            ErrorCode.STORAGE_ERROR,
            f"Reading {self.location} failed",
        )

    def _read_entry(self, key: ArtifactKey, artifact: str) -> Result[bytes]:
        return (
            self._read_data()
            .flat_map(
                lambda data: Result.from_optional(
                    data.get(key), f"{artifact} not found in {self.location}"
                )
            )
            .flat_map(
                lambda encoded: Result.from_computation(
                    lambda: _decode(encoded),
                    ErrorCode.STORAGE_ERROR,
                    f"Decoding {key} from {self.location} failed",
                )
            )
        )

    def _modify_secret(self, mutate: _DataMutator) -> Result[Any]:
        """Fetch-or-create the secret, apply `mutate` to its data, submit it."""
        try:
            return Result.success(self._apply(mutate))
        except ApiException as e:
            if e.status == _HTTP_CONFLICT:
                return ResultFailures.conflict_error(
                    f"{self.location} was modified concurrently", e
                )
            return ResultFailures.storage_error(f"Updating {self.location} failed", e)
        except Exception as e:
            return ResultFailures.storage_error(f"Updating {self.location} failed", e)

    def _apply(self, mutate: _DataMutator) -> Any:
        secret = self._read_secret()
        if secret is None:
            data: dict[str, str] = {}
            mutate(data)
            body = client.V1Secret(
                metadata=client.V1ObjectMeta(name=self._secret_name),
                data=data,
            )
            log.info("kubernetes_storage.secret_created", secret=self.location)
            return self._api.create_namespaced_secret(self._namespace, body)

        data = dict(secret.data or {})
        mutate(data)
        secret.data = data
        log.debug("kubernetes_storage.secret_replaced", secret=self.location, keys=sorted(data))
        return self._api.replace_namespaced_secret(self._secret_name, self._namespace, secret)


def _has_valid(data: Mapping[str, str], key: ArtifactKey, is_valid: Callable[[bytes], bool]) -> bool:
    if key not in data:
        return False
    try:
        return is_valid(_decode(data[key]))
    except ValueError:
        return False
