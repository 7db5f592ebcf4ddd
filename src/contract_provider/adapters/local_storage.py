"""
Filesystem storage adapter — artifacts as files in one local directory.

Adapter layer: implements the CertificateStorage port with plain files:

  ca     → <data_dir>/ca.crt
  cert   → <data_dir>/cert.crt
  key    → <data_dir>/cert.key
  chain  → <data_dir>/chain.crt

Writes are whole-file overwrites without atomic rename or locking; a single
writer process is assumed. A file left half-written by a crash does not
parse, so the next cycle's `has_*` probe treats it as absent and refetches.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog
from railway import ErrorCode, ResultFailures
from railway.result import Result

from contract_provider.certs import certificate_hash, is_certificate, is_private_key
from contract_provider.domain.models import ArtifactKey, CaCertificate

log = structlog.get_logger()

DEFAULT_DATA_DIR = Path("./data")

_FILE_NAMES: dict[ArtifactKey, str] = {
    ArtifactKey.CA: "ca.crt",
    ArtifactKey.CERT: "cert.crt",
    ArtifactKey.KEY: "cert.key",
    ArtifactKey.CHAIN: "chain.crt",
}


class FilesystemCertificateStorage:
    """
    Persist artifacts below a base directory.

    Implements the CertificateStorage port.
    """

    def __init__(self, data_dir: Path = DEFAULT_DATA_DIR) -> None:
        self._data_dir = data_dir

    @classmethod
    def open(cls, data_dir: Path = DEFAULT_DATA_DIR) -> Result[FilesystemCertificateStorage]:
        """Ensure the base directory exists and return the adapter."""
        return Result.from_computation(
            lambda: cls._create(data_dir),
            ErrorCode.STORAGE_ERROR,
            f"Creating local data directory {data_dir} failed",
        )

    @classmethod
    def _create(cls, data_dir: Path) -> FilesystemCertificateStorage:
        log.debug("local_storage.ensure_directory", path=str(data_dir))
        data_dir.mkdir(parents=True, exist_ok=True)
        return cls(data_dir)

    def path_for(self, key: ArtifactKey) -> Path:
        return self._data_dir / _FILE_NAMES[key]

    # ─────────────────────── CA ───────────────────────

    def has_ca(self) -> bool:
        return self._read(ArtifactKey.CA).map(is_certificate).get_or_else(False)

    def get_ca(self) -> Result[CaCertificate]:
        path = self.path_for(ArtifactKey.CA)
        if not path.is_file():
            return ResultFailures.not_found("CA certificate", str(path))
        return self._read(ArtifactKey.CA).flat_map(
            lambda pem: certificate_hash(pem).map(
                lambda fingerprint: CaCertificate(pem=pem, fingerprint=fingerprint)
            )
        )

    def store_ca(self, certificate: bytes) -> Result[int]:
        return self._write(ArtifactKey.CA, certificate)

    # ─────────────────────── Private identity ───────────────────────

    def has_certificate(self) -> bool:
        cert_ok = self._read(ArtifactKey.CERT).map(is_certificate).get_or_else(False)
        key_ok = self._read(ArtifactKey.KEY).map(is_private_key).get_or_else(False)
        return cert_ok and key_ok

    def store_certificate(self, certificate: bytes, key: bytes) -> Result[int]:
        return self._write(ArtifactKey.CERT, certificate).flat_map(
            lambda cert_bytes: self._write(ArtifactKey.KEY, key).map(
                lambda key_bytes: cert_bytes + key_bytes
            )
        )

    # ─────────────────────── Chain ───────────────────────

    def store_chain(self, certificates: Sequence[bytes]) -> Result[int]:
        return self._write(ArtifactKey.CHAIN, b"".join(certificates)).map(
            lambda _: len(certificates)
        )

    # ─────────────────────── File access ───────────────────────

    def _read(self, key: ArtifactKey) -> Result[bytes]:
        path = self.path_for(key)
        return Result.from_computation(
            path.read_bytes,
            ErrorCode.STORAGE_ERROR,
            f"Reading {path} failed",
        )

    def _write(self, key: ArtifactKey, data: bytes) -> Result[int]:
        path = self.path_for(key)
        return Result.from_computation(
            lambda: path.write_bytes(data),
            ErrorCode.STORAGE_ERROR,
            f"Writing {path} failed",
        ).peek(lambda size: log.debug("local_storage.written", path=str(path), size_bytes=size))
