"""
Application entry point — wires dependencies and runs the provisioning cycle.

Composition root: binds the concrete adapters (gRPC clients, storage backend)
to the workflow and hands the result to the scheduler.

This is the ONLY place where concrete classes are selected.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Load and validate configuration from environment
  2. Configure structlog for structured logging
  3. Bind connectors and the storage factory to the workflow
  4. Run once (no interval) or start the interval scheduler
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from functools import partial

import structlog
from railway.result import Result

from contract_provider import __version__
from contract_provider.adapters.grpc_clients import (
    GrpcContractRepositoryClient,
    GrpcPkiClient,
)
from contract_provider.adapters.kubernetes_storage import KubernetesSecretStorage
from contract_provider.adapters.local_storage import FilesystemCertificateStorage
from contract_provider.config import AppSettings, StorageAdapter
from contract_provider.domain.models import ProvisioningOutcome
from contract_provider.domain.ports import CertificateStorage
from contract_provider.scheduler import create_scheduler, run_once
from contract_provider.workflow import run_provisioning


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured, human-readable console logging.

    The stdlib root logger is configured at the same level so that
    framework messages (railway execution timing) appear as well.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout, force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def storage_factory(settings: AppSettings) -> Callable[[], Result[CertificateStorage]]:
    """Select the storage backend once; the returned factory opens it per cycle."""
    if settings.storage is StorageAdapter.KUBERNETES:
        return partial(KubernetesSecretStorage.open, settings.secret_name)
    return partial(FilesystemCertificateStorage.open, settings.data_dir)


def build_provisioning(settings: AppSettings) -> Callable[[], Result[ProvisioningOutcome]]:
    """Bind all adapters to the workflow, yielding a zero-argument cycle function."""
    return partial(
        run_provisioning,
        connect_pki=partial(
            GrpcPkiClient.connect,
            settings.pki.address,
            settings.pki.api_key_value(),
            settings.grpc_timeout_seconds,
        ),
        connect_repository=partial(
            GrpcContractRepositoryClient.connect,
            settings.repo.address,
            settings.repo.api_key_value(),
            settings.grpc_timeout_seconds,
        ),
        open_storage=storage_factory(settings),
        common_name=settings.common_name,
    )


def main() -> None:
    """Wire dependencies and run the provisioning cycle once or on an interval."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error - {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.effective_log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        storage=settings.storage.value,
        pki=settings.pki.address,
        repository=settings.repo.address,
        common_name=settings.common_name,
    )

    provision_fn = build_provisioning(settings)

    if settings.fetch_interval is None:
        log.info("app.run_once", repository=settings.repo.address)
        result = run_once(provision_fn)
        if result.is_failure():
            print(f"ERROR: {result.error().describe()}", file=sys.stderr)  # noqa: T201
            sys.exit(1)
        return

    scheduler = create_scheduler(provision_fn, settings.fetch_interval)
    log.info(
        "app.scheduler_starting",
        repository=settings.repo.address,
        interval_seconds=settings.fetch_interval.total_seconds(),
    )

    try:
        scheduler.start()
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="signal received")
    except SystemExit:
        log.info("app.shutdown", reason="signal received")
        raise
    except Exception as e:
        log.error("app.fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
