"""
Unit tests for configuration loading.

Settings are built from monkeypatched environment variables with the
.env file disabled, so the host environment cannot leak into assertions.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from contract_provider.config import AppSettings, StorageAdapter, parse_duration

_ALL_VARS = (
    "STORAGE",
    "SECRET_NAME",
    "COMMON_NAME",
    "DATA_DIR",
    "PKI__ADDRESS",
    "PKI__API_KEY",
    "REPO__ADDRESS",
    "REPO__API_KEY",
    "FETCH_INTERVAL",
    "GRPC_TIMEOUT_SECONDS",
    "DEBUG",
    "LOG_LEVEL",
)


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """A clean environment with only the two mandatory endpoint addresses set."""
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PKI__ADDRESS", "http://pki:8080")
    monkeypatch.setenv("REPO__ADDRESS", "http://repo:8080")
    return monkeypatch


def _load() -> AppSettings:
    return AppSettings(_env_file=None)  # type: ignore[call-arg]


# ─────────────────────── parse_duration ───────────────────────


class TestParseDuration:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("30s", timedelta(seconds=30)),
            ("5min", timedelta(minutes=5)),
            ("5m", timedelta(minutes=5)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("2 days", timedelta(days=2)),
            ("250ms", timedelta(milliseconds=250)),
            ("90", timedelta(seconds=90)),
            (" 10S ", timedelta(seconds=10)),
        ],
    )
    def test_accepts_human_durations(self, text: str, expected: timedelta) -> None:
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "soon", "5 fortnights", "PT5M", "5s later"])
    def test_returns_none_for_unrecognised_text(self, text: str) -> None:
        assert parse_duration(text) is None


# ─────────────────────── AppSettings ───────────────────────


class TestAppSettings:
    def test_defaults(self, env: pytest.MonkeyPatch) -> None:
        settings = _load()

        assert settings.storage is StorageAdapter.LOCAL
        assert settings.secret_name == "wirepact-contracts"
        assert settings.common_name == "wirepact-contract-provider"
        assert settings.data_dir == Path("./data")
        assert settings.fetch_interval is None
        assert settings.grpc_timeout_seconds == 30.0
        assert settings.pki.api_key is None

    def test_nested_endpoint_variables(self, env: pytest.MonkeyPatch) -> None:
        """
        GIVEN PKI__API_KEY and REPO__API_KEY in the environment
        WHEN settings load
        THEN each endpoint carries its own key, hidden from repr.
        """
        env.setenv("PKI__API_KEY", "pki-key")
        env.setenv("REPO__API_KEY", "repo-key")

        settings = _load()

        assert settings.pki.address == "http://pki:8080"
        assert settings.pki.api_key_value() == "pki-key"
        assert settings.repo.api_key_value() == "repo-key"
        assert "pki-key" not in repr(settings)

    def test_missing_endpoint_is_rejected(self, env: pytest.MonkeyPatch) -> None:
        env.delenv("REPO__ADDRESS")

        with pytest.raises(ValidationError):
            _load()

    def test_kubernetes_storage(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("STORAGE", "kubernetes")
        env.setenv("SECRET_NAME", "my-secret")

        settings = _load()

        assert settings.storage is StorageAdapter.KUBERNETES
        assert settings.secret_name == "my-secret"

    def test_unknown_storage_is_rejected(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("STORAGE", "s3")

        with pytest.raises(ValidationError):
            _load()

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("5min", timedelta(minutes=5)),
            ("1h", timedelta(hours=1)),
            ("PT10M", timedelta(minutes=10)),
            ("45", timedelta(seconds=45)),
        ],
    )
    def test_fetch_interval_formats(
        self, env: pytest.MonkeyPatch, raw: str, expected: timedelta
    ) -> None:
        env.setenv("FETCH_INTERVAL", raw)

        assert _load().fetch_interval == expected

    def test_empty_fetch_interval_means_run_once(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("FETCH_INTERVAL", "")

        assert _load().fetch_interval is None

    @pytest.mark.parametrize("raw", ["0", "0s", "-5s", "whenever"])
    def test_invalid_fetch_interval_is_rejected(self, env: pytest.MonkeyPatch, raw: str) -> None:
        env.setenv("FETCH_INTERVAL", raw)

        with pytest.raises(ValidationError):
            _load()

    def test_non_positive_grpc_timeout_is_rejected(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("GRPC_TIMEOUT_SECONDS", "0")

        with pytest.raises(ValidationError):
            _load()

    def test_debug_forces_debug_log_level(self, env: pytest.MonkeyPatch) -> None:
        env.setenv("LOG_LEVEL", "WARNING")
        assert _load().effective_log_level == "WARNING"

        env.setenv("DEBUG", "true")
        assert _load().effective_log_level == "DEBUG"

    def test_settings_are_frozen(self, env: pytest.MonkeyPatch) -> None:
        settings = _load()

        with pytest.raises(ValidationError):
            settings.common_name = "other"  # type: ignore[misc]
