"""Tests for EngineConfig defaults and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from evmcall.config import (
    DEFAULT_GAS_PRICE,
    DEFAULT_MAX_POLL_ATTEMPTS,
    ENV_PREFIX,
    EngineConfig,
)
from evmcall.errors import ConfigurationError
from evmcall.rpc import DEFAULT_RPC_URL
from evmcall.tx import DYNAMIC_FEE, LEGACY

SETTINGS = (
    "RPC_URL",
    "TX_TYPE",
    "GAS_PRICE",
    "TIMEOUT",
    "POLL_INTERVAL",
    "POLL_BACKOFF",
    "MAX_POLL_INTERVAL",
    "MAX_POLL_ATTEMPTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in SETTINGS:
        monkeypatch.delenv(ENV_PREFIX + name, raising=False)


class TestEngineConfig:
    def test_defaults(self) -> None:
        config = EngineConfig()
        assert config.rpc_url == DEFAULT_RPC_URL
        assert config.transaction_type == DYNAMIC_FEE
        assert config.gas_price == DEFAULT_GAS_PRICE
        assert config.max_poll_attempts == DEFAULT_MAX_POLL_ATTEMPTS

    def test_from_env_without_overrides(self) -> None:
        assert EngineConfig.from_env() == EngineConfig()

    def test_from_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EVMCALL_RPC_URL", "https://rpc.example.org")
        monkeypatch.setenv("EVMCALL_TX_TYPE", "0")
        monkeypatch.setenv("EVMCALL_GAS_PRICE", "2000000000")
        monkeypatch.setenv("EVMCALL_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("EVMCALL_POLL_BACKOFF", "1")
        monkeypatch.setenv("EVMCALL_MAX_POLL_ATTEMPTS", "none")
        config = EngineConfig.from_env()
        assert config.rpc_url == "https://rpc.example.org"
        assert config.transaction_type == LEGACY
        assert config.gas_price == 2 * 10**9
        assert config.poll_interval == 0.5
        assert config.poll_backoff == 1.0
        assert config.max_poll_attempts is None

    def test_env_file_does_not_override_environment(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("EVMCALL_GAS_PRICE=7\nEVMCALL_TX_TYPE=1\n", encoding="utf-8")
        monkeypatch.setenv("EVMCALL_TX_TYPE", "0")
        # Registered so the value load_dotenv sets is removed afterwards
        monkeypatch.setenv("EVMCALL_GAS_PRICE", "0")
        monkeypatch.delenv("EVMCALL_GAS_PRICE")
        config = EngineConfig.from_env(env_file)
        assert config.gas_price == 7
        assert config.transaction_type == LEGACY

    def test_missing_env_file_is_ignored(self, tmp_path: Path) -> None:
        assert EngineConfig.from_env(tmp_path / "absent.env") == EngineConfig()

    @pytest.mark.parametrize(
        "name,value",
        [
            ("TX_TYPE", "two"),
            ("TX_TYPE", "5"),
            ("GAS_PRICE", "-1"),
            ("GAS_PRICE", "1.5"),
            ("POLL_INTERVAL", "0"),
            ("POLL_BACKOFF", "0.5"),
            ("MAX_POLL_ATTEMPTS", "0"),
            ("TIMEOUT", "soon"),
        ],
    )
    def test_invalid_values(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        monkeypatch.setenv(ENV_PREFIX + name, value)
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env()
