"""
Engine configuration.

Defaults match a local development node. Every field can be overridden
from the environment or a .env file:

    EVMCALL_RPC_URL            RPC endpoint
    EVMCALL_TX_TYPE            0 (legacy), 1 (access list) or 2 (dynamic fee)
    EVMCALL_GAS_PRICE          fixed gas price in wei
    EVMCALL_TIMEOUT            per-request HTTP timeout in seconds
    EVMCALL_POLL_INTERVAL      first receipt-poll interval in seconds
    EVMCALL_POLL_BACKOFF       interval growth factor per poll
    EVMCALL_MAX_POLL_INTERVAL  interval ceiling in seconds
    EVMCALL_MAX_POLL_ATTEMPTS  poll limit ("none" for unbounded)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from .errors import ConfigurationError
from .rpc import DEFAULT_RPC_URL, DEFAULT_TIMEOUT
from .tx import DYNAMIC_FEE, TRANSACTION_TYPES

DEFAULT_GAS_PRICE = 5 * 10**9  # 5 gwei
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_BACKOFF = 1.5
DEFAULT_MAX_POLL_INTERVAL = 10.0
DEFAULT_MAX_POLL_ATTEMPTS = 120

ENV_PREFIX = "EVMCALL_"

T = TypeVar("T")


@dataclass(frozen=True)
class EngineConfig:
    rpc_url: str = DEFAULT_RPC_URL
    transaction_type: int = DYNAMIC_FEE
    gas_price: int = DEFAULT_GAS_PRICE
    request_timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_backoff: float = DEFAULT_POLL_BACKOFF
    max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL
    max_poll_attempts: Optional[int] = DEFAULT_MAX_POLL_ATTEMPTS

    def __post_init__(self) -> None:
        if self.transaction_type not in TRANSACTION_TYPES:
            raise ConfigurationError(
                f"transaction_type must be one of {TRANSACTION_TYPES}, got {self.transaction_type}"
            )
        if self.gas_price < 0:
            raise ConfigurationError("gas_price must be non-negative")
        if self.poll_interval <= 0 or self.max_poll_interval <= 0:
            raise ConfigurationError("poll intervals must be positive")
        if self.poll_backoff < 1:
            raise ConfigurationError("poll_backoff must be >= 1")
        if self.max_poll_attempts is not None and self.max_poll_attempts < 1:
            raise ConfigurationError("max_poll_attempts must be >= 1 or None")

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "EngineConfig":
        """
        Build a config from environment variables.

        Args:
            env_path: Optional .env file loaded first (existing variables win)

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        if env_path is not None and env_path.exists():
            load_dotenv(env_path, override=False)

        defaults = cls()
        return cls(
            rpc_url=_env("RPC_URL", str, defaults.rpc_url),
            transaction_type=_env("TX_TYPE", int, defaults.transaction_type),
            gas_price=_env("GAS_PRICE", int, defaults.gas_price),
            request_timeout=_env("TIMEOUT", float, defaults.request_timeout),
            poll_interval=_env("POLL_INTERVAL", float, defaults.poll_interval),
            poll_backoff=_env("POLL_BACKOFF", float, defaults.poll_backoff),
            max_poll_interval=_env("MAX_POLL_INTERVAL", float, defaults.max_poll_interval),
            max_poll_attempts=_env("MAX_POLL_ATTEMPTS", _optional_int, defaults.max_poll_attempts),
        )


def _optional_int(value: str) -> Optional[int]:
    if value.strip().lower() in ("", "none", "unbounded"):
        return None
    return int(value)


def _env(name: str, convert: Callable[[str], T], default: T) -> T:
    key = ENV_PREFIX + name
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return convert(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for {key}: {raw!r}") from exc
