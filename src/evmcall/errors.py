"""
Error kinds raised by evmcall.

Every error carries a ``context`` dict (contract, function, RPC method,
node response ...) so a failure can be diagnosed from the exception alone,
and an ``exit_code`` used by the command-line surface.

Secret material (private keys) is never placed in a message or context.
"""

from __future__ import annotations

from typing import Any


class EvmCallError(RuntimeError):
    exit_code: int = 1

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context = {k: v for k, v in context.items() if v is not None}


class ConfigurationError(EvmCallError):
    exit_code = 2


class InvalidAddressError(EvmCallError):
    exit_code = 2


class QuantityOverflowError(EvmCallError):
    exit_code = 2


# ---------------------------------------------------------------------------
# Contract interface
# ---------------------------------------------------------------------------

class InterfaceError(EvmCallError):
    exit_code = 3


class MalformedInterfaceError(InterfaceError):
    pass


class UnknownFunctionError(InterfaceError):
    pass


class ArgumentTypeMismatchError(InterfaceError):
    pass


class DecodeLengthMismatchError(InterfaceError):
    pass


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

class InvalidPrivateKeyError(EvmCallError):
    exit_code = 4


class SigningError(EvmCallError):
    exit_code = 4


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

class NetworkError(EvmCallError):
    exit_code = 5


class RpcResponseError(NetworkError):
    """The node answered, but with a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        data: Any = None,
        **context: Any,
    ) -> None:
        super().__init__(message, code=code, data=data, **context)
        self.code = code
        self.data = data


class GasEstimationFailedError(EvmCallError):
    exit_code = 6


class ExecutionRevertedError(EvmCallError):
    exit_code = 6

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        data: str | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message, reason=reason, data=data, **context)
        self.reason = reason
        self.data = data


class ReceiptTimeoutError(EvmCallError):
    exit_code = 7


__all__ = [
    "ArgumentTypeMismatchError",
    "ConfigurationError",
    "DecodeLengthMismatchError",
    "EvmCallError",
    "ExecutionRevertedError",
    "GasEstimationFailedError",
    "InterfaceError",
    "InvalidAddressError",
    "InvalidPrivateKeyError",
    "MalformedInterfaceError",
    "NetworkError",
    "QuantityOverflowError",
    "ReceiptTimeoutError",
    "RpcResponseError",
    "SigningError",
    "UnknownFunctionError",
]
