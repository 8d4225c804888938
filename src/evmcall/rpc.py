"""
JSON-RPC Client for EVM nodes.

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for
revert-reason decoding. Covers exactly the node operations the engine
needs: eth_call, eth_estimateGas, eth_getTransactionCount, eth_chainId,
eth_sendRawTransaction, eth_getTransactionReceipt (plus eth_getBalance
and eth_gasPrice).
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError

from .errors import ExecutionRevertedError, NetworkError, RpcResponseError
from .utils import hex_to_bytes, parse_quantity, to_hex

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_TIMEOUT = 30.0

# Error(string) and Panic(uint256) selectors
_ERROR_SELECTOR = bytes.fromhex("08c379a0")
_PANIC_SELECTOR = bytes.fromhex("4e487b71")

# Geth / Anvil report reverts with code 3; Hardhat and others only in the message.
_REVERT_CODE = 3


def decode_revert_reason(data: Optional[str]) -> Optional[str]:
    """Decode ``Error(string)`` / ``Panic(uint256)`` revert data, if present."""
    if not data or not isinstance(data, str):
        return None
    try:
        raw = hex_to_bytes(data)
    except ValueError:
        return None
    try:
        if raw[:4] == _ERROR_SELECTOR:
            return decode(["string"], raw[4:])[0]
        if raw[:4] == _PANIC_SELECTOR:
            return f"Panic(0x{decode(['uint256'], raw[4:])[0]:02x})"
    except DecodingError:
        return None
    return None


def _is_revert(error: dict[str, Any]) -> bool:
    if error.get("code") == _REVERT_CODE:
        return True
    message = str(error.get("message", "")).lower()
    return "revert" in message


def _error_data(error: dict[str, Any]) -> Optional[str]:
    data = error.get("data")
    # Some nodes nest the revert payload: {"data": {"data": "0x..."}}
    if isinstance(data, dict):
        data = data.get("data") or data.get("result")
    return data if isinstance(data, str) else None


class RpcClient:
    """Async JSON-RPC 2.0 client (HTTP POST).

    The client holds no transaction state and may be shared by any number
    of engines and concurrent callers.
    """

    def __init__(
        self,
        rpc_url: str = DEFAULT_RPC_URL,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        url = (rpc_url or "").strip()
        if not url:
            raise ValueError("rpc_url must be a non-empty string.")
        self.rpc_url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            NetworkError: On transport failure or a malformed response
            ExecutionRevertedError: If the node reports a revert
            RpcResponseError: For any other JSON-RPC error object
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": request_id,
        }
        logger.debug("rpc -> %s id=%d", method, request_id)

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise NetworkError(
                f"{method} failed: {exc}", method=method, url=self.rpc_url
            ) from exc
        except ValueError as exc:
            raise NetworkError(
                f"{method} returned a non-JSON response", method=method, url=self.rpc_url
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(f"Unexpected JSON-RPC response for {method}", method=method, response=data)

        error = data.get("error")
        if error is not None:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            message = str(error.get("message") or "unknown error")
            if _is_revert(error):
                revert_data = _error_data(error)
                raise ExecutionRevertedError(
                    f"{method} reverted: {message}",
                    reason=decode_revert_reason(revert_data),
                    data=revert_data,
                    method=method,
                )
            raise RpcResponseError(
                f"RPC error from {method}: {message}",
                code=error.get("code"),
                data=error.get("data"),
                method=method,
            )

        if "result" not in data:
            raise NetworkError(f"JSON-RPC response for {method} has no result", method=method, response=data)

        logger.debug("rpc <- %s id=%d", method, request_id)
        return data["result"]

    # ------------------------------------------------------------------
    # Typed wrappers
    # ------------------------------------------------------------------

    async def call(self, call_object: dict[str, Any], block: str = "latest") -> bytes:
        result = await self.request("eth_call", [call_object, block])
        return hex_to_bytes(result or "0x")

    async def estimate_gas(self, call_object: dict[str, Any]) -> int:
        return parse_quantity(await self.request("eth_estimateGas", [call_object]))

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return parse_quantity(await self.request("eth_getTransactionCount", [address, block]))

    async def chain_id(self) -> int:
        return parse_quantity(await self.request("eth_chainId", []))

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        return await self.request("eth_sendRawTransaction", [to_hex(raw_tx)])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def get_balance(self, address: str, block: str = "latest") -> int:
        return parse_quantity(await self.request("eth_getBalance", [address, block]))

    async def gas_price(self) -> int:
        return parse_quantity(await self.request("eth_gasPrice", []))
