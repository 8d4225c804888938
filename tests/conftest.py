"""
Shared fixtures: an in-memory JSON-RPC node behind httpx.MockTransport.

No network access is needed for any test in this suite.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx
import pytest

from evmcall.engine import Engine
from evmcall.rpc import RpcClient
from evmcall.utils import hex_to_bytes, keccak256, to_hex

# Well-known development account #0 (Hardhat / Anvil)
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SENDER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
RECIPIENT = "0x7eb8f3364b5f2bde169b198d2db41903f575522a"
TOKEN = "0x2f5c897956c9a512ffdec3846fcb8c9e7b7989a3"
RPC_URL = "http://fake-node.test"


@dataclass
class FakeNode:
    """Scriptable JSON-RPC node.

    ``nonce`` is the pending transaction count; every accepted raw
    transaction increments it, like a real mempool would.
    """

    nonce: int = 5
    gas: int = 21000
    chain_id: int = 1337
    balance: int = 10**18
    call_result: bytes | Callable[[dict[str, Any]], bytes] = b""
    receipts: list[Optional[dict[str, Any]]] = field(default_factory=list)
    errors: dict[str, dict[str, Any]] = field(default_factory=dict)
    fail_transport: set[str] = field(default_factory=set)
    requests: list[dict[str, Any]] = field(default_factory=list)
    raw_transactions: list[bytes] = field(default_factory=list)

    def methods(self) -> list[str]:
        return [r["method"] for r in self.requests]

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [r for r in self.requests if r["method"] == method]

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        method = payload["method"]
        if method in self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)
        if method in self.errors:
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": payload["id"], "error": self.errors[method]}
            )
        result = self._result(method, payload["params"])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    def _result(self, method: str, params: list[Any]) -> Any:
        if method == "eth_chainId":
            return hex(self.chain_id)
        if method == "eth_estimateGas":
            return hex(self.gas)
        if method == "eth_getTransactionCount":
            return hex(self.nonce)
        if method == "eth_getBalance":
            return hex(self.balance)
        if method == "eth_gasPrice":
            return hex(5 * 10**9)
        if method == "eth_call":
            result = self.call_result
            if callable(result):
                result = result(params[0])
            return to_hex(result)
        if method == "eth_sendRawTransaction":
            raw = hex_to_bytes(params[0])
            self.raw_transactions.append(raw)
            self.nonce += 1
            return to_hex(keccak256(raw))
        if method == "eth_getTransactionReceipt":
            if not self.receipts:
                return None
            return self.receipts.pop(0)
        raise AssertionError(f"unexpected RPC method {method}")


def make_receipt(tx_hash: str = "0x" + "ab" * 32, status: int = 1, block: int = 7) -> dict[str, Any]:
    return {
        "transactionHash": tx_hash,
        "blockNumber": hex(block),
        "blockHash": "0x" + "cd" * 32,
        "status": hex(status),
        "gasUsed": hex(21000),
        "effectiveGasPrice": hex(5 * 10**9),
        "contractAddress": None,
        "logs": [],
    }


def make_engine(node: FakeNode, **options: Any) -> Engine:
    rpc = RpcClient(RPC_URL, transport=httpx.MockTransport(node.handle))
    return Engine(rpc, **options)


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def engine(node: FakeNode) -> Engine:
    return make_engine(node)
