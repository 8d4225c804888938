"""
ERC-20 interface description (with the Ownable extension).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from .registry import ContractInterface, load_interface


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[str],
    mutability: str,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
    }


ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "name_", "type": "string"},
            {"name": "symbol_", "type": "string"},
        ],
        "stateMutability": "nonpayable",
    },
    {
        "type": "event",
        "name": "Approval",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": True, "name": "spender", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
    },
    {
        "type": "event",
        "name": "OwnershipTransferred",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "previousOwner", "type": "address"},
            {"indexed": True, "name": "newOwner", "type": "address"},
        ],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
    },
    _fn("allowance", [("owner", "address"), ("spender", "address")], ["uint256"], "view"),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _fn("balanceOf", [("account", "address")], ["uint256"], "view"),
    _fn("decimals", [], ["uint8"], "view"),
    _fn(
        "decreaseAllowance",
        [("spender", "address"), ("subtractedValue", "uint256")],
        ["bool"],
        "nonpayable",
    ),
    _fn("getOwner", [], ["address"], "view"),
    _fn(
        "increaseAllowance",
        [("spender", "address"), ("addedValue", "uint256")],
        ["bool"],
        "nonpayable",
    ),
    _fn("msgSender", [], ["address"], "view"),
    _fn("name", [], ["string"], "view"),
    _fn("owner", [], ["address"], "view"),
    _fn("renounceOwnership", [], [], "nonpayable"),
    _fn("symbol", [], ["string"], "view"),
    _fn("totalSupply", [], ["uint256"], "view"),
    _fn("transfer", [("recipient", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _fn(
        "transferFrom",
        [("sender", "address"), ("recipient", "address"), ("amount", "uint256")],
        ["bool"],
        "nonpayable",
    ),
    _fn("transferOwnership", [("newOwner", "address")], [], "nonpayable"),
]


@lru_cache(maxsize=1)
def erc20_interface() -> ContractInterface:
    """Load the bundled ERC-20 interface (cached)."""
    return load_interface(ERC20_ABI, name="ERC20")
