"""
ERC-20 operations over a ContractBinding.

Reads return semantic Python values (str, int, U256, Address).
State-changing operations return ``(tx_hash, TransactionRecord)``; use
``Engine.wait_for_receipt`` to confirm them.

Each operation encodes with the function of the same name in the
interface (``approve`` -> ``approve``, never ``allowance``).
"""

from __future__ import annotations

from typing import Optional

from ..abi.erc20 import erc20_interface
from ..engine import Engine
from ..signer import KeyLike
from ..tx import TransactionRecord
from ..types import Address, AddressLike, U256
from . import ContractBinding


def bind(engine: Engine, token: AddressLike) -> ContractBinding:
    """Bind the bundled ERC-20 interface to a token address."""
    return ContractBinding(engine=engine, address=Address.parse(token), interface=erc20_interface())


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def name(token: ContractBinding) -> str:
    return str(await token.call("name"))


async def symbol(token: ContractBinding) -> str:
    return str(await token.call("symbol"))


async def decimals(token: ContractBinding) -> int:
    return int(await token.call("decimals"))


async def total_supply(token: ContractBinding) -> U256:
    return U256(await token.call("totalSupply"))


async def balance_of(token: ContractBinding, account: AddressLike) -> U256:
    return U256(await token.call("balanceOf", Address.parse(account)))


async def allowance(token: ContractBinding, owner: AddressLike, spender: AddressLike) -> U256:
    return U256(await token.call("allowance", Address.parse(owner), Address.parse(spender)))


async def owner(token: ContractBinding) -> Address:
    return await token.call("owner")


# ---------------------------------------------------------------------------
# State changes
# ---------------------------------------------------------------------------

async def transfer(
    token: ContractBinding,
    to: AddressLike,
    amount: int,
    private_key: KeyLike,
    nonce: Optional[int] = None,
) -> tuple[str, TransactionRecord]:
    return await token.transact(
        "transfer", Address.parse(to), U256(amount), private_key=private_key, nonce=nonce
    )


async def approve(
    token: ContractBinding,
    spender: AddressLike,
    amount: int,
    private_key: KeyLike,
    nonce: Optional[int] = None,
) -> tuple[str, TransactionRecord]:
    return await token.transact(
        "approve", Address.parse(spender), U256(amount), private_key=private_key, nonce=nonce
    )


async def transfer_from(
    token: ContractBinding,
    sender: AddressLike,
    to: AddressLike,
    amount: int,
    private_key: KeyLike,
    nonce: Optional[int] = None,
) -> tuple[str, TransactionRecord]:
    return await token.transact(
        "transferFrom",
        Address.parse(sender),
        Address.parse(to),
        U256(amount),
        private_key=private_key,
        nonce=nonce,
    )


async def increase_allowance(
    token: ContractBinding,
    spender: AddressLike,
    added_value: int,
    private_key: KeyLike,
    nonce: Optional[int] = None,
) -> tuple[str, TransactionRecord]:
    return await token.transact(
        "increaseAllowance", Address.parse(spender), U256(added_value), private_key=private_key, nonce=nonce
    )


async def decrease_allowance(
    token: ContractBinding,
    spender: AddressLike,
    subtracted_value: int,
    private_key: KeyLike,
    nonce: Optional[int] = None,
) -> tuple[str, TransactionRecord]:
    return await token.transact(
        "decreaseAllowance",
        Address.parse(spender),
        U256(subtracted_value),
        private_key=private_key,
        nonce=nonce,
    )
