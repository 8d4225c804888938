"""
Transaction data structures.

- TransactionRequest: engine-internal, fully resolved parameters of one
  transaction (created fresh per submission, never reused).
- TransactionRecord: the caller-facing snapshot of a request plus, once
  signed, its hashes and signature triple. Serializable as canonical JSON.
- Receipt: the node's confirmation that a transaction was mined.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import rfc8785

from .schemas import load_json, validate_record, write_json
from .types import Address, U256
from .utils import hex_to_bytes, parse_quantity, quantity, to_hex

LEGACY = 0
ACCESS_LIST = 1
DYNAMIC_FEE = 2
TRANSACTION_TYPES = (LEGACY, ACCESS_LIST, DYNAMIC_FEE)


@dataclass(frozen=True)
class AccessListEntry:
    address: Address
    storage_keys: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address.checksum, "storageKeys": list(self.storage_keys)}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AccessListEntry":
        return cls(
            address=Address.parse(payload["address"]),
            storage_keys=tuple(payload.get("storageKeys", ())),
        )


@dataclass(frozen=True)
class TransactionRequest:
    sender: Address
    to: Address
    value: U256
    data: bytes
    gas: int
    nonce: int
    chain_id: int
    transaction_type: int = DYNAMIC_FEE
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    access_list: Optional[tuple[AccessListEntry, ...]] = None

    def __post_init__(self) -> None:
        if self.transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Unsupported transaction type: {self.transaction_type}")
        if self.transaction_type == DYNAMIC_FEE:
            if self.max_fee_per_gas is None or self.max_priority_fee_per_gas is None:
                raise ValueError("Type 2 transactions need max_fee_per_gas and max_priority_fee_per_gas")
        elif self.gas_price is None:
            raise ValueError(f"Type {self.transaction_type} transactions need gas_price")

    def to_signable(self) -> dict[str, Any]:
        """Build the eth-account transaction dict for signing."""
        tx: dict[str, Any] = {
            "to": self.to.checksum,
            "value": int(self.value),
            "data": to_hex(self.data),
            "gas": self.gas,
            "nonce": self.nonce,
            "chainId": self.chain_id,
        }
        access_list = [e.to_dict() for e in self.access_list or ()]
        if self.transaction_type == DYNAMIC_FEE:
            tx["type"] = DYNAMIC_FEE
            tx["maxFeePerGas"] = self.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas
            tx["accessList"] = access_list
        elif self.transaction_type == ACCESS_LIST:
            tx["type"] = ACCESS_LIST
            tx["gasPrice"] = self.gas_price
            tx["accessList"] = access_list
        else:
            tx["gasPrice"] = self.gas_price
        return tx


@dataclass(frozen=True)
class TransactionRecord:
    sender: Optional[Address]
    to: Optional[Address]
    value: U256
    data: bytes
    gas: int
    nonce: Optional[int]
    chain_id: Optional[int]
    transaction_type: Optional[int]
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    access_list: Optional[tuple[AccessListEntry, ...]] = None

    hash: Optional[str] = None
    message_hash: Optional[str] = None
    v: Optional[int] = None
    r: Optional[str] = None
    s: Optional[str] = None

    @classmethod
    def from_request(cls, request: TransactionRequest) -> "TransactionRecord":
        return cls(
            sender=request.sender,
            to=request.to,
            value=request.value,
            data=request.data,
            gas=request.gas,
            nonce=request.nonce,
            chain_id=request.chain_id,
            transaction_type=request.transaction_type,
            gas_price=request.gas_price,
            max_fee_per_gas=request.max_fee_per_gas,
            max_priority_fee_per_gas=request.max_priority_fee_per_gas,
            access_list=request.access_list,
        )

    @property
    def signed(self) -> bool:
        return self.hash is not None

    def with_signature(self, tx_hash: bytes, message_hash: bytes, v: int, r: int, s: int) -> "TransactionRecord":
        return dataclasses.replace(
            self,
            hash=to_hex(tx_hash),
            message_hash=to_hex(message_hash),
            v=v,
            r=to_hex(r.to_bytes(32, "big")),
            s=to_hex(s.to_bytes(32, "big")),
        )

    def to_dict(self) -> dict[str, Any]:
        def q(value: Optional[int]) -> Optional[str]:
            return None if value is None else quantity(value)

        payload: dict[str, Any] = {
            "from": self.sender.checksum if self.sender else None,
            "to": self.to.checksum if self.to else None,
            "value": quantity(self.value),
            "data": to_hex(self.data),
            "gas": quantity(self.gas),
            "gas_price": q(self.gas_price),
            "max_fee_per_gas": q(self.max_fee_per_gas),
            "max_priority_fee_per_gas": q(self.max_priority_fee_per_gas),
            "nonce": q(self.nonce),
            "chain_id": self.chain_id,
            "transaction_type": self.transaction_type,
            "access_list": (
                None if self.access_list is None else [e.to_dict() for e in self.access_list]
            ),
        }
        if self.signed:
            payload.update(
                hash=self.hash,
                message_hash=self.message_hash,
                v=self.v,
                r=self.r,
                s=self.s,
            )
        return payload

    def to_json(self) -> str:
        """RFC 8785 canonical JSON."""
        return rfc8785.dumps(self.to_dict()).decode("utf-8")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "TransactionRecord":
        validate_record(payload)

        def q(key: str) -> Optional[int]:
            value = payload.get(key)
            return None if value is None else parse_quantity(value)

        access_list = payload.get("access_list")
        return cls(
            sender=Address.parse(payload["from"]) if payload.get("from") else None,
            to=Address.parse(payload["to"]) if payload.get("to") else None,
            value=U256(parse_quantity(payload["value"])),
            data=hex_to_bytes(payload["data"]),
            gas=parse_quantity(payload["gas"]),
            nonce=q("nonce"),
            chain_id=payload.get("chain_id"),
            transaction_type=payload.get("transaction_type"),
            gas_price=q("gas_price"),
            max_fee_per_gas=q("max_fee_per_gas"),
            max_priority_fee_per_gas=q("max_priority_fee_per_gas"),
            access_list=(
                None if access_list is None
                else tuple(AccessListEntry.from_dict(e) for e in access_list)
            ),
            hash=payload.get("hash"),
            message_hash=payload.get("message_hash"),
            v=payload.get("v"),
            r=payload.get("r"),
            s=payload.get("s"),
        )

    @classmethod
    def from_path(cls, path: Path) -> "TransactionRecord":
        return cls.from_dict(load_json(path))

    def write(self, path: Path) -> None:
        write_json(path, self.to_dict())


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    block_number: Optional[int]
    block_hash: Optional[str]
    status: Optional[int]
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None
    contract_address: Optional[Address] = None
    raw: dict[str, Any] = dataclasses.field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "Receipt":
        def q(key: str) -> Optional[int]:
            value = payload.get(key)
            return None if value is None else parse_quantity(value)

        contract = payload.get("contractAddress")
        return cls(
            transaction_hash=payload.get("transactionHash", ""),
            block_number=q("blockNumber"),
            block_hash=payload.get("blockHash"),
            # Pre-Byzantium receipts carry a state root instead of a status
            status=q("status"),
            gas_used=q("gasUsed"),
            effective_gas_price=q("effectiveGasPrice"),
            contract_address=Address.parse(contract) if contract else None,
            raw=dict(payload),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == 1
