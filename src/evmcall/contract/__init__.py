"""
Contract bindings.

A ``ContractBinding`` ties a shared ``Engine``, one deployed contract
address and its ``ContractInterface`` together, so operations can be
invoked by function name without repeating the target address. Per-family
operations (e.g. ``evmcall.contract.erc20``) are free functions over a
binding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..abi.registry import ContractInterface, load_interface
from ..engine import Engine
from ..signer import KeyLike
from ..tx import TransactionRecord
from ..types import Address, AddressLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractBinding:
    engine: Engine
    address: Address
    interface: ContractInterface

    @classmethod
    def at(cls, engine: Engine, address: AddressLike, description: Any) -> "ContractBinding":
        """Bind to ``address``; ``description`` is a ContractInterface or any ABI form."""
        interface = (
            description
            if isinstance(description, ContractInterface)
            else load_interface(description)
        )
        return cls(engine=engine, address=Address.parse(address), interface=interface)

    def encode(self, function_name: str, *args: Any) -> bytes:
        return self.interface.encode(function_name, args)

    async def call_data(self, payload: bytes) -> bytes:
        return await self.engine.call(self.address, payload)

    async def send_data(
        self,
        payload: bytes,
        private_key: KeyLike,
        nonce: Optional[int] = None,
        value: Optional[int] = None,
    ) -> tuple[str, TransactionRecord]:
        return await self.engine.send_data(self.address, payload, private_key, nonce=nonce, value=value)

    async def call(self, function_name: str, *args: Any) -> Any:
        """
        Read contract state: encode, eth_call, decode.

        Returns:
            The single decoded value, or a tuple when the function has
            several outputs (None when it has none)
        """
        payload = self.encode(function_name, *args)
        data = await self.call_data(payload)
        decoded = self.interface.decode(function_name, data)
        if not decoded:
            return None
        if len(decoded) == 1:
            return decoded[0]
        return decoded

    async def transact(
        self,
        function_name: str,
        *args: Any,
        private_key: KeyLike,
        nonce: Optional[int] = None,
        value: Optional[int] = None,
    ) -> tuple[str, TransactionRecord]:
        """Encode a state-changing call and submit it signed by ``private_key``."""
        func = self.interface.function(function_name)
        if func.read_only:
            logger.warning("Sending a transaction to read-only function %s", func.signature)
        payload = self.encode(function_name, *args)
        return await self.send_data(payload, private_key, nonce=nonce, value=value)


__all__ = ["ContractBinding"]
