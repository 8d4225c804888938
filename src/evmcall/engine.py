"""
Network engine - build, sign, send and confirm transactions.

The engine owns the RPC connection and the fee policy (transaction type +
fixed gas price). It keeps no per-transaction state, so one instance can
be shared by many contract bindings and concurrent callers. Nonce
coordination between concurrent senders is the caller's job: two
assemblies for the same sender racing each other may read the same nonce.

Lifecycle of one transaction:

    assemble_transaction -> sign_and_submit -> (optional) wait_for_receipt
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from .config import (
    DEFAULT_GAS_PRICE,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_MAX_POLL_INTERVAL,
    DEFAULT_POLL_BACKOFF,
    DEFAULT_POLL_INTERVAL,
    EngineConfig,
)
from .errors import (
    ExecutionRevertedError,
    GasEstimationFailedError,
    ReceiptTimeoutError,
    RpcResponseError,
    SigningError,
)
from .rpc import RpcClient
from .signer import KeyLike, as_signing_key, address_of
from .tx import (
    ACCESS_LIST,
    DYNAMIC_FEE,
    LEGACY,
    TRANSACTION_TYPES,
    AccessListEntry,
    Receipt,
    TransactionRecord,
    TransactionRequest,
)
from .types import Address, AddressLike, U256, to_u256
from .utils import quantity, to_hex

logger = logging.getLogger(__name__)

# Marks "use the engine setting" where None already means "no limit"
_ENGINE_DEFAULT: Any = object()


class Engine:
    def __init__(
        self,
        rpc: RpcClient | str,
        transaction_type: int = DYNAMIC_FEE,
        gas_price: int = DEFAULT_GAS_PRICE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_backoff: float = DEFAULT_POLL_BACKOFF,
        max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL,
        max_poll_attempts: Optional[int] = DEFAULT_MAX_POLL_ATTEMPTS,
    ) -> None:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Unsupported transaction type: {transaction_type}")
        self._rpc = RpcClient(rpc) if isinstance(rpc, str) else rpc
        self.transaction_type = transaction_type
        self.gas_price = U256(gas_price)
        self.poll_interval = poll_interval
        self.poll_backoff = poll_backoff
        self.max_poll_interval = max_poll_interval
        self.max_poll_attempts = max_poll_attempts

    @classmethod
    def from_transaction_type(cls, rpc: RpcClient | str, transaction_type: int) -> "Engine":
        return cls(rpc, transaction_type=transaction_type)

    @classmethod
    def from_config(cls, config: EngineConfig, **rpc_options: Any) -> "Engine":
        """Build an engine; extra keyword arguments go to ``RpcClient``."""
        rpc = RpcClient(config.rpc_url, timeout=config.request_timeout, **rpc_options)
        return cls(
            rpc,
            transaction_type=config.transaction_type,
            gas_price=config.gas_price,
            poll_interval=config.poll_interval,
            poll_backoff=config.poll_backoff,
            max_poll_interval=config.max_poll_interval,
            max_poll_attempts=config.max_poll_attempts,
        )

    @property
    def rpc(self) -> RpcClient:
        return self._rpc

    async def aclose(self) -> None:
        await self._rpc.aclose()

    async def __aenter__(self) -> "Engine":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def address_of(private_key: KeyLike) -> Address:
        return address_of(private_key)

    async def get_balance(self, address: AddressLike) -> U256:
        return U256(await self._rpc.get_balance(Address.parse(address).checksum))

    async def call(self, contract: AddressLike, payload: bytes) -> bytes:
        """
        Run a read-only call against a contract (eth_call).

        Raises:
            NetworkError: On transport failure
            ExecutionRevertedError: If the call reverts
        """
        call_object = {"to": Address.parse(contract).checksum, "data": to_hex(payload)}
        return await self._rpc.call(call_object)

    # ------------------------------------------------------------------
    # Transaction assembly
    # ------------------------------------------------------------------

    def _fee_fields(self) -> dict[str, Any]:
        if self.transaction_type == DYNAMIC_FEE:
            # Fixed-price policy: tip and cap are both the configured price
            return {
                "max_fee_per_gas": int(self.gas_price),
                "max_priority_fee_per_gas": int(self.gas_price),
            }
        return {"gas_price": int(self.gas_price)}

    async def assemble_transaction(
        self,
        sender: AddressLike,
        to: AddressLike,
        value: Optional[int] = None,
        data: Optional[bytes] = None,
        nonce: Optional[int] = None,
        access_list: Optional[Sequence[AccessListEntry]] = None,
    ) -> TransactionRequest:
        """
        Resolve gas, chain id and nonce into a complete transaction.

        Args:
            sender: Account that will sign
            to: Recipient or contract address
            value: Wei to transfer (default: 0)
            data: Call payload (default: empty)
            nonce: Explicit nonce; fetched from the pending count when omitted
            access_list: EIP-2930 access list (types 1 and 2)

        Raises:
            GasEstimationFailedError: If the node rejects the simulated call
            NetworkError: On transport failure
        """
        sender = Address.parse(sender)
        to = Address.parse(to)
        value = to_u256(value or 0)
        data = bytes(data or b"")
        fees = self._fee_fields()
        entries = tuple(access_list) if access_list is not None else None

        estimate_object: dict[str, Any] = {
            "from": sender.checksum,
            "to": to.checksum,
            "value": quantity(value),
            "data": to_hex(data),
        }
        if self.transaction_type == DYNAMIC_FEE:
            estimate_object["maxFeePerGas"] = quantity(fees["max_fee_per_gas"])
            estimate_object["maxPriorityFeePerGas"] = quantity(fees["max_priority_fee_per_gas"])
        else:
            estimate_object["gasPrice"] = quantity(fees["gas_price"])
        if entries and self.transaction_type != LEGACY:
            estimate_object["accessList"] = [e.to_dict() for e in entries]

        try:
            gas = await self._rpc.estimate_gas(estimate_object)
        except (ExecutionRevertedError, RpcResponseError) as exc:
            raise GasEstimationFailedError(
                f"Gas estimation failed for call to {to.checksum}: {exc}",
                sender=sender.checksum,
                to=to.checksum,
                reason=getattr(exc, "reason", None),
            ) from exc

        chain_id = await self._rpc.chain_id()

        if nonce is None:
            nonce = await self._rpc.get_transaction_count(sender.checksum, "pending")

        return TransactionRequest(
            sender=sender,
            to=to,
            value=value,
            data=data,
            gas=gas,
            nonce=nonce,
            chain_id=chain_id,
            transaction_type=self.transaction_type,
            access_list=entries if self.transaction_type in (ACCESS_LIST, DYNAMIC_FEE) else None,
            **fees,
        )

    # ------------------------------------------------------------------
    # Signing and submission
    # ------------------------------------------------------------------

    async def sign_and_submit(
        self,
        request: TransactionRequest,
        private_key: KeyLike,
    ) -> tuple[str, TransactionRecord]:
        """
        Sign a request and broadcast it (eth_sendRawTransaction).

        Not idempotent: a retry after an ambiguous failure may double-submit
        unless the same nonce is reused.

        The key is consumed: a raw key is wrapped in a handle the engine
        wipes, and a ``SigningKey`` handle is released after signing.

        Returns:
            Tuple of (transaction hash, signed record)

        Raises:
            InvalidPrivateKeyError: If the key cannot be parsed (no network call)
            SigningError: If the key does not own ``request.sender`` or signing fails
            NetworkError: If submission fails
        """
        with as_signing_key(private_key) as key:
            if key.address != request.sender:
                raise SigningError(
                    f"Key for {key.address.checksum} cannot sign for {request.sender.checksum}",
                    sender=request.sender.checksum,
                )
            signed, message_hash = key.sign_transaction(request.to_signable())

        record = TransactionRecord.from_request(request).with_signature(
            tx_hash=bytes(signed.hash),
            message_hash=message_hash,
            v=signed.v,
            r=signed.r,
            s=signed.s,
        )
        tx_hash = await self._rpc.send_raw_transaction(bytes(signed.raw_transaction))
        logger.info(
            "Submitted tx %s from %s nonce=%d chain=%d",
            tx_hash,
            request.sender.checksum,
            request.nonce,
            request.chain_id,
        )
        return tx_hash, record

    async def send_transaction(
        self,
        to: AddressLike,
        private_key: KeyLike,
        value: Optional[int] = None,
        data: Optional[bytes] = None,
        nonce: Optional[int] = None,
    ) -> tuple[str, TransactionRecord]:
        """Assemble, sign and submit in one step."""
        with as_signing_key(private_key) as key:
            request = await self.assemble_transaction(key.address, to, value=value, data=data, nonce=nonce)
            return await self.sign_and_submit(request, key)

    async def send_value(
        self,
        to: AddressLike,
        value: int,
        private_key: KeyLike,
        nonce: Optional[int] = None,
    ) -> tuple[str, TransactionRecord]:
        return await self.send_transaction(to, private_key, value=value, nonce=nonce)

    async def send_data(
        self,
        to: AddressLike,
        data: bytes,
        private_key: KeyLike,
        nonce: Optional[int] = None,
        value: Optional[int] = None,
    ) -> tuple[str, TransactionRecord]:
        return await self.send_transaction(to, private_key, value=value, data=data, nonce=nonce)

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    async def wait_for_receipt(
        self,
        tx_hash: str,
        poll_interval: Optional[float] = None,
        backoff: Optional[float] = None,
        max_interval: Optional[float] = None,
        max_attempts: Optional[int] = _ENGINE_DEFAULT,
        timeout: Optional[float] = None,
    ) -> Receipt:
        """
        Poll for a transaction receipt.

        The interval starts at ``poll_interval`` and grows by ``backoff``
        up to ``max_interval``. "Receipt not yet available" is not an
        error; transport errors propagate and the caller may re-poll the
        same hash.

        Args:
            tx_hash: Transaction hash
            poll_interval: First interval in seconds
            backoff: Interval growth factor (1.0 for a constant interval)
            max_interval: Interval ceiling in seconds
            max_attempts: Poll limit; ``None`` for no limit
            timeout: Overall deadline in seconds; ``None`` for no deadline

        Raises:
            ReceiptTimeoutError: If the limit or deadline is reached first
        """
        delay = self.poll_interval if poll_interval is None else poll_interval
        backoff = self.poll_backoff if backoff is None else backoff
        max_interval = self.max_poll_interval if max_interval is None else max_interval
        if max_attempts is _ENGINE_DEFAULT:
            max_attempts = self.max_poll_attempts

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        attempts = 0

        while True:
            attempts += 1
            payload = await self._rpc.get_transaction_receipt(tx_hash)
            if payload is not None:
                receipt = Receipt.from_rpc(payload)
                if receipt.succeeded:
                    logger.info("Tx %s confirmed in block %s", tx_hash, receipt.block_number)
                else:
                    logger.warning("Tx %s mined in block %s with status %s", tx_hash, receipt.block_number, receipt.status)
                return receipt

            if max_attempts is not None and attempts >= max_attempts:
                raise ReceiptTimeoutError(
                    f"No receipt for {tx_hash} after {attempts} polls",
                    tx_hash=tx_hash,
                    attempts=attempts,
                )
            wait = delay
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise ReceiptTimeoutError(
                        f"No receipt for {tx_hash} within {timeout}s",
                        tx_hash=tx_hash,
                        attempts=attempts,
                    )
                # Last sleep is cut short so one more poll lands on the deadline
                wait = min(delay, remaining)

            await asyncio.sleep(wait)
            delay = min(delay * backoff, max_interval)
