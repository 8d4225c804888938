"""
ECDSA / secp256k1 signing credentials.

A ``SigningKey`` is a scoped handle around a private key: the 32 secret
bytes live in a ``bytearray`` that is zeroed as soon as the handle has
signed one transaction, when its ``with`` block exits, or when ``wipe()``
is called. A released handle refuses to sign again.

Dependencies: eth-account (key parsing, address derivation, signing)
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv
from eth_account import Account
from eth_account._utils.legacy_transactions import serializable_unsigned_transaction_from_dict
from eth_account.datastructures import SignedTransaction

from .errors import InvalidPrivateKeyError, SigningError
from .types import Address
from .utils import hex_to_bytes

# secp256k1 group order
_CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _parse_secret(private_key: Union[str, bytes, bytearray]) -> bytearray:
    if isinstance(private_key, str):
        text = private_key.strip()
        digits = text[2:] if text.startswith("0x") else text
        if len(digits) != 64:
            raise InvalidPrivateKeyError("Private key must be 32 bytes (64 hex characters).")
        try:
            secret = bytearray(hex_to_bytes(digits))
        except ValueError:
            raise InvalidPrivateKeyError("Private key is not valid hex.") from None
    elif isinstance(private_key, (bytes, bytearray)):
        if len(private_key) != 32:
            raise InvalidPrivateKeyError("Private key must be 32 bytes.")
        secret = bytearray(private_key)
    else:
        raise InvalidPrivateKeyError(f"Unsupported private key type: {type(private_key).__name__}")

    if not 0 < int.from_bytes(secret, "big") < _CURVE_ORDER:
        secret[:] = b"\x00" * len(secret)
        raise InvalidPrivateKeyError("Private key is outside the secp256k1 range.")
    return secret


class SigningKey:
    """Single-use signing credential."""

    __slots__ = ("_secret", "_address", "_released")

    def __init__(self, private_key: Union[str, bytes, bytearray]) -> None:
        """
        Args:
            private_key: 0x-prefixed (or bare) hex string, or 32 raw bytes.

        Raises:
            InvalidPrivateKeyError: If the key cannot be parsed. The key
                itself never appears in the message.
        """
        self._secret = _parse_secret(private_key)
        self._released = False
        try:
            self._address = Address.from_hex(Account.from_key(bytes(self._secret)).address)
        except Exception as exc:
            self.wipe()
            raise InvalidPrivateKeyError("Private key was rejected by the signer.") from exc

    @classmethod
    def generate(cls) -> "SigningKey":
        return cls(secrets.token_bytes(32))

    @classmethod
    def from_env(cls, var: str = "PRIVATE_KEY", env_path: Optional[Path] = None) -> "SigningKey":
        """
        Load a key from the environment (optionally after reading a .env file).

        Raises:
            InvalidPrivateKeyError: If the variable is unset or malformed
        """
        if env_path is not None and env_path.exists():
            load_dotenv(env_path, override=True)
        value = os.environ.get(var)
        if not value:
            raise InvalidPrivateKeyError(f"{var} not set in the environment or .env file.")
        return cls(value)

    @property
    def address(self) -> Address:
        return self._address

    @property
    def released(self) -> bool:
        return self._released

    def sign_transaction(self, transaction: dict[str, Any]) -> tuple[SignedTransaction, bytes]:
        """
        Sign one transaction, then release the credential.

        Args:
            transaction: eth-account transaction dict (checksummed ``to``)

        Returns:
            Tuple of (signed transaction, 32-byte signing message hash)

        Raises:
            SigningError: If the handle was already used or signing fails
        """
        if self._released:
            raise SigningError("Signing key has already been used or released.")
        try:
            message_hash = bytes(serializable_unsigned_transaction_from_dict(transaction).hash())
            signed = Account.sign_transaction(transaction, bytes(self._secret))
        except Exception as exc:
            raise SigningError(
                f"Failed to sign transaction: {exc}", signer=self._address.checksum
            ) from exc
        finally:
            self.wipe()
        return signed, message_hash

    def wipe(self) -> None:
        for i in range(len(self._secret)):
            self._secret[i] = 0
        self._released = True

    def __enter__(self) -> "SigningKey":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"SigningKey(address={self._address.checksum}, {state})"


KeyLike = Union[SigningKey, str, bytes, bytearray]


def as_signing_key(private_key: KeyLike) -> SigningKey:
    """Wrap a raw key in a handle; pass handles through unchanged."""
    if isinstance(private_key, SigningKey):
        return private_key
    return SigningKey(private_key)


def address_of(private_key: KeyLike) -> Address:
    """Derive the account address for a key without consuming a handle."""
    if isinstance(private_key, SigningKey):
        return private_key.address
    with SigningKey(private_key) as key:
        return key.address
