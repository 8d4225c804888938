from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext

from eth_hash.auto import keccak

_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]*$")


def keccak256(data: bytes) -> bytes:
    # Keccak-256, not NIST SHA3-256. Never use hashlib.sha3_256 here.
    return keccak(data)


def to_hex(data: bytes | bytearray) -> str:
    return "0x" + bytes(data).hex()


def hex_to_bytes(value: str) -> bytes:
    if not isinstance(value, str) or not _HEX_RE.match(value):
        raise ValueError(f"Not a hex string: {value!r}")
    digits = value[2:] if value.startswith("0x") else value
    if len(digits) % 2:
        digits = "0" + digits
    return bytes.fromhex(digits)


def quantity(value: int) -> str:
    """Format an integer as a JSON-RPC quantity (no leading zeros)."""
    if value < 0:
        raise ValueError(f"Quantity must be non-negative: {value}")
    return hex(value)


def parse_quantity(value: str | int) -> int:
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"Not a hex quantity: {value!r}")
    return int(value, 16) if value != "0x" else 0


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format.

    The lowercase hex form is hashed; a letter is upper-cased when the
    matching nibble of the hash is >= 8.
    """
    addr = address.lower().removeprefix("0x")
    if len(addr) != 40 or not _HEX_RE.match(addr):
        raise ValueError(f"Not a 20-byte hex address: {address!r}")
    addr_hash = keccak256(addr.encode("ascii")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def is_checksum_address(address: str) -> bool:
    try:
        return to_checksum_address(address) == address
    except ValueError:
        return False


# Wide enough for any uint256 (78 digits) at any scale
_UNITS_PRECISION = 100


def format_units(amount: int, decimals: int) -> Decimal:
    """Scale a raw integer amount down by ``10**decimals``, trailing zeros dropped."""
    with localcontext() as ctx:
        ctx.prec = _UNITS_PRECISION
        value = Decimal(int(amount)).scaleb(-decimals)
        if value == value.to_integral_value():
            return value.quantize(Decimal(1))
        return value.normalize()


def parse_units(amount: str | Decimal | int, decimals: int) -> int:
    """Scale a human-readable amount up to a raw integer.

    Raises:
        ValueError: if the amount has more fractional digits than
            ``decimals`` allows, or is not a number.
    """
    with localcontext() as ctx:
        ctx.prec = _UNITS_PRECISION
        try:
            value = Decimal(str(amount).strip()).scaleb(decimals)
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {amount!r}") from exc
        if not value.is_finite() or value != value.to_integral_value():
            raise ValueError(f"{amount} has more than {decimals} decimal places")
        return int(value)
