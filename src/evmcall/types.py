"""
Value types shared across evmcall.

- Address: a 20-byte account / contract identifier with EIP-55 rendering.
- U256: a 256-bit unsigned integer whose arithmetic never wraps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import InvalidAddressError, QuantityOverflowError
from .utils import hex_to_bytes, is_checksum_address, to_checksum_address


@dataclass(frozen=True)
class Address:
    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, bytes) or len(self.raw) != 20:
            raise InvalidAddressError("Address must be exactly 20 bytes.", value=repr(self.raw))

    @classmethod
    def from_hex(cls, value: str) -> "Address":
        """Parse a 0x-prefixed address.

        All-lowercase and all-uppercase forms are accepted as-is; mixed case
        must carry a valid EIP-55 checksum.
        """
        if not isinstance(value, str) or not value.startswith("0x") or len(value) != 42:
            raise InvalidAddressError(f"Not a 0x-prefixed 20-byte address: {value!r}")
        digits = value[2:]
        try:
            raw = hex_to_bytes(digits)
        except ValueError as exc:
            raise InvalidAddressError(f"Not a hex address: {value!r}") from exc
        mixed = digits.lower() != digits and digits.upper() != digits
        if mixed and not is_checksum_address(value):
            raise InvalidAddressError(f"Bad EIP-55 checksum: {value}")
        return cls(raw)

    @classmethod
    def parse(cls, value: "AddressLike") -> "Address":
        if isinstance(value, Address):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(bytes(value))
        return cls.from_hex(value)

    @classmethod
    def zero(cls) -> "Address":
        return cls(b"\x00" * 20)

    @property
    def hex(self) -> str:
        return "0x" + self.raw.hex()

    @property
    def checksum(self) -> str:
        return to_checksum_address(self.raw.hex())

    def __str__(self) -> str:
        return self.checksum

    def __eq__(self, other: object) -> bool:
        # Hex strings compare by value, whatever their case
        if isinstance(other, str):
            try:
                other = Address.from_hex(other)
            except InvalidAddressError:
                return False
        if isinstance(other, Address):
            return self.raw == other.raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.raw)

    def __repr__(self) -> str:
        return f"Address({self.checksum!r})"


AddressLike = Union[Address, str, bytes, bytearray]


class U256(int):
    """Unsigned 256-bit integer.

    Arithmetic results (including unary minus, ``~`` and ``<<``) that fall outside
    ``[0, 2**256 - 1]`` raise ``QuantityOverflowError`` instead of wrapping.
    """

    MAX = 2**256 - 1

    def __new__(cls, value: int | str = 0) -> "U256":
        if isinstance(value, str):
            try:
                value = int(value, 0)
            except ValueError as exc:
                raise QuantityOverflowError(f"Not an integer: {value!r}") from exc
        if isinstance(value, bool) or not isinstance(value, int):
            raise QuantityOverflowError(f"Not an integer: {value!r}")
        if value < 0 or value > cls.MAX:
            raise QuantityOverflowError(f"Value out of uint256 range: {value}")
        return super().__new__(cls, value)

    @classmethod
    def exp10(cls, n: int) -> "U256":
        return cls(10**n)

    @classmethod
    def from_hex(cls, value: str) -> "U256":
        return cls(int(value, 16) if value not in ("0x", "") else 0)

    def to_hex(self) -> str:
        return hex(self)

    def _checked(self, result: object) -> "U256":
        if result is NotImplemented:
            return result  # type: ignore[return-value]
        return U256(result)  # type: ignore[arg-type]

    def __add__(self, other: int) -> "U256":
        return self._checked(int.__add__(self, other))

    __radd__ = __add__

    def __sub__(self, other: int) -> "U256":
        return self._checked(int.__sub__(self, other))

    def __rsub__(self, other: int) -> "U256":
        return self._checked(int.__rsub__(self, other))

    def __mul__(self, other: int) -> "U256":
        return self._checked(int.__mul__(self, other))

    __rmul__ = __mul__

    def __floordiv__(self, other: int) -> "U256":
        return self._checked(int.__floordiv__(self, other))

    def __rfloordiv__(self, other: int) -> "U256":
        return self._checked(int.__rfloordiv__(self, other))

    def __pow__(self, other: int) -> "U256":  # type: ignore[override]
        return self._checked(int.__pow__(self, other))

    def __rpow__(self, other: int) -> "U256":  # type: ignore[misc]
        return self._checked(int.__rpow__(self, other))

    def __lshift__(self, other: int) -> "U256":
        return self._checked(int.__lshift__(self, other))

    def __rlshift__(self, other: int) -> "U256":
        return self._checked(int.__rlshift__(self, other))

    def __neg__(self) -> "U256":
        return self._checked(int.__neg__(self))

    def __invert__(self) -> "U256":
        return self._checked(int.__invert__(self))

    def __repr__(self) -> str:
        return f"U256({int(self)})"


def to_u256(value: int | str) -> U256:
    return value if isinstance(value, U256) else U256(value)
