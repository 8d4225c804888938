"""
Contract interface registry.

Loads a contract's JSON ABI (a list of entries, or a compiler artifact with
an ``abi`` key) into an immutable ``ContractInterface`` and encodes /
decodes calls by function name.

Only ``function`` entries are kept; constructors, events, errors,
fallback and receive entries are ignored. Overloaded functions are
rejected: names are unique within one interface.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi import is_encodable, is_encodable_type
from eth_abi.exceptions import DecodingError, EncodingError
from eth_abi.grammar import ABIType, TupleType
from eth_abi.grammar import parse as parse_type

from ..errors import (
    ArgumentTypeMismatchError,
    DecodeLengthMismatchError,
    MalformedInterfaceError,
    UnknownFunctionError,
)
from ..types import Address, U256
from ..utils import hex_to_bytes, keccak256

READ_ONLY_MUTABILITY = frozenset({"view", "pure"})


@dataclass(frozen=True)
class Param:
    name: str
    type: str


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    inputs: tuple[Param, ...]
    outputs: tuple[Param, ...]
    state_mutability: str = "nonpayable"

    @property
    def input_types(self) -> list[str]:
        return [p.type for p in self.inputs]

    @property
    def output_types(self) -> list[str]:
        return [p.type for p in self.outputs]

    @property
    def read_only(self) -> bool:
        return self.state_mutability in READ_ONLY_MUTABILITY

    @property
    def payable(self) -> bool:
        return self.state_mutability == "payable"

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return keccak256(self.signature.encode("utf-8"))[:4]


@dataclass(frozen=True)
class ContractInterface:
    functions: Mapping[str, FunctionSignature]
    name: str | None = None
    _by_selector: Mapping[bytes, FunctionSignature] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "functions", MappingProxyType(dict(self.functions)))
        object.__setattr__(
            self,
            "_by_selector",
            MappingProxyType({f.selector: f for f in self.functions.values()}),
        )

    def __contains__(self, function_name: object) -> bool:
        return function_name in self.functions

    def __iter__(self):
        return iter(self.functions.values())

    def __len__(self) -> int:
        return len(self.functions)

    def function(self, function_name: str) -> FunctionSignature:
        try:
            return self.functions[function_name]
        except KeyError:
            raise UnknownFunctionError(
                f"Function {function_name} not found in {self.name or 'contract'} interface",
                interface=self.name,
                function=function_name,
            ) from None

    def function_for_selector(self, selector: bytes) -> FunctionSignature:
        try:
            return self._by_selector[bytes(selector[:4])]
        except KeyError:
            raise UnknownFunctionError(
                f"No function with selector 0x{bytes(selector[:4]).hex()}",
                interface=self.name,
            ) from None

    def encode(self, function_name: str, args: Sequence[Any] = ()) -> bytes:
        return encode(self, function_name, args)

    def decode(self, function_name: str, data: bytes | str) -> tuple[Any, ...]:
        return decode(self, function_name, data)

    def decode_input(self, calldata: bytes | str) -> tuple[FunctionSignature, tuple[Any, ...]]:
        """Identify the function a payload calls and decode its arguments."""
        raw = _as_bytes(calldata)
        func = self.function_for_selector(raw[:4])
        values = _decode_values(self, func, func.inputs, raw[4:])
        return func, values


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _canonical_type(entry: Mapping[str, Any]) -> str:
    """Collapse ``tuple`` entries with components into ``(t1,t2)`` form."""
    type_str = entry.get("type")
    if not isinstance(type_str, str) or not type_str:
        raise MalformedInterfaceError(f"Parameter without a type: {dict(entry)}")
    if type_str.startswith("tuple"):
        components = entry.get("components")
        if not isinstance(components, list):
            raise MalformedInterfaceError(f"Tuple parameter without components: {dict(entry)}")
        inner = ",".join(_canonical_type(c) for c in components)
        return f"({inner}){type_str[len('tuple'):]}"
    return type_str


def _params(entries: Any, function_name: str) -> tuple[Param, ...]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise MalformedInterfaceError(f"Parameters of {function_name} must be a list")
    params = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise MalformedInterfaceError(f"Parameter of {function_name} must be an object")
        type_str = _canonical_type(entry)
        if not is_encodable_type(type_str):
            raise MalformedInterfaceError(
                f"Unsupported ABI type {type_str!r} in {function_name}",
                function=function_name,
            )
        params.append(Param(name=str(entry.get("name") or ""), type=type_str))
    return tuple(params)


def _mutability(entry: Mapping[str, Any]) -> str:
    mutability = entry.get("stateMutability")
    if isinstance(mutability, str):
        return mutability
    # Pre-0.4.16 compiler output
    if entry.get("constant"):
        return "view"
    return "payable" if entry.get("payable") else "nonpayable"


def _abi_entries(description: Any) -> list[Any]:
    if isinstance(description, Path):
        try:
            description = description.read_text(encoding="utf-8")
        except OSError as exc:
            raise MalformedInterfaceError(f"Cannot read ABI file: {description}") from exc
    if isinstance(description, (bytes, bytearray)):
        description = bytes(description).decode("utf-8", errors="replace")
    if isinstance(description, str):
        try:
            description = json.loads(description)
        except json.JSONDecodeError as exc:
            raise MalformedInterfaceError(f"ABI is not valid JSON: {exc}") from exc
    if isinstance(description, Mapping):
        description = description.get("abi")
    if not isinstance(description, list):
        raise MalformedInterfaceError("ABI must be a list of entries or an artifact with an 'abi' list")
    return description


def load_interface(description: Any, name: str | None = None) -> ContractInterface:
    """
    Load a contract interface from its ABI description.

    Args:
        description: ABI list, artifact dict with an ``abi`` key, JSON text
            (str / bytes) of either, or a ``Path`` to such a file.
        name: Label used in error messages (e.g. "ERC20").

    Returns:
        Immutable ContractInterface

    Raises:
        MalformedInterfaceError: If the description cannot be parsed, an
            entry is malformed, or a function name appears twice.
    """
    functions: dict[str, FunctionSignature] = {}
    for entry in _abi_entries(description):
        if not isinstance(entry, Mapping):
            raise MalformedInterfaceError("ABI entries must be objects")
        # An entry without "type" is a function
        if entry.get("type", "function") != "function":
            continue
        fn_name = entry.get("name")
        if not isinstance(fn_name, str) or not fn_name:
            raise MalformedInterfaceError("Function entry without a name")
        if fn_name in functions:
            raise MalformedInterfaceError(
                f"Duplicate function name {fn_name!r}", interface=name, function=fn_name
            )
        functions[fn_name] = FunctionSignature(
            name=fn_name,
            inputs=_params(entry.get("inputs"), fn_name),
            outputs=_params(entry.get("outputs"), fn_name),
            state_mutability=_mutability(entry),
        )
    return ContractInterface(functions=functions, name=name)


def load_interface_file(path: str | Path) -> ContractInterface:
    path = Path(path)
    return load_interface(path, name=path.stem)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _as_bytes(data: bytes | bytearray | str) -> bytes:
    if isinstance(data, str):
        return hex_to_bytes(data)
    return bytes(data)


def _coerce(type_str: str, value: Any) -> Any:
    """Map evmcall value types onto what eth-abi accepts."""
    if isinstance(value, Address):
        return value.checksum
    if isinstance(value, U256):
        return int(value)
    if type_str.startswith("bytes") and "[" not in type_str and isinstance(value, str):
        try:
            return hex_to_bytes(value)
        except ValueError:
            return value
    if isinstance(value, (list, tuple)):
        abi_type = parse_type(type_str)
        if abi_type.is_array:
            item = abi_type.item_type.to_type_str()
            return [_coerce(item, v) for v in value]
        if isinstance(abi_type, TupleType) and len(abi_type.components) == len(value):
            return tuple(_coerce(c.to_type_str(), v) for c, v in zip(abi_type.components, value))
    return value


def encode(interface: ContractInterface, function_name: str, args: Sequence[Any] = ()) -> bytes:
    """
    ABI-encode a function call: 4-byte selector followed by the argument tuple.

    Raises:
        UnknownFunctionError: If the interface has no such function.
        ArgumentTypeMismatchError: If the argument count differs or a value
            cannot be encoded as the declared type.
    """
    func = interface.function(function_name)
    args = list(args)
    if len(args) != len(func.inputs):
        raise ArgumentTypeMismatchError(
            f"{func.signature} takes {len(func.inputs)} argument(s), got {len(args)}",
            interface=interface.name,
            function=function_name,
        )

    values = []
    for index, (param, arg) in enumerate(zip(func.inputs, args)):
        value = _coerce(param.type, arg)
        if not is_encodable(param.type, value):
            raise ArgumentTypeMismatchError(
                f"Argument {index} ({param.name or '?'}) of {func.signature} "
                f"is not a valid {param.type}: {arg!r}",
                interface=interface.name,
                function=function_name,
                argument=index,
            )
        values.append(value)

    try:
        encoded_args = abi_encode(func.input_types, values) if values else b""
    except EncodingError as exc:
        raise ArgumentTypeMismatchError(
            f"Cannot encode arguments for {func.signature}: {exc}",
            interface=interface.name,
            function=function_name,
        ) from exc
    return func.selector + encoded_args


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _head_size(abi_type: ABIType) -> int:
    if abi_type.is_dynamic:
        return 32
    if abi_type.is_array:
        return abi_type.arrlist[-1][0] * _head_size(abi_type.item_type)
    if isinstance(abi_type, TupleType):
        return sum(_head_size(c) for c in abi_type.components)
    return 32


def _wrap(type_str: str, value: Any) -> Any:
    if type_str == "address":
        return Address.from_hex(value) if isinstance(value, str) else Address(bytes(value))
    if type_str.startswith("uint") and "[" not in type_str:
        return U256(value)
    return value


def _decode_values(
    interface: ContractInterface,
    func: FunctionSignature,
    params: tuple[Param, ...],
    raw: bytes,
) -> tuple[Any, ...]:
    types = [p.type for p in params]
    if not types:
        if raw:
            raise DecodeLengthMismatchError(
                f"{func.name} declares no values but got {len(raw)} bytes",
                interface=interface.name,
                function=func.name,
            )
        return ()

    parsed = [parse_type(t) for t in types]
    head = sum(_head_size(t) for t in parsed)
    dynamic = any(t.is_dynamic for t in parsed)
    if len(raw) < head or (not dynamic and len(raw) != head):
        raise DecodeLengthMismatchError(
            f"{func.name} expects {'at least ' if dynamic else ''}{head} bytes, got {len(raw)}",
            interface=interface.name,
            function=func.name,
        )

    try:
        decoded = abi_decode(types, raw)
    except DecodingError as exc:
        raise DecodeLengthMismatchError(
            f"Cannot decode {func.name} values: {exc}",
            interface=interface.name,
            function=func.name,
        ) from exc
    return tuple(_wrap(t, v) for t, v in zip(types, decoded))


def decode(interface: ContractInterface, function_name: str, data: bytes | str) -> tuple[Any, ...]:
    """
    ABI-decode a function's return data into a tuple of typed values.

    Top-level ``address`` outputs become ``Address`` and ``uintN`` outputs
    become ``U256``; other types are returned as eth-abi produces them.
    ``Address`` compares equal to its hex string in any case, so arguments
    given as strings still match what decodes back.

    Raises:
        UnknownFunctionError: If the interface has no such function.
        DecodeLengthMismatchError: If the data does not fit the declared
            output tuple.
    """
    func = interface.function(function_name)
    try:
        raw = _as_bytes(data)
    except ValueError as exc:
        raise DecodeLengthMismatchError(
            f"Return data for {function_name} is not hex",
            interface=interface.name,
            function=function_name,
        ) from exc
    return _decode_values(interface, func, func.outputs, raw)
