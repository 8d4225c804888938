"""
ABI layer: contract interface descriptions and call encoding.
"""

from .erc20 import ERC20_ABI, erc20_interface
from .registry import (
    ContractInterface,
    FunctionSignature,
    Param,
    decode,
    encode,
    load_interface,
    load_interface_file,
)

__all__ = [
    "ERC20_ABI",
    "ContractInterface",
    "FunctionSignature",
    "Param",
    "decode",
    "encode",
    "erc20_interface",
    "load_interface",
    "load_interface_file",
]
