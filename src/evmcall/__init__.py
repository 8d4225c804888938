__all__ = [
    # Values
    "Address",
    "U256",
    # Interfaces
    "ContractInterface",
    "FunctionSignature",
    "load_interface",
    "load_interface_file",
    "encode",
    "decode",
    "erc20_interface",
    # Engine
    "Engine",
    "EngineConfig",
    "RpcClient",
    # Transactions
    "TransactionRequest",
    "TransactionRecord",
    "Receipt",
    "AccessListEntry",
    # Signing
    "SigningKey",
    # Contracts
    "ContractBinding",
    # Errors
    "EvmCallError",
    "MalformedInterfaceError",
    "UnknownFunctionError",
    "ArgumentTypeMismatchError",
    "DecodeLengthMismatchError",
    "InvalidPrivateKeyError",
    "SigningError",
    "GasEstimationFailedError",
    "ExecutionRevertedError",
    "NetworkError",
    "RpcResponseError",
    "ReceiptTimeoutError",
    "QuantityOverflowError",
    "InvalidAddressError",
    "ConfigurationError",
    "SchemaValidationError",
]

__version__ = "0.1.0"

from .abi import (
    ContractInterface,
    FunctionSignature,
    decode,
    encode,
    erc20_interface,
    load_interface,
    load_interface_file,
)
from .config import EngineConfig
from .contract import ContractBinding
from .engine import Engine
from .errors import (
    ArgumentTypeMismatchError,
    ConfigurationError,
    DecodeLengthMismatchError,
    EvmCallError,
    ExecutionRevertedError,
    GasEstimationFailedError,
    InvalidAddressError,
    InvalidPrivateKeyError,
    MalformedInterfaceError,
    NetworkError,
    QuantityOverflowError,
    ReceiptTimeoutError,
    RpcResponseError,
    SigningError,
    UnknownFunctionError,
)
from .rpc import RpcClient
from .schemas import SchemaValidationError
from .signer import SigningKey
from .tx import AccessListEntry, Receipt, TransactionRecord, TransactionRequest
from .types import Address, U256
