"""
evmcall CLI

Thin command-line surface over the engine.

Commands:
  checksum    - Print the EIP-55 form of an address
  call        - Read contract state (eth_call)
  invoke      - Send a contract transaction
  send-value  - Send a plain value transfer
  receipt     - Wait for a transaction receipt
  token       - ERC-20 info / balance / transfer

The signing key is read from PRIVATE_KEY (environment or --env-file).
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click

from . import __version__
from .abi.registry import ContractInterface, load_interface_file
from .config import EngineConfig
from .contract import ContractBinding
from .contract import erc20
from .engine import Engine
from .errors import EvmCallError, InvalidAddressError
from .signer import SigningKey
from .types import Address
from .utils import format_units, parse_units, to_checksum_address

T = TypeVar("T")


# ============ Helpers ============


def _make_engine(config: EngineConfig) -> Engine:
    return Engine.from_config(config)


def _run(ctx: click.Context, body: Callable[[Engine], Awaitable[T]]) -> T:
    """Run ``body`` against a fresh engine; map evmcall errors to exit codes."""
    config: EngineConfig = ctx.obj["config"]

    async def _main() -> T:
        async with _make_engine(config) as engine:
            return await body(engine)

    try:
        return asyncio.run(_main())
    except EvmCallError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        if exc.context:
            click.echo(f"  Context: {exc.context}", err=True)
        sys.exit(exc.exit_code)


def _load_key(ctx: click.Context) -> SigningKey:
    try:
        return SigningKey.from_env(env_path=ctx.obj["env_file"])
    except EvmCallError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)


def _parse_args(args_json: str) -> list[Any]:
    try:
        args = json.loads(args_json)
        if not isinstance(args, list):
            raise ValueError("Args must be a JSON array")
    except (json.JSONDecodeError, ValueError) as exc:
        click.secho(f"ERROR: Invalid args: {exc}", fg="red", err=True)
        sys.exit(2)
    return args


def _load_abi(abi_path: Optional[Path]) -> ContractInterface:
    if abi_path is None:
        from .abi.erc20 import erc20_interface

        return erc20_interface()
    try:
        return load_interface_file(abi_path)
    except EvmCallError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)


def _format_value(value: Any) -> Any:
    if isinstance(value, Address):
        return value.checksum
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_format_value(v) for v in value]
    if isinstance(value, int) and not isinstance(value, bool):
        return int(value)
    return value


async def _submit_and_report(
    engine: Engine,
    submit: Awaitable[tuple[str, Any]],
    wait: bool,
    show_record: bool,
) -> bool:
    """Submit, print the hash and optionally wait; False if the receipt reports a revert."""
    tx_hash, record = await submit
    click.echo(f"  TX: {tx_hash}")
    if show_record:
        click.echo(record.to_json())
    if wait:
        click.echo("  Waiting for receipt...")
        receipt = await engine.wait_for_receipt(tx_hash)
        if receipt.succeeded:
            click.secho(f"SUCCESS: Confirmed in block {receipt.block_number}", fg="green")
        else:
            click.secho(f"FAILED: Transaction reverted (block {receipt.block_number})", fg="red")
            return False
    return True


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="evmcall")
@click.option("--rpc-url", envvar="EVMCALL_RPC_URL", default=None, help="RPC endpoint URL")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(".env"),
    show_default=True,
    help="Optional .env file with EVMCALL_* settings and PRIVATE_KEY",
)
@click.option("--verbose", "-v", is_flag=True, help="Log RPC traffic to stderr")
@click.pass_context
def cli(ctx: click.Context, rpc_url: Optional[str], env_file: Path, verbose: bool) -> None:
    """evmcall - call, sign and confirm EVM contract transactions."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    try:
        config = EngineConfig.from_env(env_file)
    except EvmCallError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    if rpc_url:
        config = dataclasses.replace(config, rpc_url=rpc_url)
    ctx.obj = {"config": config, "env_file": env_file}

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============ Commands ============


@cli.command()
@click.argument("address")
def checksum(address: str) -> None:
    """Print the EIP-55 checksummed form of ADDRESS."""
    try:
        click.echo(to_checksum_address(address))
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(InvalidAddressError.exit_code)


@cli.command()
@click.option("--contract", required=True, help="Target contract address")
@click.option("--function", "func_name", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option(
    "--abi",
    "abi_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="ABI / artifact JSON file (default: bundled ERC-20)",
)
@click.pass_context
def call(ctx: click.Context, contract: str, func_name: str, args_json: str, abi_path: Optional[Path]) -> None:
    """Read contract state without sending a transaction."""
    args = _parse_args(args_json)
    interface = _load_abi(abi_path)

    async def body(engine: Engine) -> Any:
        binding = ContractBinding(engine, Address.parse(contract), interface)
        return await binding.call(func_name, *args)

    result = _run(ctx, body)
    click.echo(json.dumps(_format_value(result)))


@cli.command()
@click.option("--contract", required=True, help="Target contract address")
@click.option("--function", "func_name", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option(
    "--abi",
    "abi_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="ABI / artifact JSON file (default: bundled ERC-20)",
)
@click.option("--value", default=0, type=int, help="Value in wei")
@click.option("--nonce", default=None, type=int, help="Explicit nonce")
@click.option("--wait/--no-wait", default=True, help="Wait for the receipt")
@click.option("--show-record", is_flag=True, help="Print the signed transaction record")
@click.pass_context
def invoke(
    ctx: click.Context,
    contract: str,
    func_name: str,
    args_json: str,
    abi_path: Optional[Path],
    value: int,
    nonce: Optional[int],
    wait: bool,
    show_record: bool,
) -> None:
    """Send a state-changing contract call signed by PRIVATE_KEY."""
    args = _parse_args(args_json)
    interface = _load_abi(abi_path)
    with _load_key(ctx) as key:
        click.echo("=== evmcall invoke ===")
        click.echo(f"  Sender: {key.address}")
        click.echo(f"  Target: {contract}")
        click.echo(f"  Function: {func_name}")
        click.echo(f"  Args: {args}")
        if value > 0:
            click.echo(f"  Value: {value} wei")

        async def body(engine: Engine) -> bool:
            binding = ContractBinding(engine, Address.parse(contract), interface)
            submit = binding.transact(func_name, *args, private_key=key, nonce=nonce, value=value or None)
            return await _submit_and_report(engine, submit, wait, show_record)

        confirmed = _run(ctx, body)
    if not confirmed:
        sys.exit(1)


@cli.command("send-value")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--value", required=True, type=int, help="Value in wei")
@click.option("--nonce", default=None, type=int, help="Explicit nonce")
@click.option("--wait/--no-wait", default=True, help="Wait for the receipt")
@click.option("--show-record", is_flag=True, help="Print the signed transaction record")
@click.pass_context
def send_value(
    ctx: click.Context,
    recipient: str,
    value: int,
    nonce: Optional[int],
    wait: bool,
    show_record: bool,
) -> None:
    """Transfer native currency signed by PRIVATE_KEY."""
    with _load_key(ctx) as key:
        click.echo("=== evmcall send-value ===")
        click.echo(f"  From: {key.address}")
        click.echo(f"  To: {recipient}")
        click.echo(f"  Value: {value} wei")

        async def body(engine: Engine) -> bool:
            submit = engine.send_value(recipient, value, key, nonce=nonce)
            return await _submit_and_report(engine, submit, wait, show_record)

        confirmed = _run(ctx, body)
    if not confirmed:
        sys.exit(1)


@cli.command()
@click.argument("tx_hash")
@click.option("--timeout", default=None, type=float, help="Give up after this many seconds")
@click.pass_context
def receipt(ctx: click.Context, tx_hash: str, timeout: Optional[float]) -> None:
    """Wait for TX_HASH to be mined and print its receipt."""

    async def body(engine: Engine) -> Any:
        return await engine.wait_for_receipt(tx_hash, timeout=timeout)

    result = _run(ctx, body)
    click.echo(json.dumps(result.raw, indent=2, sort_keys=True))
    if not result.succeeded:
        sys.exit(1)


# ============ ERC-20 ============


@cli.group()
def token() -> None:
    """ERC-20 token operations."""


@token.command()
@click.option("--token", "token_address", required=True, help="ERC-20 token contract address")
@click.pass_context
def info(ctx: click.Context, token_address: str) -> None:
    """Show token name, symbol, decimals and total supply."""

    async def body(engine: Engine) -> tuple[str, str, int, int]:
        binding = erc20.bind(engine, token_address)
        return (
            await erc20.name(binding),
            await erc20.symbol(binding),
            await erc20.decimals(binding),
            await erc20.total_supply(binding),
        )

    name, symbol, decimals, supply = _run(ctx, body)
    click.echo(click.style("  Token:    ", dim=True) + token_address)
    click.echo(click.style("  Name:     ", dim=True) + name)
    click.echo(click.style("  Symbol:   ", dim=True) + symbol)
    click.echo(click.style("  Decimals: ", dim=True) + str(decimals))
    click.echo(click.style("  Supply:   ", dim=True) + f"{format_units(supply, decimals):f} {symbol}")


@token.command()
@click.option("--token", "token_address", required=True, help="ERC-20 token contract address")
@click.option("--account", default=None, help="Holder address (default: PRIVATE_KEY's address)")
@click.pass_context
def balance(ctx: click.Context, token_address: str, account: Optional[str]) -> None:
    """Show the token balance of an account."""
    if account is None:
        with _load_key(ctx) as key:
            account = key.address.checksum

    async def body(engine: Engine) -> tuple[int, int, str]:
        binding = erc20.bind(engine, token_address)
        return (
            await erc20.balance_of(binding, account),
            await erc20.decimals(binding),
            await erc20.symbol(binding),
        )

    raw, decimals, symbol = _run(ctx, body)
    click.echo(f"{format_units(raw, decimals):f} {symbol} ({raw} raw)")


@token.command()
@click.option("--token", "token_address", required=True, help="ERC-20 token contract address")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--amount", required=True, help="Amount in human-readable units (e.g. 1.5)")
@click.option("--wait/--no-wait", default=True, help="Wait for the receipt")
@click.pass_context
def transfer(ctx: click.Context, token_address: str, recipient: str, amount: str, wait: bool) -> None:
    """Transfer tokens signed by PRIVATE_KEY."""
    with _load_key(ctx) as key:

        async def body(engine: Engine) -> bool:
            binding = erc20.bind(engine, token_address)
            decimals = await erc20.decimals(binding)
            try:
                raw_amount = parse_units(amount, decimals)
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint="--amount") from exc
            if raw_amount <= 0:
                raise click.BadParameter("Amount must be positive", param_hint="--amount")
            click.echo(f"  Sending {amount} ({raw_amount} raw) to {recipient}...")
            submit = erc20.transfer(binding, recipient, raw_amount, key)
            return await _submit_and_report(engine, submit, wait, show_record=False)

        confirmed = _run(ctx, body)
    if not confirmed:
        sys.exit(1)
