"""
sol_sdk.cli.main
================

`sol-sdk`: a practical command-line interface for ledger nodes and the SDK's
local helpers (address derivation, explorer links, the named-address cache).

Examples
--------
    $ sol-sdk --rpc http://127.0.0.1:8899 blockhash
    $ sol-sdk balance 9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin
    $ sol-sdk rent 82
    $ sol-sdk derive metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s \\
          --seed metadata --seed addr:metaqbxx... --seed addr:<mint>
    $ sol-sdk status 5h3...
    $ sol-sdk explorer 5h3... --cluster devnet
    $ sol-sdk keys save tokenMint <address>
    $ sol-sdk keys list

Configuration
-------------
- RPC URL      : `--rpc` or env `SOLSDK_RPC_URL` (default: http://127.0.0.1:8899)
- Cluster      : `--cluster` or env `SOLSDK_CLUSTER` (default: devnet)
- HTTP Timeout : `--timeout` or env `SOLSDK_TIMEOUT` seconds (default: 10.0)
- Log level    : `--log-level` or env `SOLSDK_LOG_LEVEL` (logging is left
                 unconfigured unless one is given)
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any, List, Optional

import click
import typer

from .. import logging as slog
from ..address import as_address, find_program_address
from ..config import SDKConfig
from ..errors import DerivationError, SolSdkError
from ..explorer import explorer_url
from ..filestore.address_cache import LocalAddressCache
from ..rpc.http import RpcClient
from ..tx.send import fetch_logs
from ..utils.base58 import is_base58
from ..utils.bytes import from_hex
from ..version import __version__ as SDK_VERSION

app = typer.Typer(
    name="sol-sdk",
    help="Ledger SDK CLI: query the node, derive addresses, and more.",
    no_args_is_help=True,
    add_completion=False,
)
keys_app = typer.Typer(no_args_is_help=True, help="Named addresses saved in the local cache.")
app.add_typer(keys_app, name="keys")

__all__ = ["app", "main", "run"]


@dataclass
class Ctx:
    cfg: SDKConfig


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


@app.callback()
def _root(
    ctx: typer.Context,
    rpc: Optional[str] = typer.Option(None, "--rpc", help="Node HTTP JSON-RPC URL.", envvar="SOLSDK_RPC_URL"),
    cluster: Optional[str] = typer.Option(
        None, "--cluster", help="Cluster name for explorer links.", envvar="SOLSDK_CLUSTER"
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds.", envvar="SOLSDK_TIMEOUT"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Enable logging at this level.", envvar="SOLSDK_LOG_LEVEL"),
) -> None:
    """Resolve the effective configuration for this process."""
    try:
        cfg = SDKConfig.with_overrides(
            SDKConfig.from_env(), rpc_url=rpc, cluster=cluster, request_timeout=timeout
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    if log_level:
        slog.configure(level=log_level, stream=sys.stderr)
        slog.bind(cluster=cfg.cluster)
    ctx.obj = Ctx(cfg=cfg)


def _client(ctx: typer.Context) -> RpcClient:
    c: Ctx = ctx.obj
    return RpcClient.from_config(c.cfg)


def _parse_seed(text: str) -> bytes:
    """`hex:..`, `addr:<base58>`, `str:..`, or plain UTF-8 text."""
    kind, sep, value = text.partition(":")
    if sep:
        if kind == "hex":
            return from_hex(value)
        if kind == "addr":
            return as_address(value).raw
        if kind == "str":
            return value.encode("utf-8")
    return text.encode("utf-8")


# --- Local commands ----------------------------------------------------------


@app.command("version")
def version() -> None:
    """Print the SDK CLI version."""
    typer.echo(f"sol-sdk {SDK_VERSION}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    c: Ctx = ctx.obj
    _print_json({**c.cfg.to_dict(), "sdk_version": SDK_VERSION})


@app.command("derive")
def derive(
    program_id: str = typer.Argument(..., help="Owning program address."),
    seed: List[str] = typer.Option([], "--seed", "-s", help="Seed (repeatable): text, hex:.., addr:.., str:.."),
) -> None:
    """Find the program-derived address and bump for the given seeds."""
    try:
        seeds = [_parse_seed(s) for s in seed]
        addr, bump = find_program_address(seeds, program_id)
    except (ValueError, DerivationError) as e:
        raise typer.BadParameter(str(e)) from e
    _print_json({"address": str(addr), "bump": bump})


@app.command("explorer")
def explorer(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Transaction signature or address."),
) -> None:
    """Print an explorer link for a signature or address."""
    c: Ctx = ctx.obj
    kwargs = {"cluster": c.cfg.cluster}
    if c.cfg.cluster in ("localnet", "custom"):
        kwargs["custom_url"] = c.cfg.rpc_url
    if is_base58(value, expected_len=64):
        url = explorer_url(signature=value, **kwargs)
    elif is_base58(value, expected_len=32):
        url = explorer_url(address=value, **kwargs)
    else:
        raise typer.BadParameter(f"not a signature or address: {value!r}")
    typer.echo(url)


# --- Node queries ------------------------------------------------------------


@app.command("blockhash")
def blockhash(ctx: typer.Context) -> None:
    """Fetch the latest blockhash and its last valid block height."""
    with _client(ctx) as client:
        _print_json(client.get_latest_blockhash())


@app.command("balance")
def balance(ctx: typer.Context, address: str = typer.Argument(..., help="Account address.")) -> None:
    """Print an account balance in lamports."""
    with _client(ctx) as client:
        typer.echo(str(client.get_balance(address)))


@app.command("account")
def account(ctx: typer.Context, address: str = typer.Argument(..., help="Account address.")) -> None:
    """Print raw account info (null if the account does not exist)."""
    with _client(ctx) as client:
        _print_json(client.get_account_info(address))


@app.command("rent")
def rent(ctx: typer.Context, size: int = typer.Argument(..., min=0, help="Account data size in bytes.")) -> None:
    """Minimum balance for a rent-exempt account of SIZE bytes."""
    with _client(ctx) as client:
        typer.echo(str(client.get_minimum_balance_for_rent_exemption(size)))


@app.command("status")
def status(ctx: typer.Context, signature: str = typer.Argument(..., help="Transaction signature.")) -> None:
    """Signature status (null if the node has not seen it)."""
    with _client(ctx) as client:
        _print_json(client.get_signature_statuses([signature], search_history=True)[0])


@app.command("logs")
def logs(ctx: typer.Context, signature: str = typer.Argument(..., help="Transaction signature.")) -> None:
    """Program log lines of a landed transaction."""
    with _client(ctx) as client:
        lines = fetch_logs(client, signature)
    if lines is None:
        typer.echo("no logs available", err=True)
        raise typer.Exit(code=1)
    for line in lines:
        typer.echo(line)


# --- keys --------------------------------------------------------------------


def _cache(ctx: typer.Context, path: Optional[str]) -> LocalAddressCache:
    c: Ctx = ctx.find_root().obj
    return LocalAddressCache(path or c.cfg.cache_path)


@keys_app.command("save")
def keys_save(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name to save under."),
    address: str = typer.Argument(..., help="Address to save."),
    cache: Optional[str] = typer.Option(None, "--cache", help="Cache file path."),
) -> None:
    """Save an address under NAME."""
    try:
        as_address(address)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    _cache(ctx, cache).save(name, address)
    typer.echo(f"saved {name}={address}")


@keys_app.command("list")
def keys_list(
    ctx: typer.Context,
    cache: Optional[str] = typer.Option(None, "--cache", help="Cache file path."),
) -> None:
    """List saved addresses."""
    _print_json({k: str(v) for k, v in sorted(_cache(ctx, cache).load().items())})


# --- Entrypoints --------------------------------------------------------------


# typer releases that bundle their own click raise errors outside click's tree
_CLICK_ERRORS = tuple(
    {click.ClickException}
    | {c for c in typer.BadParameter.__mro__ if c.__name__ == "ClickException"}
)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="sol-sdk", standalone_mode=False, args=argv)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code)
    except typer.Abort:
        typer.echo("Aborted!", err=True)
        return 1
    except _CLICK_ERRORS as e:
        e.show()
        return e.exit_code
    except (SolSdkError, ValueError, OSError) as e:
        typer.echo(f"error: {e}", err=True)
        return 1


def run(argv: Optional[list[str]] = None) -> int:
    """Alias for :func:`main`."""
    return main(argv)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
