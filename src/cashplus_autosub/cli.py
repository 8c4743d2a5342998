"""CLI entry point for cashplus_autosub."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from cashplus_autosub.config import load_config, validate_config
from cashplus_autosub.engine.amounts import format_units
from cashplus_autosub.errors import AutosubError, ConfigError, InputValidationError
from cashplus_autosub.models.config import ApproveMode, AutosubConfig, RunParams
from cashplus_autosub.models.records import RunSummary
from cashplus_autosub.runner import NATIVE_DECIMALS, fetch_snapshot, run_autosub

log = logging.getLogger(__name__)


def _native(wei: int) -> str:
    return f"{format_units(wei, NATIVE_DECIMALS)} native"


def _load(ctx: click.Context) -> AutosubConfig:
    """Load config, exiting with an error message if it is malformed."""
    try:
        return load_config(ctx.obj["config_path"], ctx.obj["env_file"])
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _require_run_config(cfg: AutosubConfig) -> None:
    """Exit with error if anything a run needs is missing."""
    try:
        validate_config(cfg)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _run_async(coro):
    """Run a coroutine, mapping fatal errors to exit status 1."""
    try:
        return asyncio.run(coro)
    except AutosubError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except Exception as exc:
        log.exception("Unexpected error during run")
        click.echo(f"Fatal: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-e", "--env-file", default=None, help="Path to .env file (default: search from CWD)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, env_file: str | None, verbose: bool) -> None:
    """cashplus-autosub - randomized, repeated subscribe() on the CashPlus contract."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["env_file"] = env_file
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ── Run ────────────────────────────────────────────────


@cli.command()
@click.option("--min-amount", default=None, help="Minimum token amount per subscribe (e.g. 0.1)")
@click.option("--max-amount", default=None, help="Maximum token amount per subscribe (e.g. 0.5)")
@click.option("--loops", default=None, help="Number of subscribe() calls (e.g. 5)")
@click.option("--delay-min", default=None, help="Minimum delay between loops (seconds)")
@click.option("--delay-max", default=None, help="Maximum delay between loops (seconds)")
@click.option(
    "--approve-mode",
    type=click.Choice([m.value for m in ApproveMode]),
    default=None,
    help="Allowance to grant when a top-up is needed",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def run(
    ctx: click.Context,
    min_amount: str | None,
    max_amount: str | None,
    loops: str | None,
    delay_min: str | None,
    delay_max: str | None,
    approve_mode: str | None,
    yes: bool,
) -> None:
    """Approve once if needed, then run the subscribe loop.

    Values not given as options are prompted for interactively.
    """
    cfg = _load(ctx)
    _require_run_config(cfg)
    if approve_mode is not None:
        cfg.approve_mode = ApproveMode(approve_mode)

    symbol = cfg.token_symbol
    if min_amount is None:
        min_amount = click.prompt(f"Min {symbol} per subscribe (e.g. 0.1)", type=str)
    if max_amount is None:
        max_amount = click.prompt(f"Max {symbol} per subscribe (e.g. 0.5)", type=str)
    if loops is None:
        loops = click.prompt("How many loops (subscribe count)? (e.g. 5)", type=str)
    if delay_min is None:
        delay_min = click.prompt("Min delay between loops (seconds)", type=str)
    if delay_max is None:
        delay_max = click.prompt("Max delay between loops (seconds)", type=str)

    try:
        params = RunParams.parse(min_amount, max_amount, loops, delay_min, delay_max)
    except InputValidationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Subscribe plan on {cfg.rpc_url}")
    click.echo(f"  Contract:   {cfg.contract_address}")
    click.echo(f"  Token:      {cfg.token_address} ({symbol})")
    click.echo(f"  Amount:     {params.min_amount} - {params.max_amount} {symbol}")
    click.echo(f"  Loops:      {params.loop_count}")
    click.echo(f"  Delay:      {params.delay_min:g}s - {params.delay_max:g}s")
    click.echo(f"  Value:      {cfg.subscribe_value} native per subscribe")
    click.echo(f"  Gas limit:  {cfg.gas_limit}")
    click.echo(f"  Approval:   {cfg.approve_mode.value}")

    if not yes:
        click.confirm("\nProceed?", abort=True)

    summary: RunSummary = _run_async(run_autosub(cfg, params))

    click.echo("")
    click.echo("All loops finished.")
    click.echo(f"  Attempted:  {summary.attempted}/{summary.loop_count}")
    click.echo(f"  Confirmed:  {summary.succeeded}")
    click.echo(f"  Reverted:   {summary.reverted}")
    click.echo(f"  Errors:     {summary.errored}")
    click.echo(f"  Spent:      {format_units(summary.total_units, summary.decimals)} {symbol}")


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show resolved configuration."""
    cfg = _load(ctx)
    click.echo(f"RPC URL:      {cfg.rpc_url or '(not set)'}")
    click.echo(f"Contract:     {cfg.contract_address or '(not set)'}")
    click.echo(f"Token:        {cfg.token_address or '(not set)'} ({cfg.token_symbol})")
    click.echo(f"ABI file:     {cfg.contract_abi_path or '(built-in subscribe ABI)'}")
    click.echo(f"Value:        {cfg.subscribe_value} native per subscribe")
    click.echo(f"Gas limit:    {cfg.gas_limit}")
    click.echo(f"Approval:     {cfg.approve_mode.value}")
    click.echo(f"Connect:      {cfg.connect_attempts} attempts, base delay {cfg.connect_base_delay:g}s")
    click.echo(f"Secret:       {'***configured***' if cfg.private_key else '(not set)'}")


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Query wallet balances and the current allowance to the contract."""
    cfg = _load(ctx)
    _require_run_config(cfg)

    snap = _run_async(fetch_snapshot(cfg))
    d = snap.token_decimals
    symbol = cfg.token_symbol
    click.echo(f"Address:    {snap.address}")
    click.echo(f"Chain ID:   {snap.chain_id}")
    click.echo(f"Balance:    {_native(snap.native_balance)}")
    click.echo(f"Decimals:   {d}")
    click.echo(f"{symbol + ':':<11} {format_units(snap.token_balance, d)}")
    click.echo(f"Allowance:  {format_units(snap.allowance, d)} {symbol} ({snap.allowance} units)")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
