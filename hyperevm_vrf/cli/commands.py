"""
hyperevm_vrf.cli.commands
=========================

`hyperevm-vrf`: inspect the drand beacon, compute target rounds, and create
or fulfill DrandVRF requests from the shell.

Examples
--------
    $ hyperevm-vrf config
    $ hyperevm-vrf info
    $ hyperevm-vrf round 1760000000 --min-round 12
    $ hyperevm-vrf fulfill 42 --wait
    $ hyperevm-vrf request --in 30 --consumer 0xabc... --fulfill

Configuration
-------------
Everything comes from `VrfConfig.from_env()` (HYPEREVM_VRF_* variables) and
can be overridden with the global flags below. The signing key is read from
HYPEREVM_VRF_PRIVATE_KEY only; it is never accepted on the command line.

Failures print the error's structured dict as JSON on stderr and exit 1.
"""

from __future__ import annotations

import json
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

import typer

from .. import logging as vlog
from ..config import DrandConfig, VrfConfig
from ..drand.client import DrandClient
from ..errors import ConfigurationError, VrfError
from ..fulfiller import (DEFAULT_WAIT_INTERVAL_MS, DEFAULT_WAIT_TIMEOUT_MS,
                         VrfFulfiller)
from ..rounds import compute_round_target, latest_round_at
from ..version import version as sdk_version

app = typer.Typer(
    name="hyperevm-vrf",
    help="HyperEVM VRF CLI: drand beacon info, target rounds, request and fulfill.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main", "run"]

T = TypeVar("T")


@dataclass
class Ctx:
    config: VrfConfig


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _guard(fn: Callable[[], T]) -> T:
    """Run `fn`; a VrfError becomes its JSON dict on stderr and exit code 1."""
    try:
        return fn()
    except VrfError as e:
        typer.echo(json.dumps(e.to_dict(), default=str), err=True)
        raise typer.Exit(code=1) from e


# Factories are module-level so tests can substitute fakes.


def make_beacon(config: VrfConfig) -> DrandClient:
    return DrandClient(
        base_url=config.drand.base_url,
        beacon=config.drand.beacon,
        timeout_ms=config.drand.fetch_timeout_ms,
    )


def make_fulfiller(config: VrfConfig, beacon: DrandClient) -> VrfFulfiller:
    return VrfFulfiller.from_config(config, beacon=beacon)


def _build_config(
    rpc: Optional[str],
    chain_id: Optional[str],
    vrf_address: Optional[str],
    policy: Optional[str],
    window: Optional[int],
    drand_url: Optional[str],
    beacon: Optional[str],
) -> VrfConfig:
    base = VrfConfig.from_env()
    overrides: Dict[str, Any] = {}
    if rpc:
        overrides["rpc_url"] = rpc
    if chain_id:
        overrides["chain_id"] = chain_id
    if vrf_address:
        overrides["vrf_address"] = vrf_address

    if policy is not None and policy.lower() == "none":
        overrides["policy"] = None
    elif policy is not None or window is not None:
        mode = policy or (base.policy.mode if base.policy is not None else "window")
        overrides["policy"] = {"mode": mode, "window": window}

    if drand_url or beacon:
        overrides["drand"] = DrandConfig(
            base_url=drand_url or base.drand.base_url,
            fetch_timeout_ms=base.drand.fetch_timeout_ms,
            beacon=beacon or base.drand.beacon,
        )
    return VrfConfig.with_overrides(base, **overrides)


@app.callback()
def _root(
    ctx: typer.Context,
    rpc: Optional[str] = typer.Option(None, "--rpc", help="HyperEVM JSON-RPC URL."),
    chain_id: Optional[str] = typer.Option(None, "--chain-id", help="Chain id (decimal or 0x-hex)."),
    vrf_address: Optional[str] = typer.Option(None, "--vrf-address", help="DrandVRF contract address."),
    policy: Optional[str] = typer.Option(None, "--policy", help="strict | window | none"),
    window: Optional[int] = typer.Option(None, "--window", help="Window size for --policy window."),
    drand_url: Optional[str] = typer.Option(None, "--drand-url", help="drand v2 API base URL."),
    beacon: Optional[str] = typer.Option(None, "--beacon", help="drand beacon id."),
    json_logs: Optional[bool] = typer.Option(None, "--json-logs/--text-logs", help="Log format."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ..."),
) -> None:
    """Resolve configuration once for all subcommands."""
    vlog.configure(json=json_logs, level=log_level)
    config = _guard(lambda: _build_config(rpc, chain_id, vrf_address, policy, window, drand_url, beacon))
    ctx.obj = Ctx(config=config)


@app.command("version")
def version() -> None:
    """Print the SDK version."""
    typer.echo(f"hyperevm-vrf {sdk_version()}")


@app.command("config")
def config(ctx: typer.Context) -> None:
    """Show the effective configuration (private key redacted)."""
    c: Ctx = ctx.obj
    _print_json(c.config.to_dict())


@app.command("info")
def info(ctx: typer.Context) -> None:
    """Fetch beacon info and the currently published round."""
    c: Ctx = ctx.obj

    def _do() -> Dict[str, Any]:
        with make_beacon(c.config) as client:
            bi = client.get_info()
        return {
            "beacon": c.config.drand.beacon,
            "genesis_time": bi.genesis_time,
            "period": bi.period,
            "latest_round": latest_round_at(int(time.time()), bi),
        }

    _print_json(_guard(_do))


@app.command("round")
def round_(
    ctx: typer.Context,
    deadline: int = typer.Argument(..., help="Request deadline (unix seconds)."),
    min_round: int = typer.Option(0, "--min-round", help="Contract-enforced minimum round."),
) -> None:
    """Compute the target round for a deadline against live beacon info."""
    c: Ctx = ctx.obj

    def _do() -> Dict[str, Any]:
        with make_beacon(c.config) as client:
            bi = client.get_info()
        t = compute_round_target(deadline, min_round, bi, int(time.time()))
        return {
            "target_round": t.target_round,
            "latest_round": t.latest_round,
            "not_before": t.not_before,
            "seconds_left": t.seconds_left,
            "published": t.published,
        }

    _print_json(_guard(_do))


@app.command("fulfill")
def fulfill(
    ctx: typer.Context,
    request_id: int = typer.Argument(..., help="Request id to fulfill."),
    wait: bool = typer.Option(False, "--wait", help="Wait for the target round instead of failing."),
    interval_ms: int = typer.Option(DEFAULT_WAIT_INTERVAL_MS, "--interval-ms", help="Minimum retry sleep."),
    timeout_ms: int = typer.Option(DEFAULT_WAIT_TIMEOUT_MS, "--timeout-ms", help="Overall wait budget."),
) -> None:
    """Fulfill a pending request."""
    c: Ctx = ctx.obj

    def _do() -> Dict[str, Any]:
        with make_beacon(c.config) as client:
            f = make_fulfiller(c.config, client)
            if wait:
                res = f.fulfill_with_wait(request_id, interval_ms=interval_ms, timeout_ms=timeout_ms)
            else:
                res = f.fulfill(request_id)
        return res.to_dict()

    _print_json(_guard(_do))


@app.command("request")
def request(
    ctx: typer.Context,
    consumer: str = typer.Option(..., "--consumer", help="Consumer contract receiving the callback."),
    deadline: Optional[int] = typer.Option(None, "--deadline", help="Absolute deadline (unix seconds)."),
    in_seconds: Optional[int] = typer.Option(None, "--in", help="Deadline relative to now, in seconds."),
    salt: Optional[str] = typer.Option(None, "--salt", help="32-byte hex salt (random when omitted)."),
    and_fulfill: bool = typer.Option(False, "--fulfill", help="Wait for the round and fulfill it too."),
    interval_ms: int = typer.Option(DEFAULT_WAIT_INTERVAL_MS, "--interval-ms", help="Minimum retry sleep."),
    timeout_ms: int = typer.Option(DEFAULT_WAIT_TIMEOUT_MS, "--timeout-ms", help="Overall wait budget."),
) -> None:
    """Create a randomness request, optionally fulfilling it."""
    c: Ctx = ctx.obj

    def _do() -> Dict[str, Any]:
        if (deadline is None) == (in_seconds is None):
            raise ConfigurationError("provide exactly one of --deadline or --in", field="deadline")
        when = deadline if deadline is not None else int(time.time()) + int(in_seconds or 0)
        with make_beacon(c.config) as client:
            f = make_fulfiller(c.config, client)
            req = f.request_randomness(when, consumer=consumer, salt=salt)
            out: Dict[str, Any] = {"request": req.to_dict()}
            if and_fulfill:
                res = f.fulfill_with_wait(req.request_id, interval_ms=interval_ms, timeout_ms=timeout_ms)
                out["fulfillment"] = res.to_dict()
        return out

    _print_json(_guard(_do))


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI. Returns an integer exit code."""
    try:
        rv = app(prog_name="hyperevm-vrf", standalone_mode=False, args=argv)
        return int(rv or 0)
    except typer.Exit as e:
        return int(e.exit_code)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        return 1


def run(argv: Optional[list[str]] = None) -> int:
    """Console-script entrypoint."""
    return main(argv)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
