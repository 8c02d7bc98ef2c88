"""
Sealbid CLI - Command Line Interface for auction clearing

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click

from sealbid import __version__
from sealbid.core.auction import (
    Bid,
    ClearingEngine,
    FixedRaise,
    FixedSupply,
    VerificationError,
)
from sealbid.core.bids import (
    AllowListBoost,
    BalanceRankBoost,
    RankTier,
    apply_priority_pipeline,
    read_balances,
    read_bids,
)
from sealbid.core.claims import StandardMerkleTree, build_claim_tree, find_claim
from sealbid.core.config import load_config
from sealbid.core.distribution import proportional_split, staked_share
from sealbid.core.storage import ResultFormatError, load_result, write_result, write_result_json
from sealbid.utils.logger import get_logger, setup_logging

logger = get_logger("cli")


def _parse_pair(value: str, option: str) -> Tuple[str, int]:
    head, sep, tail = value.rpartition(":")
    if not sep or not head:
        raise click.BadParameter(f"expected VALUE:INT, got {value!r}", param_hint=option)
    try:
        return head, int(tail, 10)
    except ValueError:
        raise click.BadParameter(f"{tail!r} is not an integer", param_hint=option) from None


def _parse_tier(value: str) -> RankTier:
    top, amount = _parse_pair(value, "--rank-tier")
    if not top.isdigit() or int(top) <= 0:
        raise click.BadParameter(f"tier size must be a positive integer, got {top!r}", param_hint="--rank-tier")
    return RankTier(top=int(top), boost=amount)


def _build_mode(supply: Optional[int], raise_amount: Optional[int], required: bool = True):
    if supply is not None and raise_amount is not None:
        raise click.UsageError("Use only one of --supply and --raise")
    if supply is not None:
        return FixedSupply(supply)
    if raise_amount is not None:
        return FixedRaise(raise_amount)
    if required:
        raise click.UsageError("One of --supply or --raise is required")
    return None


def _load_bids(path: str) -> List[Bid]:
    parsed = read_bids(path)
    if parsed.rejected:
        click.echo(f"⚠️  Discarded {len(parsed.rejected)} malformed bid records", err=True)
    return parsed.bids


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-dir", default=None, help="Also write logs to this directory (default: SEALBID_LOG_DIR)")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load SEALBID_* settings from a .env file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, log_dir, env_file):
    """Sealbid - uniform-price sealed-bid auction clearing"""
    ctx.ensure_object(dict)
    try:
        settings = load_config(env_file)
    except ValueError as e:
        raise click.ClickException(str(e))
    ctx.obj["settings"] = settings

    level = logging.DEBUG if debug else logging.INFO
    log_dir = log_dir or settings.log_dir
    setup_logging(level=level, log_dir=log_dir)


# =============================================================================
# Clearing Commands
# =============================================================================


@cli.command("clear")
@click.argument("bids_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--supply", type=int, default=None, help="Asset units to sell (asset scale)")
@click.option("--raise", "raise_amount", type=int, default=None, help="Payment to raise (payment scale)")
@click.option("--boost", multiple=True, help="Allow-list boost FILE:N (repeatable)")
@click.option("--rank-list", type=click.Path(exists=True, dir_okay=False), default=None, help="Balance file for rank boosts")
@click.option("--rank-tier", multiple=True, help="Rank tier TOP:N (repeatable, needs --rank-list)")
@click.pass_context
def clear(ctx, bids_file, output, supply, raise_amount, boost, rank_list, rank_tier):
    """Clear an auction and write allocations (.json output writes JSON)"""
    settings = ctx.obj["settings"]
    mode = _build_mode(supply, raise_amount)

    if rank_tier and not rank_list:
        raise click.UsageError("--rank-tier needs --rank-list")

    stages = []
    try:
        for spec in boost:
            path, amount = _parse_pair(spec, "--boost")
            stages.append(AllowListBoost.from_file(path, amount))
        if rank_list:
            stages.append(BalanceRankBoost.from_file(rank_list, [_parse_tier(t) for t in rank_tier]))
    except OSError as e:
        raise click.ClickException(f"Cannot read priority list: {e}")

    bids = apply_priority_pipeline(_load_bids(bids_file), stages)

    engine = ClearingEngine(settings)
    try:
        result = engine.clear(bids, mode)
        writer = write_result_json if Path(output).suffix.lower() == ".json" else write_result
        writer(output, result)
    except (ValueError, VerificationError) as e:
        raise click.ClickException(str(e))

    filled = sum(1 for _ in result.filled())
    if result.successful:
        click.echo(f"✓ Final price: {result.final_price}")
    else:
        click.echo("✗ Auction undersubscribed: all payments refunded")
    click.echo(f"  Bidders filled: {filled}/{len(bids)}")
    click.echo(f"  Asset allocated: {result.total_asset}")
    click.echo(f"  Payment used: {result.total_used}")
    click.echo(f"  Payment refunded: {result.total_refunded}")
    click.echo(f"  Saved to: {output}")


@cli.command("verify")
@click.argument("bids_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("result_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--supply", type=int, default=None, help="Also check the supply ceiling")
@click.option("--raise", "raise_amount", type=int, default=None, help="Also check the raise target")
@click.pass_context
def verify(ctx, bids_file, result_file, supply, raise_amount):
    """Audit a persisted result against its bids"""
    mode = _build_mode(supply, raise_amount, required=False)
    try:
        result = load_result(result_file)
    except ResultFormatError as e:
        raise click.ClickException(str(e))

    report = ClearingEngine(ctx.obj["settings"]).verify(_load_bids(bids_file), result, mode)
    if not report.is_valid:
        for violation in report.violations:
            click.echo(f"  {violation}", err=True)
        raise click.ClickException(f"{len(report.violations)} invariant violations")

    click.echo("✓ Verification passed")
    for key, value in report.summary().items():
        click.echo(f"  {key}: {value}")


# =============================================================================
# Claim Commands
# =============================================================================


@cli.command("merkle")
@click.argument("result_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
def merkle(result_file, output):
    """Build the claim merkle tree for a result"""
    try:
        tree = build_claim_tree(load_result(result_file))
    except ValueError as e:
        raise click.ClickException(str(e))

    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(tree.dump()), encoding="utf-8")
    click.echo(f"Merkle Root: {tree.root}")
    click.echo(f"  Leaves: {len(tree)}")
    click.echo(f"  Saved to: {out}")


@cli.command("proof")
@click.argument("tree_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("address")
def proof(tree_file, address):
    """Print the claim value and proof for an address"""
    try:
        tree = StandardMerkleTree.load(json.loads(Path(tree_file).read_text(encoding="utf-8")))
        value, siblings = find_claim(tree, address)
    except (ValueError, KeyError) as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps({"root": tree.root, "value": value, "proof": siblings}, indent=2))


# =============================================================================
# Distribution Commands
# =============================================================================


@cli.group()
def distribute():
    """Reward distribution commands"""
    pass


@distribute.command("staked")
@click.argument("result_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--percent", default=25, type=click.IntRange(0, 100), help="Share of each allocation")
def distribute_staked(result_file, output, percent):
    """Give each bidder a fixed percentage of their allocation"""
    try:
        summary = staked_share(load_result(result_file).allocations, percent, 100)
    except ValueError as e:
        raise click.ClickException(str(e))
    _write_distribution(output, summary)


@distribute.command("proportional")
@click.argument("weights_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--total", required=True, type=int, help="Pool to split")
def distribute_proportional(weights_file, output, total):
    """Split a pool in proportion to '<address> <weight>' lines"""
    try:
        summary = proportional_split(read_balances(weights_file), total)
    except ValueError as e:
        raise click.ClickException(str(e))
    _write_distribution(output, summary)


def _write_distribution(output, summary):
    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(summary.to_json_dict(), indent=2), encoding="utf-8")
    click.echo(f"✓ Processed {summary.recipients} recipients")
    click.echo(f"  Distributed: {summary.distributed_total} of {summary.source_total}")
    click.echo(f"  Saved to: {out}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.pass_context
def demo(ctx):
    """Clear a three-bidder example auction"""
    settings = ctx.obj["settings"]
    scale = settings.asset_scale
    bids = [
        Bid("0x" + "a1" * 20, 1_000_000, 500_000, 1),
        Bid("0x" + "b2" * 20, 2_000_000, 500_000, 2),
        Bid("0x" + "c3" * 20, 500_000, 400_000, 1),
    ]
    supply = 6 * scale

    click.echo("=" * 60)
    click.echo("  SEALBID - DEMO")
    click.echo("=" * 60)
    click.echo()
    click.echo(f"📦 {len(bids)} bids, supply {supply} asset units")
    for bid in bids:
        click.echo(f"  {bid.address[:10]}... pay={bid.payment_amount} max={bid.max_price} prio={bid.priority}")
    click.echo()

    result = ClearingEngine(settings).clear(bids, FixedSupply(supply))
    click.echo(f"⚖️  Final price: {result.final_price}")
    for address, alloc in result.allocations.items():
        click.echo(
            f"  {address[:10]}... asset={alloc.asset_amount} "
            f"used={alloc.used_payment} refunded={alloc.refunded_payment}"
        )
    click.echo()

    tree = build_claim_tree(result)
    click.echo(f"🌳 Claim root: {tree.root}")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
