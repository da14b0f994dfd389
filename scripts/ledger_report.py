#!/usr/bin/env python3
"""
Prediction ledger report
========================

Loads the persisted prediction ledger from Redis and prints:
1. Per-horizon hit rate and mean error (overall and per asset)
2. The most recent entries with their resolution state

Usage:
    python scripts/ledger_report.py
    python scripts/ledger_report.py --asset bitcoin --recent 20
    python scripts/ledger_report.py --ledger-id staging --redis-url redis://host:6379/1
"""

import argparse
import asyncio
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pricecast.ledger import PredictionLedger
from pricecast.models import Horizon, HorizonStats, LedgerEntry
from pricecast.utils import format_usd
from pricecast_app.config import get_settings
from pricecast_app.runtime import configure_logging
from pricecast_app.storage import cache, ledger_cache


def _fmt_pct(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}%"


def _fmt_time(ms: int | None) -> str:
    if ms is None:
        return "pending"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%m-%d %H:%M")


def _print_horizon(stats: HorizonStats) -> None:
    print(
        f"  {stats.horizon:<6} entries={stats.count:<4} resolved={stats.resolved:<4} "
        f"pending={stats.pending:<4} hit_rate={_fmt_pct(stats.hit_rate):<8} "
        f"mean_error={_fmt_pct(stats.mean_pct_error)}"
    )


def _print_entry(entry: LedgerEntry, symbol: str) -> None:
    short_actual = entry.actual(Horizon.SHORT)
    long_actual = entry.actual(Horizon.LONG)
    print(
        f"  {_fmt_time(entry.created_at)}  {symbol:<6} "
        f"at {format_usd(entry.price_at_creation):>14}  "
        f"1m {format_usd(entry.short_horizon_forecast):>14} -> "
        f"{format_usd(short_actual) if short_actual is not None else 'pending':>14}  "
        f"1d {format_usd(entry.long_horizon_forecast):>14} -> "
        f"{format_usd(long_actual) if long_actual is not None else 'pending':>14}"
    )


async def report(ledger_id: str, redis_url: str, asset: str | None, recent: int) -> int:
    settings = get_settings()

    await cache.init_cache(redis_url)
    if not cache.is_cache_available():
        print(f"Redis unavailable at {redis_url}")
        return 1

    try:
        records = await ledger_cache.load_ledger(ledger_id)
    finally:
        await cache.close_cache()

    ledger = PredictionLedger.from_records(records, settings.ledger_config())

    print()
    print("=" * 60)
    print(f"   Prediction ledger '{ledger_id}': {len(ledger)} entries")
    print("=" * 60)

    sections = [asset] if asset else [None, *ledger.asset_ids()]
    for asset_id in sections:
        stats = ledger.stats(asset_id)
        print()
        print(f"[{'all assets' if asset_id is None else settings.symbol_for(asset_id)}]")
        print("-" * 50)
        _print_horizon(stats.short)
        _print_horizon(stats.long)

    entries = [e for e in ledger.entries if asset is None or e.asset_id == asset]
    if entries and recent > 0:
        print()
        print(f"[recent {min(recent, len(entries))}]")
        print("-" * 50)
        for entry in entries[-recent:]:
            _print_entry(entry, settings.symbol_for(entry.asset_id))

    print()
    return 0


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Prediction ledger accuracy report")
    parser.add_argument("--ledger-id", default=settings.ledger_id, help="Ledger identifier")
    parser.add_argument("--redis-url", default=settings.redis_url, help="Redis URL")
    parser.add_argument("--asset", default=None, help="Only report this asset id")
    parser.add_argument("--recent", type=int, default=10, help="Recent entries to list")
    args = parser.parse_args()

    configure_logging(settings.debug)

    sys.exit(asyncio.run(report(args.ledger_id, args.redis_url, args.asset, args.recent)))


if __name__ == "__main__":
    main()
