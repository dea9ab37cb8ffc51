#!/usr/bin/env python3
"""
Pre-populate the historical series cache from the command line.

With no arguments every discovered symbol is brought up to date; with
symbols only those are updated, one after another.
"""

import argparse
import sys

from market_cache.app_context import get_app_context
from market_cache.config.logging_config import setup_logging


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("symbols", nargs="*", help="Symbols to update (default: all discovered)")
    args = parser.parse_args(argv)

    setup_logging()
    ctx = get_app_context()
    try:
        if args.symbols:
            summary = ctx.historical_preloader.quick_update_symbols(args.symbols)
        else:
            result = ctx.historical_preloader.prepopulate()
            print(result.message)
            if not result.success:
                return 1
            summary = result.summary

        print("=" * 60)
        for r in summary.results:
            if r.success:
                kind = r.update_type.value if r.update_type else "-"
                print(f"✓ {r.symbol:<10} {kind:<12} {r.data_points} points")
            else:
                print(f"✗ {r.symbol:<10} {r.error}")
        print(f"\n{summary.successful} successful, {summary.failed} failed")
        return 0 if summary.failed == 0 else 1
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
