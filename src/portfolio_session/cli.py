"""Command line entry point: calculate, validate and share portfolios from YAML/JSON files"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from allocation_engine import AllocationResult, Asset
from allocator_config import configure_logging, load_config
from quote_resolver import FinnhubQuoteProvider, QuoteResolver, get_display_name
from .session import PortfolioSession

logger = logging.getLogger(__name__)


def load_portfolio_file(path: Path) -> PortfolioSession:
    """
    Read a portfolio definition.

    The file holds `assets` (symbol, current_value, target_percentage and
    optionally no_sell), `new_money` and `enable_selling`. camelCase keys are
    accepted as well. YAML is a superset of JSON, so both formats load.
    """
    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('assets'), list):
        raise ValueError(f"{path} must define an 'assets' list")

    assets = [Asset.model_validate(item) for item in data['assets']]
    new_money = float(data.get('new_money', data.get('newMoney', 0)))
    enable_selling = bool(data.get('enable_selling', data.get('enableSelling', False)))
    session = PortfolioSession(assets, enable_selling=enable_selling)
    session.set_new_money(new_money)
    return session


def format_allocations(results: List[AllocationResult]) -> str:
    header = f"{'Symbol':<16} {'Amount':>14} {'New value':>14} {'New %':>8} {'Target %':>9} {'Diff':>8}"
    lines = [header, '-' * len(header)]
    for result in results:
        lines.append(
            f"{get_display_name(result.symbol):<16} {result.amount_to_add:>14,.2f} {result.new_value:>14,.2f} "
            f"{result.new_percentage:>7.2f}% {result.target_percentage:>8.2f}% {result.difference:>+7.2f}%"
        )
    total = sum(result.amount_to_add for result in results)
    lines.append('-' * len(header))
    lines.append(f"{'Total':<16} {total:>14,.2f}")
    return '\n'.join(lines)


def _print_result(session: PortfolioSession, as_json: bool) -> int:
    result = session.calculate()

    if result.validation_errors:
        for error in result.validation_errors:
            print(f"error: {error}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps([r.model_dump(by_alias=True) for r in result.allocations], indent=2))
    elif not result.allocations:
        print("Nothing to allocate: new money must be greater than 0 in buy-only mode")
    else:
        mode = "rebalance (selling enabled)" if session.enable_selling else "buy only"
        print(f"Deploying ${session.new_money:,.2f} into ${session.current_total:,.2f} ({mode})")
        print(format_allocations(result.allocations))
    return 0


def _build_resolver(config) -> QuoteResolver:
    return QuoteResolver(FinnhubQuoteProvider(config.quotes), config.quotes)


def cmd_calculate(args, config) -> int:
    session = load_portfolio_file(args.file)
    if args.money is not None:
        session.set_new_money(args.money)
    if args.sell:
        session.set_enable_selling(True)

    if args.refresh_prices:
        session.resolver = _build_resolver(config)
        failed = asyncio.run(session.refresh_prices())
        if failed:
            print(f"warning: {session.price_error}", file=sys.stderr)

    return _print_result(session, args.json)


def cmd_validate(args, config) -> int:
    session = load_portfolio_file(args.file)
    if args.sell:
        session.set_enable_selling(True)

    validation = session.validate()
    if validation.is_valid:
        print(f"Portfolio is valid ({len(session.assets)} assets, {session.total_percentage:.1f}% allocated)")
        return 0

    for error in validation.errors:
        print(f"error: {error}", file=sys.stderr)
    return 1


def cmd_share(args, config) -> int:
    session = load_portfolio_file(args.file)
    print(session.share_url(args.base_url or config.sharing.base_url))
    return 0


def cmd_open(args, config) -> int:
    session = PortfolioSession.from_share_url(args.url)
    return _print_result(session, args.json)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Work out how to invest new money so a portfolio converges on its target allocation"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (defaults plus environment variables when omitted)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    calculate = subparsers.add_parser("calculate", help="Calculate allocations for a portfolio file")
    calculate.add_argument("file", type=Path, help="Portfolio YAML/JSON file")
    calculate.add_argument("--money", type=float, default=None, help="Override the new money amount")
    calculate.add_argument("--sell", action="store_true", help="Enable selling (full rebalance)")
    calculate.add_argument("--refresh-prices", action="store_true", help="Reprice assets with known share counts")
    calculate.add_argument("--json", action="store_true", help="Print results as JSON")
    calculate.set_defaults(handler=cmd_calculate)

    validate = subparsers.add_parser("validate", help="Check a portfolio file without calculating")
    validate.add_argument("file", type=Path, help="Portfolio YAML/JSON file")
    validate.add_argument("--sell", action="store_true", help="Validate for selling mode (allows 0%% targets)")
    validate.set_defaults(handler=cmd_validate)

    share = subparsers.add_parser("share", help="Print a share link for a portfolio file")
    share.add_argument("file", type=Path, help="Portfolio YAML/JSON file")
    share.add_argument("--base-url", type=str, default=None, help="Page the link points to")
    share.set_defaults(handler=cmd_share)

    open_link = subparsers.add_parser("open", help="Calculate allocations for a share link")
    open_link.add_argument("url", type=str, help="Share link or bare token")
    open_link.add_argument("--json", action="store_true", help="Print results as JSON")
    open_link.set_defaults(handler=cmd_open)

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    try:
        return args.handler(args, config)
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
