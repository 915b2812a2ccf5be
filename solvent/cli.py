"""Command-line interface for Solvent.

Usage examples:
  solvent scan <FEE_PAYER> --network devnet
  solvent list <FEE_PAYER> --filter reclaimable
  solvent reclaim <FEE_PAYER> --keypair ~/.config/solana/id.json --dry-run
  solvent export <FEE_PAYER> --format csv --output report
  solvent watch <FEE_PAYER> --interval 60
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from solvent.config import format_sol, get_log_level, get_network_config, get_throttle_config
from solvent.constants import DEFAULT_BATCH_SIZE, DEFAULT_SCAN_LIMIT, RPC_URLS
from solvent.exporter import EXPORT_FORMATS, write_report
from solvent.keypair import load_default_keypair, load_keypair
from solvent.logging_config import configure_logging
from solvent.models import AccountClassification
from solvent.pipeline import reclaim_rent, run_scan
from solvent.services.analyzer import filter_accounts, format_account_row, format_rent_stats
from solvent.services.reclaimer import total_reclaimed
from solvent.utils.errors import SolventError, ValidationError
from solvent.utils.validation import same_address, validate_solana_address
from solvent.watcher import ScanWatcher

FILTERS = {
    "reclaimable": AccountClassification.RECLAIMABLE,
    "monitor": AccountClassification.MONITOR_ONLY,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solvent",
        description="Find and reclaim rent locked in accounts a fee payer sponsored"
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("address", help="Fee payer address")
    common.add_argument("--network", choices=sorted(RPC_URLS), default=None,
                        help="Solana cluster (default: SOLVENT_NETWORK or devnet)")
    common.add_argument("--rpc", default=None, help="Custom RPC endpoint URL")
    common.add_argument("--limit", type=int, default=DEFAULT_SCAN_LIMIT,
                        help="Maximum number of transactions to scan")
    
    subparsers.add_parser("scan", parents=[common], help="Scan and print rent statistics")
    
    list_parser = subparsers.add_parser("list", parents=[common], help="List sponsored accounts")
    list_parser.add_argument("--filter", choices=sorted(FILTERS), default=None)
    list_parser.add_argument("--include-closed", action="store_true")
    
    reclaim_parser = subparsers.add_parser("reclaim", parents=[common], help="Close reclaimable accounts")
    reclaim_parser.add_argument("--keypair", default=None,
                                help="Keypair file or base58 secret (default: SOLVENT_KEYPAIR)")
    reclaim_parser.add_argument("--dry-run", action="store_true")
    reclaim_parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    reclaim_parser.add_argument("--destination", default=None,
                                help="Rent destination (default: the fee payer)")
    reclaim_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    
    export_parser = subparsers.add_parser("export", parents=[common], help="Export a scan report")
    export_parser.add_argument("--format", choices=EXPORT_FORMATS, default="json")
    export_parser.add_argument("--output", default="solvent-report", help="Output filename prefix")
    
    watch_parser = subparsers.add_parser("watch", parents=[common], help="Poll for closeable accounts")
    watch_parser.add_argument("--interval", type=float, default=60.0, help="Seconds between scans")
    
    return parser


async def _scan(args):
    validate_solana_address(args.address, "fee payer")
    network_config = get_network_config(args.network, args.rpc)
    return await run_scan(args.address, network_config, limit=args.limit), network_config


async def cmd_scan(args) -> int:
    report, _ = await _scan(args)
    print(format_rent_stats(report.stats))
    return 0


async def cmd_list(args) -> int:
    report, _ = await _scan(args)
    accounts = filter_accounts(
        report.accounts,
        classification=FILTERS.get(args.filter),
        include_closed=args.include_closed
    )
    if not accounts:
        print("No accounts found")
        return 0
    for account in accounts:
        print(format_account_row(account))
    print(f"\n{len(accounts)} account(s)")
    return 0


async def cmd_reclaim(args) -> int:
    keypair = load_keypair(args.keypair) if args.keypair else load_default_keypair()
    if not args.dry_run:
        if keypair is None:
            raise ValidationError("--keypair or SOLVENT_KEYPAIR is required unless --dry-run is set")
        if not same_address(str(keypair.pubkey()), args.address):
            raise ValidationError(
                f"Keypair {keypair.pubkey()} does not match fee payer {args.address}"
            )
    if args.destination:
        validate_solana_address(args.destination, "destination")
    
    report, network_config = await _scan(args)
    if report.stats.reclaimable_accounts == 0:
        print("No accounts available for reclaim")
        return 0
    
    if not args.dry_run and not args.yes:
        prompt = (
            f"Close up to {args.batch_size} of {report.stats.reclaimable_accounts} accounts "
            f"({format_sol(report.stats.reclaimable)})? (y/N) > "
        )
        answer = (await asyncio.to_thread(input, prompt)).strip().lower()
        if answer != "y":
            print("Aborted by user.")
            return 1
    
    results = await reclaim_rent(
        report.accounts,
        keypair,
        network_config,
        dry_run=args.dry_run,
        batch_size=args.batch_size,
        destination=args.destination,
    )
    
    for result in results:
        if result.success:
            detail = result.signature or "dry run"
            print(f"OK    {result.account}  {format_sol(result.rent_reclaimed)}  ({detail})")
        else:
            print(f"FAIL  {result.account}  {result.error}")
    
    succeeded = sum(1 for r in results if r.success)
    print(f"\n{succeeded} succeeded, {len(results) - succeeded} failed, "
          f"{format_sol(total_reclaimed(results))} reclaimed")
    return 0 if succeeded == len(results) else 1


async def cmd_export(args) -> int:
    report, _ = await _scan(args)
    filename = write_report(report, args.format, args.output)
    print(f"Report exported to {filename} ({len(report.accounts)} accounts)")
    return 0


async def cmd_watch(args) -> int:
    validate_solana_address(args.address, "fee payer")
    watcher = ScanWatcher(
        args.address,
        get_network_config(args.network, args.rpc),
        interval=args.interval,
        limit=args.limit,
        throttle=get_throttle_config(),
    )
    print(f"Watching {args.address} every {args.interval}s. Press Ctrl+C to stop.")
    await watcher.run()
    return 0


COMMANDS = {
    "scan": cmd_scan,
    "list": cmd_list,
    "reclaim": cmd_reclaim,
    "export": cmd_export,
    "watch": cmd_watch,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Run the Solvent CLI."""
    args = build_parser().parse_args(argv)
    try:
        configure_logging(args.log_level or get_log_level())
        return asyncio.run(COMMANDS[args.command](args))
    except SolventError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nStopped.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
