"""Pipeline entry points for Solvent.

Each function takes an explicit NetworkConfig (or an already-open
LedgerClient) and runs one stage of scan -> classify -> aggregate / reclaim.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from solders.keypair import Keypair

from solvent.clients.ledger_client import LedgerClient, get_ledger_client
from solvent.config import NetworkConfig, ThrottleConfig, get_network_config
from solvent.constants import DEFAULT_BATCH_SIZE, DEFAULT_SCAN_LIMIT
from solvent.logging_config import get_logger
from solvent.models import (
    ParsedAccountCreation,
    ReclaimResult,
    ScanReport,
    SponsoredAccount,
    TransactionInfo,
)
from solvent.services.analyzer import calculate_rent_stats
from solvent.services.classifier import AccountClassifier
from solvent.services.reclaimer import ReclaimExecutor
from solvent.services.scanner import HistoryScanner

logger = get_logger(__name__)


@asynccontextmanager
async def _client_scope(
    network_config: Optional[NetworkConfig],
    client: Optional[LedgerClient]
) -> AsyncIterator[LedgerClient]:
    """Use the caller's client, or open (and close) one for the network."""
    if client is not None:
        yield client
        return
    async with get_ledger_client(network_config or get_network_config()) as owned:
        yield owned


async def scan_fee_payer_history(
    fee_payer: str,
    network_config: Optional[NetworkConfig] = None,
    limit: int = DEFAULT_SCAN_LIMIT,
    throttle: Optional[ThrottleConfig] = None,
    client: Optional[LedgerClient] = None
) -> List[TransactionInfo]:
    """Fetch a fee payer's signature history, newest first."""
    async with _client_scope(network_config, client) as ledger:
        return await HistoryScanner(ledger, throttle).scan_history(fee_payer, limit)


async def scan_and_parse_accounts(
    fee_payer: str,
    network_config: Optional[NetworkConfig] = None,
    limit: int = DEFAULT_SCAN_LIMIT,
    throttle: Optional[ThrottleConfig] = None,
    client: Optional[LedgerClient] = None
) -> List[ParsedAccountCreation]:
    """Find every account the fee payer paid to create."""
    async with _client_scope(network_config, client) as ledger:
        return await HistoryScanner(ledger, throttle).scan_and_parse(fee_payer, limit)


async def classify_accounts(
    creations: List[ParsedAccountCreation],
    fee_payer: str,
    network_config: Optional[NetworkConfig] = None,
    throttle: Optional[ThrottleConfig] = None,
    client: Optional[LedgerClient] = None
) -> List[SponsoredAccount]:
    """Classify account creations against live ledger state."""
    async with _client_scope(network_config, client) as ledger:
        return await AccountClassifier(ledger, throttle).classify_all(creations, fee_payer)


async def reclaim_rent(
    accounts: List[SponsoredAccount],
    authority: Optional[Keypair],
    network_config: Optional[NetworkConfig] = None,
    dry_run: bool = False,
    batch_size: int = DEFAULT_BATCH_SIZE,
    destination: Optional[str] = None,
    throttle: Optional[ThrottleConfig] = None,
    client: Optional[LedgerClient] = None
) -> List[ReclaimResult]:
    """Close reclaimable accounts and recover their rent."""
    async with _client_scope(network_config, client) as ledger:
        return await ReclaimExecutor(ledger, throttle).reclaim(
            accounts,
            authority,
            dry_run=dry_run,
            batch_size=batch_size,
            destination=destination,
        )


async def run_scan(
    fee_payer: str,
    network_config: Optional[NetworkConfig] = None,
    limit: int = DEFAULT_SCAN_LIMIT,
    throttle: Optional[ThrottleConfig] = None,
    client: Optional[LedgerClient] = None
) -> ScanReport:
    """Run the read-only pipeline: scan, classify and aggregate.
    
    Args:
        fee_payer: Fee payer address
        network_config: Network to scan, defaults to environment config
        limit: Maximum number of signatures to scan
        throttle: Delays between remote calls
        client: Optional already-open ledger client
        
    Returns:
        ScanReport with classified accounts and their statistics
    """
    network_config = network_config or get_network_config()
    async with _client_scope(network_config, client) as ledger:
        creations = await HistoryScanner(ledger, throttle).scan_and_parse(fee_payer, limit)
        accounts = await AccountClassifier(ledger, throttle).classify_all(creations, fee_payer)
    
    logger.info(
        f"Scan of {fee_payer} on {network_config.network} complete: "
        f"{len(accounts)} accounts from {len(creations)} creations"
    )
    return ScanReport(
        fee_payer=fee_payer,
        network=network_config.network,
        accounts=accounts,
        stats=calculate_rent_stats(accounts),
    )
