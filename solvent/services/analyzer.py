"""Rent statistics for Solvent.

Pure functions over lists of SponsoredAccount: aggregation, selection of
reclaimable / alertable accounts, scan-to-scan diffs and text summaries.
"""

from typing import Iterable, List, Optional

from solvent.config import format_sol
from solvent.models import (
    AccountClassification,
    AccountStatus,
    RentStats,
    ScanDelta,
    SponsoredAccount,
)


def calculate_rent_stats(accounts: Iterable[SponsoredAccount]) -> RentStats:
    """Aggregate rent statistics over a list of accounts.
    
    Closed accounts are excluded from every count and sum. Reclaimable
    rent and count require both RECLAIMABLE and CLOSEABLE; monitor-only
    rent covers every active MONITOR_ONLY account regardless of status.
    
    Args:
        accounts: Classified accounts
        
    Returns:
        RentStats with amounts in lamports
    """
    active = [a for a in accounts if a.status != AccountStatus.CLOSED]
    
    reclaimable = [
        a for a in active
        if a.classification == AccountClassification.RECLAIMABLE
        and a.status == AccountStatus.CLOSEABLE
    ]
    monitor_only = [a for a in active if a.classification == AccountClassification.MONITOR_ONLY]
    closeable = [a for a in active if a.status == AccountStatus.CLOSEABLE]
    
    return RentStats(
        total_accounts=len(active),
        total_locked=sum(a.rent_lamports for a in active),
        reclaimable=sum(a.rent_lamports for a in reclaimable),
        monitor_only=sum(a.rent_lamports for a in monitor_only),
        closeable_accounts=len(closeable),
        reclaimable_accounts=len(reclaimable),
    )


def get_reclaimable_accounts(accounts: Iterable[SponsoredAccount]) -> List[SponsoredAccount]:
    """Accounts the fee payer can close right now."""
    return [a for a in accounts if a.is_reclaimable]


def get_alertable_accounts(accounts: Iterable[SponsoredAccount]) -> List[SponsoredAccount]:
    """Empty accounts only a third party can close.
    
    These are worth notifying the account's owner about.
    """
    return [
        a for a in accounts
        if a.classification == AccountClassification.MONITOR_ONLY
        and a.status == AccountStatus.CLOSEABLE
        and a.token_balance == 0
    ]


def filter_accounts(
    accounts: Iterable[SponsoredAccount],
    classification: Optional[AccountClassification] = None,
    include_closed: bool = False
) -> List[SponsoredAccount]:
    """Filter accounts for listing.
    
    Args:
        accounts: Classified accounts
        classification: Only keep accounts with this classification
        include_closed: Keep accounts that no longer exist
        
    Returns:
        Filtered list, input order preserved
    """
    return [
        a for a in accounts
        if (include_closed or a.status != AccountStatus.CLOSED)
        and (classification is None or a.classification == classification)
    ]


def compare_scans(previous: RentStats, current: RentStats) -> ScanDelta:
    """Diff two scans of the same fee payer."""
    return ScanDelta(previous=previous, current=current)


def format_rent_stats(stats: RentStats) -> str:
    """Format rent stats as a plain-text report."""
    rows = [
        ("Total accounts", str(stats.total_accounts)),
        ("Total rent locked", format_sol(stats.total_locked)),
        ("Reclaimable accounts", str(stats.reclaimable_accounts)),
        ("Reclaimable rent", format_sol(stats.reclaimable)),
        ("Monitor-only rent", format_sol(stats.monitor_only)),
        ("Closeable (balance=0)", str(stats.closeable_accounts)),
    ]
    width = max(len(label) for label, _ in rows)
    lines = ["SOLVENT RENT REPORT", "=" * 40]
    lines.extend(f"{label.ljust(width)}  {value}" for label, value in rows)
    return "\n".join(lines)


def format_account_row(account: SponsoredAccount) -> str:
    """Format one account as a table row."""
    return " | ".join([
        account.address[:8] + "...",
        account.type.value.ljust(6),
        format_sol(account.rent_lamports, decimals=4),
        account.status.value.ljust(9),
        account.classification.value,
    ])
