"""Solvent Package.

Rent monitoring and reclaim for Solana fee payers: scan the accounts a fee
payer sponsored, classify who can close them, report the rent they lock and
close the ones the fee payer has authority over.

Example:
    creations = await scan_and_parse_accounts(fee_payer, network_config)
    accounts = await classify_accounts(creations, fee_payer, network_config)
    stats = calculate_rent_stats(accounts)
"""

from solvent.config import (
    NetworkConfig,
    ThrottleConfig,
    format_sol,
    get_network_config,
    lamports_to_sol,
    sol_to_lamports,
)
from solvent.models import (
    AccountClassification,
    AccountStatus,
    AccountType,
    CreationKind,
    ParsedAccountCreation,
    ReclaimResult,
    RentStats,
    ScanReport,
    SponsoredAccount,
    TransactionInfo,
)
from solvent.pipeline import (
    classify_accounts,
    reclaim_rent,
    run_scan,
    scan_and_parse_accounts,
    scan_fee_payer_history,
)
from solvent.services.analyzer import (
    calculate_rent_stats,
    get_alertable_accounts,
    get_reclaimable_accounts,
)

__version__ = "0.1.0"
__author__ = "Solvent Contributors"
