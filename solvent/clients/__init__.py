"""Solana client modules for Solvent.

This package provides the ledger client the pipeline reads from and submits
close transactions through.
"""

from solvent.clients.ledger_client import (
    AccountInfo,
    LedgerClient,
    ParsedTransaction,
    TokenAccountDetail,
    get_ledger_client,
)

__all__ = [
    'AccountInfo',
    'LedgerClient',
    'ParsedTransaction',
    'TokenAccountDetail',
    'get_ledger_client',
]
