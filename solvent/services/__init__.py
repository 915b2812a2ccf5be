"""Pipeline services for Solvent.

Scanner -> Classifier -> Analyzer (reporting) and/or Reclaimer (action).
"""

from solvent.services.analyzer import (
    calculate_rent_stats,
    compare_scans,
    filter_accounts,
    format_account_row,
    format_rent_stats,
    get_alertable_accounts,
    get_reclaimable_accounts,
)
from solvent.services.classifier import AccountClassifier
from solvent.services.reclaimer import ReclaimExecutor
from solvent.services.scanner import HistoryScanner, extract_account_creations

__all__ = [
    'AccountClassifier',
    'HistoryScanner',
    'ReclaimExecutor',
    'calculate_rent_stats',
    'compare_scans',
    'extract_account_creations',
    'filter_accounts',
    'format_account_row',
    'format_rent_stats',
    'get_alertable_accounts',
    'get_reclaimable_accounts',
]
