"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    throttle,
    mock_ledger_client,
    fee_payer_keypair,
    fee_payer,
    third_party,
    make_creation,
    make_account,
    make_transaction,
    history_scanner,
    account_classifier,
    reclaim_executor,
)
