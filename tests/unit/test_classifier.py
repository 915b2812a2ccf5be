"""Unit tests for AccountClassifier.

This module tests how live account state maps to type, status and
classification.
"""

from datetime import datetime, timezone

import pytest

from solvent.clients.ledger_client import AccountInfo, TokenAccountDetail
from solvent.constants import ESTIMATED_TOKEN_ACCOUNT_RENT, TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from solvent.models import AccountClassification, AccountStatus, AccountType, CreationKind
from solvent.utils.errors import RpcError
from tests.fixtures.common import ACCOUNT_ADDRESSES, MINT, THIRD_PARTY, WALLET


def token_info(address, lamports=2_039_280, owner=TOKEN_PROGRAM_ID):
    return AccountInfo(address=address, lamports=lamports, owner=owner, space=165)


def token_detail(address, balance=0, owner=WALLET, close_authority=None, program_id=TOKEN_PROGRAM_ID):
    return TokenAccountDetail(
        address=address,
        mint=MINT,
        owner=owner,
        balance=balance,
        program_id=program_id,
        close_authority=close_authority,
    )


@pytest.mark.asyncio
async def test_classify_reclaimable_empty_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test an empty ATA whose close authority is the fee payer."""
    # Setup
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.return_value = token_detail(
        creation.account, close_authority=fee_payer
    )

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.type == AccountType.ATA
    assert account.status == AccountStatus.CLOSEABLE
    assert account.classification == AccountClassification.RECLAIMABLE
    assert account.rent_lamports == 2_039_280
    assert account.close_authority == fee_payer
    assert account.token_balance == 0
    assert account.is_reclaimable
    assert account.created_at == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)


@pytest.mark.asyncio
async def test_classify_user_owned_empty_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test an empty ATA owned and closeable only by the user."""
    # Setup
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.return_value = token_detail(creation.account)

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.status == AccountStatus.CLOSEABLE
    assert account.classification == AccountClassification.MONITOR_ONLY
    assert account.close_authority == WALLET
    assert not account.is_reclaimable


@pytest.mark.asyncio
async def test_classify_closed_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test an account that no longer exists."""
    # Setup
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = None

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.status == AccountStatus.CLOSED
    assert account.classification == AccountClassification.MONITOR_ONLY
    assert account.rent_lamports == ESTIMATED_TOKEN_ACCOUNT_RENT
    assert account.close_authority is None
    assert not mock_ledger_client.get_token_account_detail.called


@pytest.mark.asyncio
async def test_classify_closed_system_account_keeps_recorded_lamports(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that a closed system account reports the lamports it was funded with."""
    creation = make_creation(kind=CreationKind.CREATE_ACCOUNT, lamports=1_461_600)
    mock_ledger_client.get_account_info.return_value = None

    account = await account_classifier.classify(creation, fee_payer)

    assert account.type == AccountType.SYSTEM
    assert account.status == AccountStatus.CLOSED
    assert account.rent_lamports == 1_461_600


@pytest.mark.asyncio
async def test_classify_active_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that a token balance makes the account ACTIVE even when reclaimable."""
    # Setup
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.return_value = token_detail(
        creation.account, balance=5_000, close_authority=fee_payer
    )

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.status == AccountStatus.ACTIVE
    assert account.classification == AccountClassification.RECLAIMABLE
    assert account.token_balance == 5_000
    assert not account.is_reclaimable


@pytest.mark.asyncio
async def test_classify_fee_payer_owned_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that a fee payer that owns the token account may close it."""
    # Setup
    creation = make_creation(owner=fee_payer)
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.return_value = token_detail(
        creation.account, owner=fee_payer
    )

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.close_authority == fee_payer
    assert account.classification == AccountClassification.RECLAIMABLE


@pytest.mark.asyncio
async def test_classify_token_2022_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that Token-2022 accounts classify like SPL token accounts."""
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(
        creation.account, owner=TOKEN_2022_PROGRAM_ID
    )
    mock_ledger_client.get_token_account_detail.return_value = token_detail(
        creation.account, close_authority=fee_payer, program_id=TOKEN_2022_PROGRAM_ID
    )

    account = await account_classifier.classify(creation, fee_payer)

    assert account.classification == AccountClassification.RECLAIMABLE
    assert account.status == AccountStatus.CLOSEABLE


@pytest.mark.asyncio
async def test_classify_token_read_failure(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that an unreadable token state falls back to no authority and zero balance."""
    # Setup
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.side_effect = RpcError("bad gateway")

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.close_authority is None
    assert account.token_balance == 0
    assert account.status == AccountStatus.CLOSEABLE
    assert account.classification == AccountClassification.MONITOR_ONLY


@pytest.mark.asyncio
async def test_classify_system_account(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test a plain system-created account owned by another program."""
    # Setup
    creation = make_creation(kind=CreationKind.CREATE_ACCOUNT, owner=THIRD_PARTY, lamports=1_000_000)
    mock_ledger_client.get_account_info.return_value = AccountInfo(
        address=creation.account, lamports=1_200_000, owner=THIRD_PARTY
    )

    # Execute
    account = await account_classifier.classify(creation, fee_payer)

    # Verify
    assert account.type == AccountType.SYSTEM
    assert account.rent_lamports == 1_200_000
    assert account.classification == AccountClassification.MONITOR_ONLY
    assert not mock_ledger_client.get_token_account_detail.called


@pytest.mark.asyncio
async def test_classify_is_deterministic(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that the same ledger state always produces the same record."""
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.return_value = token_detail(
        creation.account, close_authority=fee_payer
    )

    first = await account_classifier.classify(creation, fee_payer)
    second = await account_classifier.classify(creation, fee_payer)

    assert first == second


@pytest.mark.asyncio
async def test_classify_all_isolates_failures(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that one failing account does not stop the batch."""
    # Setup
    creations = [make_creation(account=address) for address in ACCOUNT_ADDRESSES[:3]]

    async def _get_account_info(address):
        if address == ACCOUNT_ADDRESSES[1]:
            raise RpcError("timeout")
        return token_info(address)

    mock_ledger_client.get_account_info.side_effect = _get_account_info
    mock_ledger_client.get_token_account_detail.return_value = None

    # Execute
    accounts = await account_classifier.classify_all(creations, fee_payer)

    # Verify
    assert [a.address for a in accounts] == [ACCOUNT_ADDRESSES[0], ACCOUNT_ADDRESSES[2]]
    assert mock_ledger_client.get_account_info.call_count == 3


@pytest.mark.asyncio
async def test_classify_all_empty(account_classifier, mock_ledger_client, fee_payer):
    """Test classifying nothing."""
    assert await account_classifier.classify_all([], fee_payer) == []
    assert not mock_ledger_client.get_account_info.called


@pytest.mark.asyncio
async def test_classify_all_keeps_account_on_unexpected_token_error(account_classifier, mock_ledger_client, make_creation, fee_payer):
    """Test that any token read failure falls back to defaults instead of dropping the account."""
    # Setup
    creation = make_creation()
    mock_ledger_client.get_account_info.return_value = token_info(creation.account)
    mock_ledger_client.get_token_account_detail.side_effect = AttributeError(
        "'str' object has no attribute 'get'"
    )

    # Execute
    accounts = await account_classifier.classify_all([creation], fee_payer)

    # Verify
    assert len(accounts) == 1
    assert accounts[0].token_balance == 0
    assert accounts[0].close_authority is None
    assert accounts[0].classification == AccountClassification.MONITOR_ONLY
