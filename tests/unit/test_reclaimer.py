"""Unit tests for ReclaimExecutor.

This module tests batch selection, dry runs, live re-verification and
per-account failure isolation.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from solvent.clients.ledger_client import TokenAccountDetail
from solvent.constants import TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from solvent.models import AccountClassification, AccountStatus, ReclaimResult
from solvent.services.reclaimer import check_eligibility, total_reclaimed
from solvent.utils.errors import (
    SignerRequiredError,
    TransactionNotConfirmedError,
    ValidationError,
)
from tests.fixtures.common import ACCOUNT_ADDRESSES, MINT, THIRD_PARTY, WALLET


def live_detail(address, authority, balance=0, program_id=TOKEN_PROGRAM_ID):
    return TokenAccountDetail(
        address=address,
        mint=MINT,
        owner=WALLET,
        balance=balance,
        program_id=program_id,
        close_authority=authority,
    )


def reclaimable_accounts(make_account, count=3):
    return [
        make_account(address=address, rent_lamports=2_039_280 + i)
        for i, address in enumerate(ACCOUNT_ADDRESSES[:count])
    ]


@pytest.mark.asyncio
async def test_dry_run(reclaim_executor, mock_ledger_client, make_account):
    """Test that a dry run reports every eligible account without touching the ledger."""
    # Setup
    accounts = reclaimable_accounts(make_account)

    # Execute
    results = await reclaim_executor.reclaim(accounts, dry_run=True)

    # Verify
    assert [r.account for r in results] == [a.address for a in accounts]
    assert all(r.success and r.dry_run and r.signature is None for r in results)
    assert total_reclaimed(results) == sum(a.rent_lamports for a in accounts)
    assert not mock_ledger_client.get_token_account_detail.called
    assert not mock_ledger_client.submit_close_instruction.called


@pytest.mark.asyncio
async def test_live_batch_limit(reclaim_executor, mock_ledger_client, make_account, fee_payer_keypair, fee_payer):
    """Test that a batch size of 2 closes only the first two of three accounts."""
    # Setup
    accounts = reclaimable_accounts(make_account)
    mock_ledger_client.get_token_account_detail.side_effect = (
        lambda address: live_detail(address, fee_payer)
    )
    mock_ledger_client.submit_close_instruction.side_effect = ["closeSig1", "closeSig2"]

    # Execute
    results = await reclaim_executor.reclaim(accounts, authority=fee_payer_keypair, batch_size=2)

    # Verify
    assert [r.account for r in results] == [a.address for a in accounts[:2]]
    assert [r.signature for r in results] == ["closeSig1", "closeSig2"]
    assert all(r.success and not r.dry_run for r in results)
    assert total_reclaimed(results) == accounts[0].rent_lamports + accounts[1].rent_lamports
    assert mock_ledger_client.submit_close_instruction.call_count == 2
    first_call = mock_ledger_client.submit_close_instruction.call_args_list[0]
    assert first_call.args == (accounts[0].address, fee_payer, fee_payer_keypair)
    assert first_call.kwargs == {"program_id": TOKEN_PROGRAM_ID}


@pytest.mark.asyncio
async def test_live_rejects_account_that_gained_tokens(reclaim_executor, mock_ledger_client, make_account, fee_payer_keypair, fee_payer):
    """Test that an account funded since classification fails and the batch continues."""
    # Setup
    accounts = reclaimable_accounts(make_account, count=2)
    balances = {accounts[0].address: 1_000, accounts[1].address: 0}
    mock_ledger_client.get_token_account_detail.side_effect = (
        lambda address: live_detail(address, fee_payer, balance=balances[address])
    )
    mock_ledger_client.submit_close_instruction.return_value = "closeSig"

    # Execute
    results = await reclaim_executor.reclaim(accounts, authority=fee_payer_keypair)

    # Verify
    assert not results[0].success
    assert "non-zero balance" in results[0].error
    assert results[0].rent_reclaimed == 0
    assert results[1].success
    assert results[1].signature == "closeSig"
    mock_ledger_client.submit_close_instruction.assert_called_once()


@pytest.mark.asyncio
async def test_live_isolates_submission_failure(reclaim_executor, mock_ledger_client, make_account, fee_payer_keypair, fee_payer):
    """Test that a failed transaction is recorded and the batch continues."""
    # Setup
    accounts = reclaimable_accounts(make_account, count=2)
    mock_ledger_client.get_token_account_detail.side_effect = (
        lambda address: live_detail(address, fee_payer)
    )
    mock_ledger_client.submit_close_instruction.side_effect = [
        TransactionNotConfirmedError("Transaction expired", signature="expiredSig"),
        "closeSig",
    ]

    # Execute
    results = await reclaim_executor.reclaim(accounts, authority=fee_payer_keypair)

    # Verify
    assert [r.success for r in results] == [False, True]
    assert "expired" in results[0].error
    assert total_reclaimed(results) == accounts[1].rent_lamports


@pytest.mark.asyncio
async def test_live_rejects_closed_or_foreign_account(reclaim_executor, mock_ledger_client, make_account, fee_payer_keypair):
    """Test re-verification against a vanished account and a changed authority."""
    # Setup
    accounts = reclaimable_accounts(make_account, count=2)
    details = {
        accounts[0].address: None,
        accounts[1].address: live_detail(accounts[1].address, THIRD_PARTY),
    }
    mock_ledger_client.get_token_account_detail.side_effect = lambda address: details[address]

    # Execute
    results = await reclaim_executor.reclaim(accounts, authority=fee_payer_keypair)

    # Verify
    assert [r.success for r in results] == [False, False]
    assert "no longer exists" in results[0].error
    assert "close authority" in results[1].error
    assert not mock_ledger_client.submit_close_instruction.called


@pytest.mark.asyncio
async def test_live_uses_destination_and_token_2022(reclaim_executor, mock_ledger_client, make_account, fee_payer_keypair, fee_payer):
    """Test that rent goes to the chosen destination through the account's token program."""
    account = make_account()
    mock_ledger_client.get_token_account_detail.return_value = live_detail(
        account.address, fee_payer, program_id=TOKEN_2022_PROGRAM_ID
    )
    mock_ledger_client.submit_close_instruction.return_value = "closeSig"

    results = await reclaim_executor.reclaim(
        [account], authority=fee_payer_keypair, destination=THIRD_PARTY
    )

    assert results[0].success
    mock_ledger_client.submit_close_instruction.assert_called_once_with(
        account.address, THIRD_PARTY, fee_payer_keypair, program_id=TOKEN_2022_PROGRAM_ID
    )


@pytest.mark.asyncio
async def test_live_requires_signer(reclaim_executor, mock_ledger_client, make_account):
    """Test that live mode without a keypair is refused up front."""
    with pytest.raises(SignerRequiredError):
        await reclaim_executor.reclaim(reclaimable_accounts(make_account))
    assert not mock_ledger_client.get_token_account_detail.called


@pytest.mark.asyncio
async def test_reclaim_validates_arguments(reclaim_executor, make_account):
    """Test batch size and destination validation."""
    accounts = reclaimable_accounts(make_account)

    with pytest.raises(ValidationError):
        await reclaim_executor.reclaim(accounts, dry_run=True, batch_size=0)
    with pytest.raises(ValidationError):
        await reclaim_executor.reclaim(accounts, dry_run=True, destination="nope")


@pytest.mark.asyncio
async def test_reclaim_skips_ineligible_accounts(reclaim_executor, make_account):
    """Test that only RECLAIMABLE, CLOSEABLE, empty accounts are processed."""
    # Setup
    accounts = [
        make_account(address=ACCOUNT_ADDRESSES[0], classification=AccountClassification.MONITOR_ONLY),
        make_account(address=ACCOUNT_ADDRESSES[1], status=AccountStatus.ACTIVE, token_balance=5),
        make_account(address=ACCOUNT_ADDRESSES[2], status=AccountStatus.CLOSED),
        make_account(address=ACCOUNT_ADDRESSES[3]),
    ]

    # Execute
    results = await reclaim_executor.reclaim(accounts, dry_run=True)

    # Verify
    assert [r.account for r in results] == [ACCOUNT_ADDRESSES[3]]


@pytest.mark.asyncio
async def test_reclaim_nothing_eligible(reclaim_executor, make_account):
    """Test that an empty selection returns no results."""
    account = make_account(classification=AccountClassification.MONITOR_ONLY)

    assert await reclaim_executor.reclaim([account], dry_run=True) == []


@pytest.mark.asyncio
async def test_close_account_rejects_ineligible(reclaim_executor, mock_ledger_client, make_account, fee_payer_keypair):
    """Test that closing a single ineligible account fails without a ledger call."""
    account = make_account(classification=AccountClassification.MONITOR_ONLY)

    result = await reclaim_executor.close_account(account, fee_payer_keypair)

    assert not result.success
    assert "not reclaimable" in result.error
    assert not mock_ledger_client.get_token_account_detail.called


def test_check_eligibility(make_account):
    """Test the reasons an account may not be closed."""
    assert check_eligibility(make_account()) is None
    assert "not reclaimable" in check_eligibility(
        make_account(classification=AccountClassification.MONITOR_ONLY)
    )
    assert "ACTIVE" in check_eligibility(make_account(status=AccountStatus.ACTIVE))
    assert "non-zero balance: 7" in check_eligibility(make_account(token_balance=7))


def test_reclaim_result_requires_signature_when_live():
    """Test that a live success must carry a signature."""
    with pytest.raises(PydanticValidationError):
        ReclaimResult(account=ACCOUNT_ADDRESSES[0], success=True, rent_reclaimed=1)

    dry = ReclaimResult(account=ACCOUNT_ADDRESSES[0], success=True, dry_run=True)
    assert dry.signature is None
    failed = ReclaimResult.failure(ACCOUNT_ADDRESSES[0], "boom")
    assert not failed.success
    assert failed.rent_reclaimed == 0
