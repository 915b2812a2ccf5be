"""Common test fixtures for Solvent tests.

This module provides fixtures that can be reused across different test modules.
"""

import pytest
from unittest.mock import AsyncMock

from solders.keypair import Keypair

from solvent.clients.ledger_client import LedgerClient, ParsedTransaction
from solvent.config import ThrottleConfig
from solvent.constants import ESTIMATED_TOKEN_ACCOUNT_RENT
from solvent.services.classifier import AccountClassifier
from solvent.services.reclaimer import ReclaimExecutor
from solvent.services.scanner import HistoryScanner
from solvent.models import (
    AccountClassification,
    AccountStatus,
    AccountType,
    CreationKind,
    ParsedAccountCreation,
    SponsoredAccount,
)

# Well-known addresses that are valid 32-byte public keys
THIRD_PARTY = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
WALLET = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
MINT = "So11111111111111111111111111111111111111112"
ACCOUNT_ADDRESSES = [
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB",
    "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
    "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr",
]


@pytest.fixture
def throttle():
    """Throttle with no delays so tests run instantly."""
    return ThrottleConfig.disabled()


@pytest.fixture
def mock_ledger_client():
    """Create a mock ledger client."""
    client = AsyncMock(spec=LedgerClient)
    client.get_account_info.return_value = None
    client.get_token_account_detail.return_value = None
    client.get_parsed_transaction.return_value = None
    client.get_signatures_for_address.return_value = []
    return client


@pytest.fixture
def fee_payer_keypair():
    """A fresh fee payer keypair."""
    return Keypair()


@pytest.fixture
def fee_payer(fee_payer_keypair):
    """The fee payer address."""
    return str(fee_payer_keypair.pubkey())


@pytest.fixture
def third_party():
    """An address that is not the fee payer."""
    return THIRD_PARTY


@pytest.fixture
def make_creation(fee_payer):
    """Factory for ParsedAccountCreation records."""
    def _make(
        account=ACCOUNT_ADDRESSES[0],
        kind=CreationKind.CREATE_ASSOCIATED_TOKEN_ACCOUNT,
        owner=WALLET,
        mint=MINT,
        lamports=0,
        signature="sig-create",
        block_time=1_700_000_000,
    ):
        return ParsedAccountCreation(
            account=account,
            payer=fee_payer,
            owner=owner,
            mint=mint if kind == CreationKind.CREATE_ASSOCIATED_TOKEN_ACCOUNT else None,
            kind=kind,
            signature=signature,
            block_time=block_time,
            lamports=lamports,
        )
    return _make


@pytest.fixture
def make_account(fee_payer):
    """Factory for SponsoredAccount records."""
    def _make(
        address=ACCOUNT_ADDRESSES[0],
        classification=AccountClassification.RECLAIMABLE,
        status=AccountStatus.CLOSEABLE,
        rent_lamports=ESTIMATED_TOKEN_ACCOUNT_RENT,
        token_balance=0,
        close_authority=None,
    ):
        return SponsoredAccount(
            address=address,
            type=AccountType.ATA,
            owner=WALLET,
            close_authority=close_authority or fee_payer,
            mint=MINT,
            rent_lamports=rent_lamports,
            token_balance=token_balance,
            classification=classification,
            status=status,
            creation_signature="sig-create",
        )
    return _make


def system_create_ix(new_account, source, owner, lamports=1_000_000):
    """A jsonParsed System Program createAccount instruction."""
    return {
        "program": "system",
        "programId": "11111111111111111111111111111111",
        "parsed": {
            "type": "createAccount",
            "info": {
                "newAccount": new_account,
                "source": source,
                "owner": owner,
                "lamports": lamports,
                "space": 165,
            },
        },
    }


def ata_create_ix(account, source, wallet, mint=MINT, instruction_type="create"):
    """A jsonParsed Associated Token Account creation instruction."""
    return {
        "program": "spl-associated-token-account",
        "programId": "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
        "parsed": {
            "type": instruction_type,
            "info": {
                "account": account,
                "source": source,
                "wallet": wallet,
                "mint": mint,
                "systemProgram": "11111111111111111111111111111111",
                "tokenProgram": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
            },
        },
    }


@pytest.fixture
def make_transaction(fee_payer):
    """Factory for ParsedTransaction records."""
    def _make(signature="sig1", instructions=None, inner_instructions=None,
              payer=None, block_time=1_700_000_000):
        return ParsedTransaction(
            signature=signature,
            fee_payer=payer or fee_payer,
            instructions=instructions or [],
            inner_instructions=inner_instructions or [],
            block_time=block_time,
        )
    return _make


@pytest.fixture
def history_scanner(mock_ledger_client, throttle):
    """Create a HistoryScanner over the mock client."""
    return HistoryScanner(mock_ledger_client, throttle=throttle)


@pytest.fixture
def account_classifier(mock_ledger_client, throttle):
    """Create an AccountClassifier over the mock client."""
    return AccountClassifier(mock_ledger_client, throttle=throttle)


@pytest.fixture
def reclaim_executor(mock_ledger_client, throttle):
    """Create a ReclaimExecutor over the mock client."""
    return ReclaimExecutor(mock_ledger_client, throttle=throttle)
