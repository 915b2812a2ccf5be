"""Account classifier for Solvent.

This module reads the live state of each created account and decides
whether it still exists, whether it is empty, and whether the fee payer
holds the authority to close it.
"""

from datetime import datetime, timezone
from typing import List, Optional

from solvent.constants import ESTIMATED_TOKEN_ACCOUNT_RENT, PROGRESS_INTERVAL
from solvent.models import (
    AccountClassification,
    AccountStatus,
    AccountType,
    CreationKind,
    ParsedAccountCreation,
    SponsoredAccount,
)
from solvent.services.base_service import BaseService
from solvent.utils.validation import same_address


def _created_at(block_time: Optional[int]) -> Optional[datetime]:
    if block_time is None:
        return None
    return datetime.fromtimestamp(block_time, tz=timezone.utc)


def _is_token_creation(creation: ParsedAccountCreation) -> bool:
    return (
        creation.kind == CreationKind.CREATE_ASSOCIATED_TOKEN_ACCOUNT
        or creation.mint is not None
    )


class AccountClassifier(BaseService):
    """Service that turns account creations into classified accounts."""
    
    async def classify(
        self,
        creation: ParsedAccountCreation,
        fee_payer: str
    ) -> SponsoredAccount:
        """Classify a single account creation against live ledger state.
        
        Args:
            creation: Account creation found by the scanner
            fee_payer: Fee payer address
            
        Returns:
            SponsoredAccount snapshot
            
        Raises:
            SolventError: If the account state cannot be read
        """
        is_token = _is_token_creation(creation)
        account_info = await self.client.get_account_info(creation.account)
        
        if account_info is None:
            return SponsoredAccount(
                address=creation.account,
                type=AccountType.ATA if is_token else AccountType.SYSTEM,
                owner=creation.owner,
                close_authority=None,
                mint=creation.mint,
                rent_lamports=creation.lamports or ESTIMATED_TOKEN_ACCOUNT_RENT,
                token_balance=0,
                classification=AccountClassification.MONITOR_ONLY,
                status=AccountStatus.CLOSED,
                creation_signature=creation.signature,
                created_at=_created_at(creation.block_time),
            )
        
        # Current lamports win over the amount transferred at creation
        rent_lamports = account_info.lamports
        close_authority: Optional[str] = None
        token_balance = 0
        
        if is_token:
            account_type = AccountType.ATA
            try:
                detail = await self.client.get_token_account_detail(creation.account)
            except Exception as e:
                self.logger.warning(
                    f"Could not read token state of {creation.account}: {str(e)}"
                )
                detail = None
            
            if detail is not None:
                token_balance = detail.balance
                # Without an explicit close authority the token owner may close
                close_authority = detail.close_authority or detail.owner
        else:
            account_type = AccountType.SYSTEM
        
        status = AccountStatus.CLOSEABLE if token_balance == 0 else AccountStatus.ACTIVE
        
        classification = AccountClassification.MONITOR_ONLY
        if close_authority and same_address(close_authority, fee_payer):
            classification = AccountClassification.RECLAIMABLE
        if same_address(creation.owner, fee_payer):
            classification = AccountClassification.RECLAIMABLE
        
        return SponsoredAccount(
            address=creation.account,
            type=account_type,
            owner=creation.owner,
            close_authority=close_authority,
            mint=creation.mint,
            rent_lamports=rent_lamports,
            token_balance=token_balance,
            classification=classification,
            status=status,
            creation_signature=creation.signature,
            created_at=_created_at(creation.block_time),
        )
    
    async def classify_all(
        self,
        creations: List[ParsedAccountCreation],
        fee_payer: str
    ) -> List[SponsoredAccount]:
        """Classify creations one at a time, in input order.
        
        A creation that fails to classify is logged and left out; the rest
        of the batch continues.
        
        Args:
            creations: Account creations from the scanner
            fee_payer: Fee payer address
            
        Returns:
            List of SponsoredAccount for every creation that classified
        """
        self.logger.info(f"Classifying {len(creations)} accounts...")
        accounts: List[SponsoredAccount] = []
        
        for index, creation in enumerate(creations, start=1):
            try:
                accounts.append(await self.classify(creation, fee_payer))
            except Exception as e:
                self.logger.error(f"  Failed to classify {creation.account}: {str(e)}")
            
            if index % PROGRESS_INTERVAL == 0:
                reclaimable = sum(
                    1 for a in accounts
                    if a.classification == AccountClassification.RECLAIMABLE
                )
                self.logger.info(
                    f"  Classified {index}/{len(creations)} ({reclaimable} reclaimable)"
                )
            
            if index < len(creations):
                await self.pause(self.throttle.classify_delay)
        
        reclaimable = sum(1 for a in accounts if a.classification == AccountClassification.RECLAIMABLE)
        closeable = sum(1 for a in accounts if a.status == AccountStatus.CLOSEABLE)
        self.logger.info(
            f"Classification complete: {len(accounts)} total, "
            f"{reclaimable} reclaimable, {closeable} closeable"
        )
        return accounts
