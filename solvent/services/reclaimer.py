"""Rent reclaimer for Solvent.

This module closes reclaimable accounts, sending their rent back to the fee
payer (or a chosen destination), one transaction at a time.
"""

from typing import List, Optional

from solders.keypair import Keypair

from solvent.constants import DEFAULT_BATCH_SIZE
from solvent.config import format_sol
from solvent.models import (
    AccountClassification,
    AccountStatus,
    ReclaimResult,
    SponsoredAccount,
)
from solvent.services.analyzer import get_reclaimable_accounts
from solvent.services.base_service import BaseService
from solvent.utils.errors import SignerRequiredError
from solvent.utils.validation import same_address, validate_limit, validate_solana_address


def total_reclaimed(results: List[ReclaimResult]) -> int:
    """Sum of reclaimed lamports over successful results."""
    return sum(r.rent_reclaimed for r in results if r.success)


def check_eligibility(account: SponsoredAccount) -> Optional[str]:
    """Return why an account may not be closed, or None if it may."""
    if account.classification != AccountClassification.RECLAIMABLE:
        return "Account is not reclaimable (close authority is not the fee payer)"
    if account.status != AccountStatus.CLOSEABLE:
        return f"Account is not closeable (status {account.status.value})"
    if account.token_balance != 0:
        return f"Account has non-zero balance: {account.token_balance}"
    return None


class ReclaimExecutor(BaseService):
    """Service that closes accounts and recovers their rent."""
    
    async def close_account(
        self,
        account: SponsoredAccount,
        authority: Optional[Keypair] = None,
        destination: Optional[str] = None,
        dry_run: bool = False
    ) -> ReclaimResult:
        """Close a single account.
        
        The account's record is checked first. In live mode its token state
        is then re-read so an account that received tokens since it was
        classified is rejected instead of submitted.
        
        Args:
            account: Classified account
            authority: Fee payer keypair, required unless ``dry_run``
            destination: Rent destination, defaults to the authority
            dry_run: Report what would happen without contacting the ledger
            
        Returns:
            ReclaimResult for the account
        """
        reason = check_eligibility(account)
        if reason:
            return ReclaimResult.failure(account.address, reason, dry_run=dry_run)
        
        if dry_run:
            return ReclaimResult(
                account=account.address,
                success=True,
                rent_reclaimed=account.rent_lamports,
                signature=None,
                dry_run=True,
            )
        
        if authority is None:
            raise SignerRequiredError()
        signer = str(authority.pubkey())
        
        try:
            detail = await self.client.get_token_account_detail(account.address)
            if detail is None:
                return ReclaimResult.failure(
                    account.address, "Account no longer exists or is not a token account"
                )
            if detail.balance != 0:
                return ReclaimResult.failure(
                    account.address, f"Account has non-zero balance: {detail.balance}"
                )
            if not same_address(detail.close_authority or detail.owner, signer):
                return ReclaimResult.failure(
                    account.address, f"Signer {signer} is not the account's close authority"
                )
            
            signature = await self.client.submit_close_instruction(
                account.address,
                destination or signer,
                authority,
                program_id=detail.program_id,
            )
        except Exception as e:
            self.logger.error(f"Failed to close {account.address}: {str(e)}")
            return ReclaimResult.failure(account.address, str(e))
        
        return ReclaimResult(
            account=account.address,
            success=True,
            rent_reclaimed=account.rent_lamports,
            signature=signature,
        )
    
    async def reclaim(
        self,
        accounts: List[SponsoredAccount],
        authority: Optional[Keypair] = None,
        dry_run: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
        destination: Optional[str] = None
    ) -> List[ReclaimResult]:
        """Close up to ``batch_size`` reclaimable accounts, in input order.
        
        Only RECLAIMABLE, CLOSEABLE accounts holding no tokens are selected.
        A failure on one account is recorded in its result and the batch
        moves on.
        
        Args:
            accounts: Classified accounts
            authority: Fee payer keypair, required unless ``dry_run``
            dry_run: Report what would happen without contacting the ledger
            batch_size: Maximum number of accounts to process
            destination: Rent destination, defaults to the authority
            
        Returns:
            One ReclaimResult per processed account
            
        Raises:
            SignerRequiredError: If ``authority`` is missing in live mode
            ValidationError: If ``batch_size`` or ``destination`` is invalid
        """
        validate_limit(batch_size, "batch_size")
        if destination is not None:
            validate_solana_address(destination, "destination")
        if not dry_run and authority is None:
            raise SignerRequiredError()
        
        eligible = get_reclaimable_accounts(accounts)
        if not eligible:
            self.logger.info("No accounts available for reclaim")
            return []
        
        prefix = "[DRY RUN] " if dry_run else ""
        to_process = eligible[:batch_size]
        self.logger.info(
            f"{prefix}Reclaiming rent from {len(to_process)} of {len(eligible)} accounts..."
        )
        
        results: List[ReclaimResult] = []
        for index, account in enumerate(to_process):
            if index > 0 and not dry_run:
                await self.pause(self.throttle.reclaim_delay)
            
            result = await self.close_account(account, authority, destination, dry_run)
            results.append(result)
            
            if result.success:
                self.logger.info(
                    f"  {prefix}Closed {account.address} -> {format_sol(result.rent_reclaimed)}"
                    + (f" ({result.signature})" if result.signature else "")
                )
            else:
                self.logger.warning(f"  Failed {account.address}: {result.error}")
        
        succeeded = [r for r in results if r.success]
        self.logger.info(
            f"{prefix}Reclaim summary: processed {len(results)}, "
            f"successful {len(succeeded)}, failed {len(results) - len(succeeded)}, "
            f"total reclaimed {format_sol(total_reclaimed(results))}"
        )
        return results
