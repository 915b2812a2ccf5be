"""
Data models for Solvent.

This module defines Pydantic models for the records that flow through the
pipeline: transaction signatures from the history scan, parsed account
creations, classified sponsored accounts, rent statistics and reclaim results.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from solvent.config import lamports_to_sol


class CreationKind(str, Enum):
    """Instruction shape an account was created with."""
    CREATE_ACCOUNT = "CreateAccount"
    CREATE_ASSOCIATED_TOKEN_ACCOUNT = "CreateAssociatedTokenAccount"


class AccountType(str, Enum):
    """Kind of account that was created."""
    ATA = "ATA"
    SYSTEM = "SYSTEM"
    PDA = "PDA"
    UNKNOWN = "UNKNOWN"


class AccountClassification(str, Enum):
    """Whether the fee payer can close the account itself."""
    RECLAIMABLE = "RECLAIMABLE"
    MONITOR_ONLY = "MONITOR_ONLY"


class AccountStatus(str, Enum):
    """Current lifecycle state of a sponsored account."""
    ACTIVE = "ACTIVE"
    CLOSEABLE = "CLOSEABLE"
    CLOSED = "CLOSED"


class TransactionInfo(BaseModel):
    """
    One entry of a fee payer's signature history.
    """
    model_config = ConfigDict(frozen=True)

    signature: str
    slot: int
    block_time: Optional[int] = None
    err: Optional[Any] = None

    @property
    def failed(self) -> bool:
        """Whether the transaction failed on chain."""
        return self.err is not None


class ParsedAccountCreation(BaseModel):
    """
    An account-creation event found inside a fee payer's transaction.
    
    ``lamports`` is zero for associated token account creations because the
    instruction does not carry the amount; the classifier reads it from
    the live account instead.
    """
    model_config = ConfigDict(frozen=True)

    account: str
    payer: str
    owner: str
    mint: Optional[str] = None
    kind: CreationKind
    signature: str
    block_time: Optional[int] = None
    lamports: int = 0


class SponsoredAccount(BaseModel):
    """
    Classified snapshot of an account the fee payer paid to create.
    """
    model_config = ConfigDict(frozen=True)

    address: str
    type: AccountType
    owner: str
    close_authority: Optional[str] = None
    mint: Optional[str] = None
    rent_lamports: int
    token_balance: int = 0
    classification: AccountClassification
    status: AccountStatus
    creation_signature: str
    created_at: Optional[datetime] = None

    @property
    def rent_sol(self) -> float:
        """Locked rent in SOL."""
        return lamports_to_sol(self.rent_lamports)

    @property
    def is_reclaimable(self) -> bool:
        """RECLAIMABLE, CLOSEABLE and holding no tokens."""
        return (
            self.classification == AccountClassification.RECLAIMABLE
            and self.status == AccountStatus.CLOSEABLE
            and self.token_balance == 0
        )


class RentStats(BaseModel):
    """
    Aggregate rent report over a list of sponsored accounts.
    
    Amounts are in lamports; the ``*_sol`` properties convert for display.
    Closed accounts are never counted.
    """
    model_config = ConfigDict(frozen=True)

    total_accounts: int = 0
    total_locked: int = 0
    reclaimable: int = 0
    monitor_only: int = 0
    closeable_accounts: int = 0
    reclaimable_accounts: int = 0

    @property
    def total_locked_sol(self) -> float:
        return lamports_to_sol(self.total_locked)

    @property
    def reclaimable_sol(self) -> float:
        return lamports_to_sol(self.reclaimable)

    @property
    def monitor_only_sol(self) -> float:
        return lamports_to_sol(self.monitor_only)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReclaimResult(BaseModel):
    """
    Outcome of one close-account attempt.
    
    A successful result without a signature is only valid for dry runs.
    """
    model_config = ConfigDict(frozen=True)

    account: str
    success: bool
    rent_reclaimed: int = 0
    signature: Optional[str] = None
    error: Optional[str] = None
    dry_run: bool = False
    timestamp: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def check_signature(self) -> "ReclaimResult":
        """Reject live successes that carry no transaction signature."""
        if self.success and self.signature is None and not self.dry_run:
            raise ValueError("a successful live reclaim must carry a transaction signature")
        return self

    @property
    def rent_reclaimed_sol(self) -> float:
        return lamports_to_sol(self.rent_reclaimed)

    @classmethod
    def failure(cls, account: str, error: str, dry_run: bool = False) -> "ReclaimResult":
        """Create a failed result.
        
        Args:
            account: Account address
            error: Error message
            dry_run: Whether the batch was a dry run
            
        Returns:
            ReclaimResult with success set to False
        """
        return cls(account=account, success=False, error=error, dry_run=dry_run)


class ScanDelta(BaseModel):
    """Change in closeable accounts and reclaimable rent between two scans."""
    model_config = ConfigDict(frozen=True)

    previous: RentStats
    current: RentStats

    @property
    def closeable_change(self) -> int:
        return self.current.closeable_accounts - self.previous.closeable_accounts

    @property
    def reclaimable_change(self) -> int:
        """Change in reclaimable rent, in lamports."""
        return self.current.reclaimable - self.previous.reclaimable

    @property
    def should_alert(self) -> bool:
        """Alert only when new accounts became closeable."""
        return self.closeable_change > 0


class ScanReport(BaseModel):
    """Classified accounts and statistics from one full scan of a fee payer."""
    model_config = ConfigDict(frozen=True)

    fee_payer: str
    network: str
    accounts: List[SponsoredAccount] = Field(default_factory=list)
    stats: RentStats = Field(default_factory=RentStats)
    scanned_at: datetime = Field(default_factory=_utcnow)
