"""History scanner for Solvent.

This module walks a fee payer's signature history page by page and extracts
the account creations the fee payer funded from each successful transaction.
"""

from typing import Any, Dict, List, Optional, Set

from solvent.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_NAME,
    CREATE_ACCOUNT_TYPE,
    CREATE_ATA_TYPES,
    DEFAULT_SCAN_LIMIT,
    PROGRESS_INTERVAL,
    SIGNATURE_PAGE_SIZE,
    SYSTEM_PROGRAM_ID,
    SYSTEM_PROGRAM_NAME,
)
from solvent.clients.ledger_client import ParsedTransaction
from solvent.models import CreationKind, ParsedAccountCreation, TransactionInfo
from solvent.services.base_service import BaseService
from solvent.utils.errors import ScanError, SolventError
from solvent.utils.validation import same_address, validate_limit, validate_solana_address


def _is_program(instruction: Dict[str, Any], name: str, program_id: str) -> bool:
    return instruction.get("program") == name or instruction.get("programId") == program_id


def parse_creation_instruction(
    instruction: Dict[str, Any],
    signature: str,
    block_time: Optional[int] = None
) -> Optional[ParsedAccountCreation]:
    """Recognize a single jsonParsed instruction as an account creation.
    
    Two shapes are recognized: the System Program's ``createAccount`` and
    the Associated Token Account program's ``create`` / ``createIdempotent``.
    
    Args:
        instruction: A jsonParsed instruction
        signature: Signature of the enclosing transaction
        block_time: Block time of the enclosing transaction
        
    Returns:
        ParsedAccountCreation, or None if the instruction is not a creation
    """
    parsed = instruction.get("parsed")
    if not isinstance(parsed, dict):
        return None
    
    info = parsed.get("info") or {}
    instruction_type = parsed.get("type")
    
    if (_is_program(instruction, SYSTEM_PROGRAM_NAME, SYSTEM_PROGRAM_ID)
            and instruction_type == CREATE_ACCOUNT_TYPE):
        return ParsedAccountCreation(
            account=info["newAccount"],
            payer=info["source"],
            owner=info["owner"],
            mint=None,
            kind=CreationKind.CREATE_ACCOUNT,
            signature=signature,
            block_time=block_time,
            lamports=int(info.get("lamports", 0)),
        )
    
    if (_is_program(instruction, ASSOCIATED_TOKEN_PROGRAM_NAME, ASSOCIATED_TOKEN_PROGRAM_ID)
            and instruction_type in CREATE_ATA_TYPES):
        return ParsedAccountCreation(
            account=info["account"],
            payer=info["source"],
            owner=info["wallet"],
            mint=info.get("mint"),
            kind=CreationKind.CREATE_ASSOCIATED_TOKEN_ACCOUNT,
            signature=signature,
            block_time=block_time,
            lamports=0,
        )
    
    return None


def extract_account_creations(transaction: ParsedTransaction) -> List[ParsedAccountCreation]:
    """Extract account creations from a parsed transaction.
    
    Top-level instructions are read first, then inner instructions. An
    address is recorded once; later occurrences (typically the System
    Program ``createAccount`` an ATA creation invokes internally) are dropped.
    
    Args:
        transaction: Parsed transaction
        
    Returns:
        List of creations in instruction order
    """
    creations: List[ParsedAccountCreation] = []
    seen: Set[str] = set()
    
    for instruction in [*transaction.instructions, *transaction.inner_instructions]:
        creation = parse_creation_instruction(
            instruction, transaction.signature, transaction.block_time
        )
        if creation is None or creation.account in seen:
            continue
        seen.add(creation.account)
        creations.append(creation)
    
    return creations


class HistoryScanner(BaseService):
    """Service that finds the accounts a fee payer paid to create."""
    
    async def scan_history(
        self,
        fee_payer: str,
        limit: int = DEFAULT_SCAN_LIMIT
    ) -> List[TransactionInfo]:
        """Fetch a fee payer's signature history, newest first.
        
        Pages of at most ``SIGNATURE_PAGE_SIZE`` signatures are requested
        with the last signature of each page as the ``before`` cursor of the
        next. Pagination stops at ``limit`` or on a short page.
        
        Args:
            fee_payer: Fee payer address
            limit: Maximum number of signatures to return
            
        Returns:
            List of TransactionInfo, at most ``limit`` long
            
        Raises:
            ScanError: If the first page cannot be fetched
            InvalidPublicKeyError: If the fee payer address is malformed
        """
        validate_solana_address(fee_payer, "fee payer")
        validate_limit(limit)
        
        self.logger.info(f"Scanning transaction history for {fee_payer}...")
        signatures: List[TransactionInfo] = []
        before: Optional[str] = None
        
        while len(signatures) < limit:
            page_limit = min(SIGNATURE_PAGE_SIZE, limit - len(signatures))
            try:
                page = await self.client.get_signatures_for_address(
                    fee_payer, before=before, limit=page_limit
                )
            except SolventError as e:
                if before is None:
                    raise ScanError(
                        f"Failed to fetch signature history for {fee_payer}: {e}",
                        address=fee_payer,
                        cause=e
                    ) from e
                self.logger.warning(
                    f"Stopping pagination after {len(signatures)} signatures: {e}"
                )
                break
            
            signatures.extend(page[:page_limit])
            self.logger.info(f"  Fetched {len(signatures)} signatures...")
            
            if len(page) < page_limit:
                break
            before = page[-1].signature
            
            if len(signatures) < limit:
                await self.pause(self.throttle.page_delay)
        
        self.logger.info(f"Found {len(signatures)} total transactions")
        return signatures
    
    async def parse_transaction(
        self,
        signature: str,
        fee_payer: str
    ) -> List[ParsedAccountCreation]:
        """Fetch one transaction and extract the creations it contains.
        
        Transactions whose fee payer is not ``fee_payer`` yield nothing.
        
        Args:
            signature: Transaction signature
            fee_payer: Expected fee payer address
            
        Returns:
            List of creations, empty if the transaction is absent or foreign
        """
        transaction = await self.client.get_parsed_transaction(signature)
        if transaction is None:
            return []
        
        if not same_address(transaction.fee_payer, fee_payer):
            self.logger.debug(
                f"Skipping {signature}: fee payer {transaction.fee_payer} is not {fee_payer}"
            )
            return []
        
        return extract_account_creations(transaction)
    
    async def scan_and_parse(
        self,
        fee_payer: str,
        limit: int = DEFAULT_SCAN_LIMIT
    ) -> List[ParsedAccountCreation]:
        """Scan the history and parse every successful transaction.
        
        A transaction that fails to fetch or parse is logged and skipped.
        Each address is reported once per scan, from the newest transaction
        that created it.
        
        Args:
            fee_payer: Fee payer address
            limit: Maximum number of signatures to scan
            
        Returns:
            List of ParsedAccountCreation
        """
        transactions = await self.scan_history(fee_payer, limit)
        successful = [tx for tx in transactions if not tx.failed]
        self.logger.info(f"Parsing {len(successful)} successful transactions...")
        
        creations: List[ParsedAccountCreation] = []
        seen: Set[str] = set()
        
        for index, tx in enumerate(successful, start=1):
            try:
                found = await self.parse_transaction(tx.signature, fee_payer)
            except Exception as e:
                self.logger.error(f"  Failed to parse {tx.signature}: {str(e)}")
                found = []
            
            for creation in found:
                if creation.account in seen:
                    self.logger.debug(
                        f"  {creation.account} already recorded, ignoring creation in {tx.signature}"
                    )
                    continue
                seen.add(creation.account)
                creations.append(creation)
            
            if index % PROGRESS_INTERVAL == 0:
                self.logger.info(
                    f"  Parsed {index}/{len(successful)} transactions, "
                    f"found {len(creations)} account creations"
                )
            
            if index < len(successful):
                await self.pause(self.throttle.parse_delay)
        
        self.logger.info(f"Found {len(creations)} total account creations")
        return creations
