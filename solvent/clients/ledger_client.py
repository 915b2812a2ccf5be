"""Ledger client for Solvent.

This module wraps the Solana JSON-RPC methods the rent pipeline needs:
signature history, parsed transactions, account and token-account state,
and submission of signed close-account transactions.
"""

# Standard library imports
import asyncio
import base64
import json
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Third-party library imports
import httpx
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.instructions import close_account
from spl.token.models import CloseAccountParams

# Internal imports
from solvent.config import NetworkConfig, get_network_config
from solvent.constants import SIGNATURE_PAGE_SIZE, TOKEN_PROGRAM_ID, TOKEN_PROGRAM_IDS
from solvent.logging_config import get_logger
from solvent.models import TransactionInfo
from solvent.utils.errors import (
    RpcConnectionError,
    RpcError,
    RpcTimeoutError,
    TransactionNotConfirmedError,
)
from solvent.utils.validation import validate_solana_address

# Get logger
logger = get_logger(__name__)

RETRIABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
RATE_LIMIT_RPC_CODE = -32005

# Statuses that satisfy each commitment level
CONFIRMATION_LEVELS = {
    "processed": ("processed", "confirmed", "finalized"),
    "confirmed": ("confirmed", "finalized"),
    "finalized": ("finalized",),
}


@dataclass
class AccountInfo:
    """Live state of an account that exists on chain."""
    
    address: str
    lamports: int
    owner: str
    executable: bool = False
    space: Optional[int] = None


@dataclass
class TokenAccountDetail:
    """Parsed SPL token account state."""
    
    address: str
    mint: str
    owner: str
    balance: int
    program_id: str = TOKEN_PROGRAM_ID
    close_authority: Optional[str] = None
    state: str = "initialized"


@dataclass
class ParsedTransaction:
    """The parts of a jsonParsed transaction the scanner reads.
    
    ``inner_instructions`` is flattened across all top-level instruction
    indexes, preserving the order the node returned them in.
    """
    
    signature: str
    fee_payer: str
    instructions: List[Dict[str, Any]] = field(default_factory=list)
    inner_instructions: List[Dict[str, Any]] = field(default_factory=list)
    block_time: Optional[int] = None
    err: Optional[Any] = None


def _account_key(key: Any) -> str:
    """Account keys are dicts in jsonParsed responses and strings otherwise."""
    if isinstance(key, dict):
        return key.get("pubkey", "")
    return str(key)


class LedgerClient:
    """Async JSON-RPC client for the Solana ledger."""
    
    def __init__(
        self,
        config: Optional[NetworkConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_delay: float = 1.0,
        max_retry_delay: float = 10.0,
    ):
        """Initialize the ledger client.
        
        Args:
            config: Network configuration. Defaults to environment-based config.
            http_client: Optional pre-built httpx client (used by tests)
            retry_delay: Initial backoff before retrying a transient failure
            max_retry_delay: Backoff ceiling in seconds
        """
        self.config = config or get_network_config()
        self.headers = {"Content-Type": "application/json"}
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._request_id = 0
    
    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
            )
            self._owns_http_client = True
        return self._http_client
    
    def _backoff(self, retry_count: int) -> float:
        return min(self.retry_delay * (2 ** retry_count), self.max_retry_delay)
    
    async def _make_request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make a JSON-RPC request to the Solana node.
        
        Transient failures (HTTP 408/429/5xx, network errors, timeouts and
        the node's rate-limit error) are retried with capped exponential
        backoff up to ``config.max_retries`` times.
        
        Args:
            method: The RPC method to call
            params: The parameters to pass to the method
            
        Returns:
            The ``result`` member of the JSON-RPC response
            
        Raises:
            RpcError: If the RPC server returns an error or an unusable response
            RpcTimeoutError: If the request times out on every attempt
            RpcConnectionError: If the node cannot be reached on every attempt
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or []
        }
        max_retries = self.config.max_retries
        client = self._get_http_client()
        
        for retry_count in range(max_retries + 1):
            can_retry = retry_count < max_retries
            if retry_count > 0:
                logger.info(f"Retry attempt {retry_count}/{max_retries} for {method}")
            
            try:
                response = await client.post(
                    self.config.rpc_url,
                    headers=self.headers,
                    json=payload
                )
            except httpx.TimeoutException as e:
                if can_retry:
                    wait_time = self._backoff(retry_count)
                    logger.warning(f"Timeout calling {method}, retrying in {wait_time}s")
                    await asyncio.sleep(wait_time)
                    continue
                raise RpcTimeoutError(
                    f"Solana RPC request timed out: {method}", timeout=self.config.timeout
                ) from e
            except httpx.RequestError as e:
                if can_retry:
                    wait_time = self._backoff(retry_count)
                    logger.warning(f"Request failed, retrying in {wait_time}s: {str(e)}")
                    await asyncio.sleep(wait_time)
                    continue
                raise RpcConnectionError(f"Could not reach Solana RPC for {method}: {str(e)}") from e
            
            if response.status_code in RETRIABLE_STATUS_CODES and can_retry:
                wait_time = self._backoff(retry_count)
                logger.warning(f"HTTP status {response.status_code}, retrying in {wait_time}s: {method}")
                await asyncio.sleep(wait_time)
                continue
            
            if response.status_code >= 400:
                raise RpcError(
                    f"Solana RPC HTTP error {response.status_code} for {method}",
                    {"status_code": response.status_code}
                )
            
            try:
                body = response.json()
            except json.JSONDecodeError as e:
                raise RpcError(f"Invalid JSON from Solana RPC for {method}: {str(e)}") from e
            
            if "error" in body:
                error = body["error"] or {}
                message = f"Solana RPC error: {error.get('message', 'Unknown error')}"
                if "data" in error:
                    message += f" - {json.dumps(error['data'])}"
                
                if ("rate limited" in message.lower() or
                        error.get("code") == RATE_LIMIT_RPC_CODE) and can_retry:
                    wait_time = self._backoff(retry_count)
                    logger.warning(f"Rate limited, retrying in {wait_time}s: {method}")
                    await asyncio.sleep(wait_time)
                    continue
                
                raise RpcError(message, error)
            
            if "result" not in body:
                raise RpcError(f"Solana RPC response for {method} has no result")
            return body["result"]
        
        # Only reachable when max_retries is negative
        raise RpcError(f"No attempt was made for {method}")
    
    async def get_signatures_for_address(
        self,
        address: str,
        before: Optional[str] = None,
        limit: int = SIGNATURE_PAGE_SIZE,
    ) -> List[TransactionInfo]:
        """Get one page of an address's signature history, newest first.
        
        Args:
            address: The account public key
            before: Only return signatures older than this one
            limit: Page size (the node caps this at 1000)
            
        Returns:
            List of TransactionInfo
        """
        validate_solana_address(address)
        options: Dict[str, Any] = {"limit": limit, "commitment": self.config.commitment}
        if before:
            options["before"] = before
        
        result = await self._make_request("getSignaturesForAddress", [address, options])
        return [
            TransactionInfo(
                signature=entry["signature"],
                slot=entry.get("slot", 0),
                block_time=entry.get("blockTime"),
                err=entry.get("err"),
            )
            for entry in result or []
        ]
    
    async def get_parsed_transaction(self, signature: str) -> Optional[ParsedTransaction]:
        """Get a transaction in jsonParsed encoding.
        
        Args:
            signature: The transaction signature
            
        Returns:
            ParsedTransaction, or None if the node does not have it
        """
        result = await self._make_request(
            "getTransaction",
            [signature, {
                "encoding": "jsonParsed",
                "maxSupportedTransactionVersion": 0,
                "commitment": self.config.commitment,
            }]
        )
        if not result or not result.get("meta"):
            return None
        
        message = result.get("transaction", {}).get("message", {})
        account_keys = message.get("accountKeys") or []
        inner: List[Dict[str, Any]] = []
        for group in result["meta"].get("innerInstructions") or []:
            inner.extend(group.get("instructions") or [])
        
        return ParsedTransaction(
            signature=signature,
            fee_payer=_account_key(account_keys[0]) if account_keys else "",
            instructions=list(message.get("instructions") or []),
            inner_instructions=inner,
            block_time=result.get("blockTime"),
            err=result["meta"].get("err"),
        )
    
    async def get_account_info(self, address: str) -> Optional[AccountInfo]:
        """Get an account's lamports and owning program.
        
        Args:
            address: The account public key
            
        Returns:
            AccountInfo, or None if the account does not exist
        """
        validate_solana_address(address)
        result = await self._make_request(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self.config.commitment}]
        )
        value = (result or {}).get("value")
        if value is None:
            return None
        return AccountInfo(
            address=address,
            lamports=int(value.get("lamports", 0)),
            owner=value.get("owner", ""),
            executable=bool(value.get("executable", False)),
            space=value.get("space"),
        )
    
    async def get_token_account_detail(self, address: str) -> Optional[TokenAccountDetail]:
        """Get parsed SPL token account state.
        
        Args:
            address: The token account public key
            
        Returns:
            TokenAccountDetail, or None if the account does not exist or is
            not a token account
        """
        validate_solana_address(address)
        result = await self._make_request(
            "getAccountInfo",
            [address, {"encoding": "jsonParsed", "commitment": self.config.commitment}]
        )
        value = (result or {}).get("value")
        if value is None or value.get("owner") not in TOKEN_PROGRAM_IDS:
            return None
        
        data = value.get("data")
        parsed = data.get("parsed") if isinstance(data, dict) else None
        if not parsed or parsed.get("type") != "account":
            return None
        
        info = parsed.get("info", {})
        return TokenAccountDetail(
            address=address,
            mint=info.get("mint", ""),
            owner=info.get("owner", ""),
            balance=int(info.get("tokenAmount", {}).get("amount", "0")),
            program_id=value["owner"],
            close_authority=info.get("closeAuthority"),
            state=info.get("state", "initialized"),
        )
    
    async def get_latest_blockhash(self) -> str:
        """Get a recent blockhash to sign transactions against."""
        result = await self._make_request(
            "getLatestBlockhash", [{"commitment": self.config.commitment}]
        )
        return result["value"]["blockhash"]
    
    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """Submit a signed, serialized transaction.
        
        Returns:
            The transaction signature reported by the node
        """
        encoded = base64.b64encode(raw_transaction).decode("ascii")
        return await self._make_request(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": self.config.commitment}]
        )
    
    async def confirm_transaction(
        self,
        signature: str,
        timeout: Optional[float] = None,
        poll_interval: float = 0.5,
    ) -> str:
        """Wait until a transaction reaches the configured commitment.
        
        Args:
            signature: Transaction signature
            timeout: Seconds to wait, defaults to the request timeout
            poll_interval: Seconds between status polls
            
        Returns:
            The confirmed signature
            
        Raises:
            TransactionNotConfirmedError: If the transaction failed or was not
                confirmed in time
        """
        wanted = CONFIRMATION_LEVELS.get(self.config.commitment, CONFIRMATION_LEVELS["confirmed"])
        deadline = time.monotonic() + (timeout if timeout is not None else self.config.timeout)
        
        while True:
            result = await self._make_request(
                "getSignatureStatuses", [[signature], {"searchTransactionHistory": False}]
            )
            statuses = (result or {}).get("value") or [None]
            status = statuses[0]
            if status is not None:
                if status.get("err") is not None:
                    raise TransactionNotConfirmedError(
                        f"Transaction {signature} failed: {status['err']}",
                        signature=signature,
                        err=status["err"],
                    )
                if status.get("confirmationStatus") in wanted:
                    return signature
            
            if time.monotonic() >= deadline:
                raise TransactionNotConfirmedError(
                    f"Transaction {signature} was not confirmed in time", signature=signature
                )
            await asyncio.sleep(poll_interval)
    
    async def submit_close_instruction(
        self,
        account: str,
        destination: str,
        authority: Keypair,
        program_id: str = TOKEN_PROGRAM_ID,
    ) -> str:
        """Close a token account and wait for confirmation.
        
        The authority keypair both pays the fee and signs as the account's
        close authority.
        
        Args:
            account: Token account to close
            destination: Account that receives the recovered rent
            authority: Fee payer and close authority
            program_id: Token program owning the account (Token or Token-2022)
            
        Returns:
            The confirmed transaction signature
        """
        instruction = close_account(
            CloseAccountParams(
                program_id=Pubkey.from_string(program_id),
                account=Pubkey.from_string(account),
                dest=Pubkey.from_string(destination),
                owner=authority.pubkey(),
            )
        )
        blockhash = await self.get_latest_blockhash()
        transaction = Transaction.new_signed_with_payer(
            [instruction],
            authority.pubkey(),
            [authority],
            Hash.from_string(blockhash),
        )
        
        signature = await self.send_raw_transaction(bytes(transaction))
        logger.debug(f"Submitted close for {account}: {signature}")
        return await self.confirm_transaction(signature)
    
    async def __aenter__(self):
        """Async context manager entry.
        
        Returns:
            Self
        """
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
    
    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None


@asynccontextmanager
async def get_ledger_client(config: Optional[NetworkConfig] = None):
    """Get a ledger client as an async context manager.
    
    Args:
        config: Network configuration
    
    Yields:
        LedgerClient: An initialized ledger client.
    """
    client = LedgerClient(config)
    try:
        yield client
    finally:
        await client.close()
