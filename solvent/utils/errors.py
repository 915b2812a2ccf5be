"""
Error handling utilities for Solvent.

This module defines the error codes and exception classes raised by the
ledger client and the scan / classify / reclaim pipeline.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for Solvent."""
    
    # General errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    
    # Solana RPC errors
    RPC_ERROR = "RPC_ERROR"
    RPC_TIMEOUT = "RPC_TIMEOUT"
    RPC_CONNECTION_ERROR = "RPC_CONNECTION_ERROR"
    
    # Data errors
    INVALID_ACCOUNT = "INVALID_ACCOUNT"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    DATA_PARSING_ERROR = "DATA_PARSING_ERROR"
    
    # Pipeline errors
    SCAN_FAILED = "SCAN_FAILED"
    SIGNER_REQUIRED = "SIGNER_REQUIRED"
    TRANSACTION_NOT_CONFIRMED = "TRANSACTION_NOT_CONFIRMED"


class SolventError(Exception):
    """Base exception for all Solvent errors."""
    
    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new Solvent error.
        
        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)
    
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.
        
        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details
        }


class ValidationError(SolventError):
    """Exception for validation errors."""
    
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=details
        )


class InvalidPublicKeyError(ValidationError):
    """Exception raised when an invalid public key is provided."""
    
    def __init__(self, pubkey: Any, field_name: str = "address"):
        super().__init__(
            f"Invalid public key for {field_name}: {pubkey}",
            details={"field": field_name, "value": str(pubkey)}
        )
        self.code = ErrorCode.INVALID_ACCOUNT
        self.pubkey = pubkey


class ConfigurationError(SolventError):
    """Exception for invalid network, endpoint or environment settings."""
    
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            details=details
        )


class SignerRequiredError(ValidationError):
    """Raised when a live reclaim is requested without a signing keypair."""
    
    def __init__(self, message: str = "A signing keypair is required to reclaim rent outside dry-run mode"):
        super().__init__(message)
        self.code = ErrorCode.SIGNER_REQUIRED


class RpcError(SolventError):
    """Exception for Solana RPC errors."""
    
    def __init__(
        self,
        message: str,
        rpc_error: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.RPC_ERROR
    ):
        super().__init__(
            message=message,
            code=code,
            details={"rpc_error": rpc_error or {}}
        )
    
    @property
    def rpc_error(self) -> Dict[str, Any]:
        """The raw JSON-RPC error object, if any."""
        return self.details.get("rpc_error", {})


class RpcTimeoutError(RpcError):
    """Exception for Solana RPC timeout errors."""
    
    def __init__(
        self,
        message: str,
        timeout: float,
        rpc_error: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            rpc_error=rpc_error,
            code=ErrorCode.RPC_TIMEOUT
        )
        self.details["timeout"] = timeout


class RpcConnectionError(RpcError):
    """Exception for Solana RPC connection errors."""
    
    def __init__(
        self,
        message: str,
        rpc_error: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            rpc_error=rpc_error,
            code=ErrorCode.RPC_CONNECTION_ERROR
        )


class TransactionNotConfirmedError(SolventError):
    """Raised when a submitted transaction fails or is not confirmed in time."""
    
    def __init__(
        self,
        message: str,
        signature: str,
        err: Optional[Any] = None
    ):
        super().__init__(
            message=message,
            code=ErrorCode.TRANSACTION_NOT_CONFIRMED,
            details={"signature": signature, "err": err}
        )
        self.signature = signature


class ScanError(SolventError):
    """Raised when a fee payer's signature history cannot be fetched."""
    
    def __init__(
        self,
        message: str,
        address: str,
        cause: Optional[BaseException] = None
    ):
        super().__init__(
            message=message,
            code=ErrorCode.SCAN_FAILED,
            details={"address": address}
        )
        if cause is not None:
            self.details["cause"] = str(cause)
