"""Validation utilities for Solvent.

This module provides utilities for validating Solana-specific data.
"""

import re

import base58

from solvent.utils.errors import InvalidPublicKeyError, ValidationError

# Solana public key validation pattern (base58 format)
PUBKEY_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
SIGNATURE_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{43,128}$")


def validate_public_key(pubkey: str) -> bool:
    """Validate a Solana public key.
    
    The key must be base58 text that decodes to exactly 32 bytes.
    
    Args:
        pubkey: The public key to validate
        
    Returns:
        True if the public key is valid, False otherwise
    """
    if not pubkey or not isinstance(pubkey, str):
        return False
    if not PUBKEY_PATTERN.match(pubkey):
        return False
    try:
        return len(base58.b58decode(pubkey)) == 32
    except ValueError:
        return False


def validate_solana_address(address: str, field_name: str = "address") -> str:
    """Validate a Solana address and raise an exception if invalid.
    
    Args:
        address: The address to validate
        field_name: Name of the field for the error message
        
    Returns:
        The address, unchanged
        
    Raises:
        InvalidPublicKeyError: If the address is invalid
    """
    if not validate_public_key(address):
        raise InvalidPublicKeyError(address, field_name)
    return address


def validate_transaction_signature(signature: str) -> bool:
    """Validate a Solana transaction signature.
    
    Args:
        signature: The transaction signature to validate
        
    Returns:
        True if the signature is valid, False otherwise
    """
    if not signature or not isinstance(signature, str):
        return False
    
    # Transaction signatures are also base58 encoded but longer than public keys
    return bool(SIGNATURE_PATTERN.match(signature))


def validate_limit(value: int, field_name: str = "limit") -> int:
    """Validate a positive integer limit such as a scan limit or batch size."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"{field_name} must be a positive integer, got {value!r}",
            details={"field": field_name, "value": value}
        )
    return value


def same_address(left: str, right: str) -> bool:
    """Compare two addresses case-insensitively. Empty values never match."""
    if not left or not right:
        return False
    return left.lower() == right.lower()
