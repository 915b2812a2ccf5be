"""Loading the fee payer's signing keypair."""

import json
import os
from typing import Optional

import base58
from solders.keypair import Keypair

from solvent.config import get_env_var
from solvent.utils.errors import ValidationError


def load_keypair(source: str) -> Keypair:
    """Load a keypair from a file or a base58 secret key.
    
    Files use the Solana CLI format: a JSON array of 64 (secret + public)
    or 32 (seed) integers.
    
    Args:
        source: Path to a keypair file, or a base58-encoded secret key
        
    Returns:
        The loaded Keypair
        
    Raises:
        ValidationError: If the keypair cannot be read or decoded
    """
    path = os.path.expanduser(source)
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError(f"Could not read keypair file {path}: {str(e)}")
        
        if not isinstance(data, list):
            raise ValidationError(
                "Unsupported keypair file format. Expected a JSON array of integers."
            )
        try:
            secret = bytes(data)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Keypair file {path} must hold integers 0-255: {str(e)}")
        if len(secret) not in (32, 64):
            raise ValidationError(f"Unexpected key length: {len(secret)} (expected 32 or 64)")
        try:
            if len(secret) == 64:
                return Keypair.from_bytes(secret)
            return Keypair.from_seed(secret)
        except ValueError as e:
            raise ValidationError(f"Invalid secret key in {path}: {str(e)}")
    
    try:
        secret = base58.b58decode(source.strip())
    except ValueError as e:
        raise ValidationError(f"Keypair is neither a file nor a base58 secret key: {str(e)}")
    if len(secret) != 64:
        raise ValidationError(f"Unexpected base58 secret key length: {len(secret)} (expected 64)")
    try:
        return Keypair.from_bytes(secret)
    except ValueError as e:
        raise ValidationError(f"Invalid secret key: {str(e)}")


def load_default_keypair() -> Optional[Keypair]:
    """Load the keypair named by SOLVENT_KEYPAIR, if set."""
    source = get_env_var("SOLVENT_KEYPAIR")
    return load_keypair(source) if source else None
