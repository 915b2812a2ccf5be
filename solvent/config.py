"""Configuration module for Solvent."""

# Standard library imports
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

# Third-party library imports
from dotenv import load_dotenv

# Internal imports
from solvent.constants import (
    DEVNET,
    LAMPORTS_PER_SOL,
    RPC_URLS,
)
from solvent.utils.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()


def get_env_var(key: str, default: Any = None, required: bool = False, 
               validator: Optional[callable] = None) -> Any:
    """Get and validate environment variable.
    
    Args:
        key: Environment variable name
        default: Default value if not present
        required: If True, raises ConfigurationError when not found
        validator: Optional validation function
        
    Returns:
        The environment variable value or default
        
    Raises:
        ConfigurationError: If required and not found, or fails validation
    """
    value = os.environ.get(key)
    
    if value is None or value == "":
        if required:
            raise ConfigurationError(f"Required environment variable '{key}' not found")
        return default
    
    if validator:
        try:
            return validator(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for environment variable '{key}': {str(e)}",
                details={"key": key}
            )
    
    return value


def int_validator(value: str) -> int:
    """Validate and convert string to integer.
    
    Args:
        value: String value to convert
        
    Returns:
        Integer value
        
    Raises:
        ValueError: If not a valid integer
    """
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid integer")


def float_validator(value: str) -> float:
    """Validate and convert a non-negative number of seconds."""
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")
    if number < 0:
        raise ValueError(f"'{value}' must not be negative")
    return number


def url_validator(value: str) -> str:
    """Validate URL format.
    
    Args:
        value: URL to validate
        
    Returns:
        The validated URL
        
    Raises:
        ValueError: If not a valid URL format
    """
    url_pattern = re.compile(
        r'^(https?):\/\/'  # http:// or https://
        r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|'  # domain
        r'localhost|'  # localhost
        r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # or IPv4
        r'(?::\d+)?'  # optional port
        r'(?:/?|[/?]\S+)$', re.IGNORECASE)
    
    if not url_pattern.match(value):
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def network_validator(value: str) -> str:
    """Validate a Solana cluster name.
    
    Raises:
        ValueError: If the network is not one Solvent knows an endpoint for
    """
    network = value.strip().lower()
    if network not in RPC_URLS:
        raise ValueError(f"Network must be one of: {', '.join(RPC_URLS)}")
    return network


def commitment_validator(value: str) -> str:
    """Validate Solana commitment level.
    
    Args:
        value: Commitment level to validate
        
    Returns:
        The validated commitment level
        
    Raises:
        ValueError: If not a valid commitment level
    """
    valid_commitments = ("processed", "confirmed", "finalized")
    if value.lower() not in valid_commitments:
        raise ValueError(f"Commitment must be one of: {', '.join(valid_commitments)}")
    return value.lower()


def log_level_validator(value: str) -> str:
    """Validate log level.
    
    Args:
        value: Log level to validate
        
    Returns:
        The validated log level
        
    Raises:
        ValueError: If not a valid log level
    """
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    upper_value = value.upper()
    if upper_value not in valid_levels:
        raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
    return upper_value


@dataclass(frozen=True)
class NetworkConfig:
    """Connection settings for one Solana cluster.
    
    Passed explicitly into every pipeline call instead of being read from
    process-wide state.
    """
    
    network: str = DEVNET
    rpc_url: str = RPC_URLS[DEVNET]
    commitment: str = "confirmed"
    timeout: int = 30  # seconds
    max_retries: int = 3
    
    @property
    def is_custom_endpoint(self) -> bool:
        """Whether the RPC URL differs from the cluster's public endpoint."""
        return self.rpc_url != RPC_URLS.get(self.network)


@dataclass(frozen=True)
class ThrottleConfig:
    """Fixed delays, in seconds, between consecutive remote calls."""
    
    page_delay: float = 0.1
    parse_delay: float = 0.05
    classify_delay: float = 0.1
    reclaim_delay: float = 0.5
    
    @classmethod
    def disabled(cls) -> "ThrottleConfig":
        """A throttle with every delay set to zero."""
        return cls(page_delay=0.0, parse_delay=0.0, classify_delay=0.0, reclaim_delay=0.0)


def get_network_config(
    network: Optional[str] = None,
    custom_rpc_url: Optional[str] = None,
    commitment: Optional[str] = None,
) -> NetworkConfig:
    """Build a NetworkConfig, validating inputs before any I/O happens.
    
    Explicit arguments take precedence over SOLVENT_* environment variables.
    
    Args:
        network: "devnet" or "mainnet-beta"
        custom_rpc_url: Optional endpoint replacing the public cluster URL
        commitment: Optional commitment level
        
    Returns:
        NetworkConfig instance
        
    Raises:
        ConfigurationError: If the network, endpoint or commitment is invalid
    """
    if network is None:
        network = get_env_var("SOLVENT_NETWORK", DEVNET, validator=network_validator)
    else:
        try:
            network = network_validator(network)
        except ValueError as e:
            raise ConfigurationError(str(e), details={"network": network})
    
    if custom_rpc_url is None:
        custom_rpc_url = get_env_var("SOLVENT_RPC_URL", validator=url_validator)
    else:
        try:
            url_validator(custom_rpc_url)
        except ValueError as e:
            raise ConfigurationError(str(e), details={"rpc_url": custom_rpc_url})
    
    if commitment is None:
        commitment = get_env_var("SOLVENT_COMMITMENT", "confirmed", validator=commitment_validator)
    else:
        try:
            commitment = commitment_validator(commitment)
        except ValueError as e:
            raise ConfigurationError(str(e), details={"commitment": commitment})
    
    return NetworkConfig(
        network=network,
        rpc_url=custom_rpc_url or RPC_URLS[network],
        commitment=commitment,
        timeout=get_env_var("SOLVENT_TIMEOUT", 30, validator=int_validator),
        max_retries=get_env_var("SOLVENT_MAX_RETRIES", 3, validator=int_validator),
    )


@lru_cache()
def get_throttle_config() -> ThrottleConfig:
    """Get throttle delays from environment variables.
    
    Uses cached values for efficiency.
    
    Returns:
        ThrottleConfig instance
    """
    return ThrottleConfig(
        page_delay=get_env_var("SOLVENT_PAGE_DELAY", 0.1, validator=float_validator),
        parse_delay=get_env_var("SOLVENT_PARSE_DELAY", 0.05, validator=float_validator),
        classify_delay=get_env_var("SOLVENT_CLASSIFY_DELAY", 0.1, validator=float_validator),
        reclaim_delay=get_env_var("SOLVENT_RECLAIM_DELAY", 0.5, validator=float_validator),
    )


def get_log_level() -> str:
    """Get the configured log level."""
    return get_env_var("LOG_LEVEL", "INFO", validator=log_level_validator)


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to SOL."""
    return lamports / LAMPORTS_PER_SOL


def sol_to_lamports(sol: float) -> int:
    """Convert SOL to lamports, rounding down."""
    return int(sol * LAMPORTS_PER_SOL)


def format_sol(lamports: int, decimals: int = 6) -> str:
    """Format a lamport amount for display.
    
    Args:
        lamports: Amount in lamports
        decimals: Number of decimal places
        
    Returns:
        Formatted string such as "0.002039 SOL"
    """
    return f"{lamports_to_sol(lamports):.{decimals}f} SOL"
