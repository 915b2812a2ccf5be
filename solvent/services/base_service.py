"""
Base service class for Solvent pipeline stages.

This module provides the shared plumbing of the scanner, classifier and
reclaimer: the injected ledger client, throttle delays and logging.
"""

import asyncio
import logging
from typing import Optional

from solvent.clients.ledger_client import LedgerClient
from solvent.config import ThrottleConfig, get_throttle_config


class BaseService:
    """
    Base service class with common functionality.
    
    Stages issue ledger calls strictly one at a time; ``pause`` inserts
    the fixed delay that keeps them under public RPC rate limits.
    """
    
    def __init__(
        self,
        client: LedgerClient,
        throttle: Optional[ThrottleConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the base service.
        
        Args:
            client: Ledger client used for every remote call
            throttle: Delays between remote calls, defaults to environment config
            logger: Optional logger instance
        """
        self.client = client
        self.throttle = throttle or get_throttle_config()
        self.logger = logger or logging.getLogger(self.__class__.__module__)
    
    async def pause(self, seconds: float) -> None:
        """Sleep between consecutive remote calls."""
        if seconds > 0:
            await asyncio.sleep(seconds)
