"""Polling watcher for Solvent.

Re-runs the read-only pipeline on a fixed interval and reports when new
accounts become closeable.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from solvent.config import NetworkConfig, ThrottleConfig, format_sol
from solvent.constants import DEFAULT_SCAN_LIMIT
from solvent.logging_config import get_logger
from solvent.models import ScanDelta, ScanReport
from solvent.pipeline import run_scan
from solvent.services.analyzer import compare_scans
from solvent.utils.errors import ValidationError

logger = get_logger(__name__)

ScanFunction = Callable[..., Awaitable[ScanReport]]
DeltaCallback = Callable[[ScanDelta, ScanReport], Awaitable[None]]


class ScanWatcher:
    """Non-reentrant scheduler around ``run_scan``.
    
    ``tick`` refuses to start while a previous tick is still running, so it
    is safe to drive from an external timer as well as from ``run``.
    """
    
    def __init__(
        self,
        fee_payer: str,
        network_config: NetworkConfig,
        interval: float = 60.0,
        limit: int = DEFAULT_SCAN_LIMIT,
        throttle: Optional[ThrottleConfig] = None,
        on_delta: Optional[DeltaCallback] = None,
        scan_function: ScanFunction = run_scan,
    ):
        if interval <= 0:
            raise ValidationError(f"Poll interval must be positive, got {interval}")
        self.fee_payer = fee_payer
        self.network_config = network_config
        self.interval = interval
        self.limit = limit
        self.throttle = throttle
        self.on_delta = on_delta
        self.scan_function = scan_function
        
        self.scan_count = 0
        self.last_report: Optional[ScanReport] = None
        self._in_flight = False
    
    @property
    def in_flight(self) -> bool:
        return self._in_flight
    
    async def tick(self) -> Optional[ScanDelta]:
        """Run one scan and diff it against the previous one.
        
        Returns:
            ScanDelta against the previous scan, or None for the first scan,
            a skipped tick or a failed scan
        """
        if self._in_flight:
            logger.info("Previous scan still running, skipping this tick")
            return None
        
        self._in_flight = True
        self.scan_count += 1
        try:
            report = await self.scan_function(
                self.fee_payer,
                self.network_config,
                limit=self.limit,
                throttle=self.throttle,
            )
        except Exception as e:
            logger.error(f"Scan #{self.scan_count} failed: {str(e)}")
            return None
        finally:
            self._in_flight = False
        
        previous, self.last_report = self.last_report, report
        stats = report.stats
        logger.info(
            f"Scan #{self.scan_count}: {stats.closeable_accounts} closeable, "
            f"{format_sol(stats.reclaimable, 4)} reclaimable"
        )
        if previous is None:
            return None
        
        delta = compare_scans(previous.stats, stats)
        if delta.should_alert:
            logger.warning(
                f"+{delta.closeable_change} new closeable account(s), "
                f"{format_sol(delta.reclaimable_change, 4)} change in reclaimable rent"
            )
        elif delta.closeable_change < 0:
            logger.info(f"{abs(delta.closeable_change)} account(s) closed")
        
        if self.on_delta is not None:
            await self.on_delta(delta, report)
        return delta
    
    async def run(self, max_scans: Optional[int] = None) -> None:
        """Scan now, then once per interval after each scan completes.
        
        Args:
            max_scans: Stop after this many scans; run forever when None
        """
        while max_scans is None or self.scan_count < max_scans:
            await self.tick()
            if max_scans is not None and self.scan_count >= max_scans:
                break
            await asyncio.sleep(self.interval)
