"""
Auto-play loop service.
Runs a bounded series of base spins with cooperative cancellation.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from prince_slots.exceptions import ValidationException
from prince_slots.models import SpinStatus

logger = logging.getLogger(__name__)


class AutoPlayStopReason(str, Enum):
    COMPLETED = "completed"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CANCELLED = "cancelled"
    BUSY = "busy"


@dataclass
class AutoPlayReport:
    requested: int
    completed: int
    stop_reason: AutoPlayStopReason
    total_win: int = 0
    bonuses: int = 0


class AutoPlayController:
    """Drives SpinOrchestrator.run_base_spin for one of the preset spin counts."""

    def __init__(self, orchestrator, packages=None):
        self.orchestrator = orchestrator
        self.settings = orchestrator.settings
        self.packages = tuple(packages or self.settings.autoplay_packages)
        self.running = False
        self.remaining_spins = 0
        self.stop_requested = False

    def package_cost(self, count):
        return self.orchestrator.state.bet * count

    def stop(self):
        """Request a stop; observed before the next spin starts."""
        if self.running:
            logger.info("Auto-play stop requested with %d spins left", self.remaining_spins)
        self.stop_requested = True

    async def _pause(self, delay_ms):
        if self.settings.pacing_enabled and delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    async def run(self, count):
        """
        Runs up to count base spins.

        Args:
            count (int): One of the configured packages (20, 30 or 50 by default).

        Returns:
            AutoPlayReport: Spins completed and why the loop ended.

        Raises:
            ValidationException: If count is not an offered package.
        """
        if count not in self.packages:
            raise ValidationException(
                status_message=f"Auto-play count {count} is not one of {list(self.packages)}",
                details={"count": count}
            )

        state = self.orchestrator.state
        if self.running or not state.is_idle:
            return AutoPlayReport(requested=count, completed=0, stop_reason=AutoPlayStopReason.BUSY)

        self.running = True
        self.stop_requested = False
        self.remaining_spins = count
        report = AutoPlayReport(requested=count, completed=0, stop_reason=AutoPlayStopReason.COMPLETED)
        logger.info("Auto-play started: %d spins at bet %d", count, state.bet)

        try:
            while self.remaining_spins > 0:
                if self.stop_requested:
                    report.stop_reason = AutoPlayStopReason.CANCELLED
                    break
                if not state.can_afford(state.bet):
                    report.stop_reason = AutoPlayStopReason.INSUFFICIENT_FUNDS
                    logger.info("Auto-play stopped: insufficient funds (balance %s, bet %d)", state.balance, state.bet)
                    break

                result = await self.orchestrator.run_base_spin()
                if result.status is SpinStatus.IGNORED:
                    report.stop_reason = AutoPlayStopReason.BUSY
                    break

                # a triggered bonus is awaited inside run_base_spin; this only
                # covers sessions started elsewhere
                while state.in_free_spins:
                    await asyncio.sleep(0.2 if self.settings.pacing_enabled else 0)

                if result.outcome is not None:
                    report.total_win += result.outcome.total_win
                if result.trigger is not None:
                    report.bonuses += 1
                    report.total_win += int(result.free_spin_total or 0)
                report.completed += 1
                self.remaining_spins -= 1
                await self._pause(self.settings.autoplay_interval_ms)
        finally:
            self.running = False
            self.remaining_spins = 0

        logger.info("Auto-play finished: %d/%d spins, %s", report.completed, count, report.stop_reason.value)
        return report
