"""
Presentation collaborator interface.

The engine awaits each call and proceeds once it returns; nothing flows back
except completion. Renderers subclass Presenter and override what they draw.
"""

import logging

logger = logging.getLogger(__name__)


class Presenter:
    """Presenter whose steps settle immediately."""

    async def present_spin(self, grid, pacing):
        """Animate the reels onto the final grid."""

    async def present_win(self, outcome):
        """Show win amount and highlight winning or scatter positions."""

    async def present_trigger(self, kind):
        """Show the bonus-entry narrative for a TriggerKind."""

    async def present_free_spins_summary(self, total_win):
        """Show the free-spin session total."""


class LoggingPresenter(Presenter):
    """Headless presenter that records each step in the log."""

    async def present_spin(self, grid, pacing):
        logger.debug("Spin presented: %d rows, duration %dms", len(grid), pacing.duration_ms)

    async def present_win(self, outcome):
        if outcome.triggered and not outcome.is_win:
            logger.info("Scatters highlighted at %s", list(outcome.scatter_positions))
        else:
            logger.info("Win presented: %s (%s)", outcome.total_win, outcome.win_tier.value)

    async def present_trigger(self, kind):
        logger.info("Free spins triggered: %s", kind.value)

    async def present_free_spins_summary(self, total_win):
        logger.info("Free spins finished with total win %s", total_win)
