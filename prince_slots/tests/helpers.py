import asyncio
import random
from decimal import Decimal
from unittest.mock import MagicMock

from prince_slots.config import TestingConfig
from prince_slots.models import FRUIT_SYMBOLS, SessionState, Symbol
from prince_slots.services.presentation import Presenter
from prince_slots.utils.spin_handler import SpinOrchestrator

S = Symbol


def make_grid(rows):
    return tuple(tuple(row) for row in rows)


def dud_grid(rows=5, columns=6):
    """No symbol reaches 8 and there are no scatters."""
    return make_grid(
        [FRUIT_SYMBOLS[(r * columns + c) % len(FRUIT_SYMBOLS)] for c in range(columns)]
        for r in range(rows)
    )


def ten_lemon_grid():
    return make_grid([
        [S.LEMON] * 6,
        [S.LEMON] * 4 + [S.CHERRY] * 2,
        [S.CHERRY] * 4 + [S.GRAPES] * 2,
        [S.GRAPES] * 4 + [S.WATERMELON] * 2,
        [S.WATERMELON] * 4 + [S.ORANGE] * 2,
    ])


def grid_with_scatters(count, base=None):
    """Dud grid with the first `count` cells (row-major) replaced by scatters."""
    cells = [list(row) for row in (base or dud_grid())]
    columns = len(cells[0])
    for i in range(count):
        cells[i // columns][i % columns] = S.SCATTER
    return make_grid(cells)


class RecordingPresenter(Presenter):
    """Records every presenter call with a snapshot of the session."""

    def __init__(self, state=None):
        self.state = state
        self.events = []

    def _snapshot(self):
        if self.state is None:
            return {}
        return {
            "balance": self.state.balance,
            "bet": self.state.bet,
            "free_spins_remaining": self.state.free_spins_remaining,
            "phase": self.state.phase,
            "boosted": self.state.boosted,
        }

    async def present_spin(self, grid, pacing):
        self.events.append(("spin", grid, self._snapshot()))

    async def present_win(self, outcome):
        self.events.append(("win", outcome, self._snapshot()))

    async def present_trigger(self, kind):
        self.events.append(("trigger", kind, self._snapshot()))

    async def present_free_spins_summary(self, total_win):
        self.events.append(("summary", total_win, self._snapshot()))

    def of_kind(self, kind):
        return [event for event in self.events if event[0] == kind]


class BlockingPresenter(Presenter):
    """Holds present_spin until release is set."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def present_spin(self, grid, pacing):
        self.entered.set()
        await self.release.wait()


def make_orchestrator(balance=Decimal(5000), bet=10, grids=None, seed=1234, presenter=None, settings=None):
    """
    Builds an orchestrator on the testing settings.

    Args:
        grids: Optional grid (or list of grids) returned by generate_grid.
    """
    settings = settings or TestingConfig.game_settings()
    state = SessionState(balance=Decimal(balance), bet=bet)
    presenter = presenter if presenter is not None else RecordingPresenter(state)
    if isinstance(presenter, RecordingPresenter) and presenter.state is None:
        presenter.state = state
    orchestrator = SpinOrchestrator(state, settings, presenter=presenter, random_source=random.Random(seed))
    if grids is not None:
        if isinstance(grids, list):
            orchestrator.generator.generate_grid = MagicMock(side_effect=grids)
        else:
            orchestrator.generator.generate_grid = MagicMock(return_value=grids)
    return orchestrator


class FailingPresenter(RecordingPresenter):
    """Raises from one presenter step on its nth call, recording everything else."""

    def __init__(self, step, on_call=1, state=None, error=None):
        super().__init__(state)
        self.step = step
        self.on_call = on_call
        self.calls = 0
        self.error = error or RuntimeError("renderer failed")

    async def _maybe_fail(self, step):
        if step == self.step:
            self.calls += 1
            if self.calls == self.on_call:
                raise self.error

    async def present_spin(self, grid, pacing):
        await self._maybe_fail("spin")
        await super().present_spin(grid, pacing)

    async def present_win(self, outcome):
        await self._maybe_fail("win")
        await super().present_win(outcome)

    async def present_trigger(self, kind):
        await self._maybe_fail("trigger")
        await super().present_trigger(kind)

    async def present_free_spins_summary(self, total_win):
        await self._maybe_fail("summary")
        await super().present_free_spins_summary(total_win)
