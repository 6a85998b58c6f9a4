import asyncio
import logging
import random
from dataclasses import replace
from decimal import Decimal

import numpy as np

from prince_slots.models import SessionState
from prince_slots.services.presentation import Presenter
from prince_slots.utils.spin_handler import SpinOrchestrator

logger = logging.getLogger(__name__)

WIN_BUCKETS = [(0, 1), (1, 5), (5, 10), (10, 20), (20, 50), (50, 100), (100, None)]


class SlotTester:
    """
    Monte Carlo RTP simulator running the real orchestrator headlessly.

    The balance is topped up so the run never stops on funds; milestone and
    natural bonuses play exactly as in a live session.
    """

    def __init__(self, settings, num_spins, bet_amount, seed=None):
        self.settings = settings
        self.num_spins = num_spins
        self.bet_amount = bet_amount
        self.seed = seed

        # Statistics to be collected
        self.total_bet = 0
        self.total_win = 0
        self.hit_count = 0
        self.bonus_triggers = 0
        self.milestone_triggers = 0
        self.total_bonus_win = 0
        self.bonus_data = []
        self.wins_by_multiplier = {}
        self.spin_returns = []
        self.rtp_over_time = []

        # Derived statistics
        self.overall_rtp = 0.0
        self.hit_frequency = 0.0
        self.bonus_frequency = 0.0
        self.avg_bonus_win = 0.0
        self.base_game_rtp_contribution = 0.0
        self.bonus_rtp_contribution = 0.0
        self.volatility_index = 0.0

    def _build_orchestrator(self):
        balance = Decimal(self.num_spins * self.bet_amount * 10)
        state = SessionState(balance=balance, bet=self.bet_amount)
        return SpinOrchestrator(
            state, replace(self.settings, pacing_enabled=False),
            presenter=Presenter(),
            random_source=random.Random(self.seed),
        )

    @staticmethod
    def _bucket_label(multiple):
        for low, high in WIN_BUCKETS:
            if high is None or multiple < high:
                return f"{low}x+" if high is None else f"{low}-{high}x"
        return "unknown"

    def _collect_spin_statistics(self, result):
        spin_win = 0
        if result.outcome is not None and result.trigger is None:
            spin_win = result.outcome.total_win
        elif result.trigger is not None:
            if result.outcome is not None:
                spin_win += result.outcome.total_win
            bonus_win = int(result.free_spin_total or 0)
            spin_win += bonus_win
            self.total_bonus_win += bonus_win
            self.bonus_data.append({"kind": result.trigger.value, "win": bonus_win})
            if result.trigger.value == "milestone":
                self.milestone_triggers += 1
            else:
                self.bonus_triggers += 1

        self.total_bet += self.bet_amount
        self.total_win += spin_win
        if spin_win > 0:
            self.hit_count += 1
            label = self._bucket_label(spin_win / self.bet_amount)
            self.wins_by_multiplier[label] = self.wins_by_multiplier.get(label, 0) + 1
        self.spin_returns.append(spin_win / self.bet_amount)

    async def _run(self):
        orchestrator = self._build_orchestrator()
        progress_every = self.num_spins // 20 or 1
        for i in range(self.num_spins):
            # keep the run funded so the sample size is exact
            if not orchestrator.state.can_afford(self.bet_amount):
                orchestrator.state.balance += self.bet_amount * 100
            result = await orchestrator.run_base_spin()
            if not result.accepted:
                logger.error("Spin %d was not accepted (%s). Halting simulation.", i + 1, result.status.value)
                break
            self._collect_spin_statistics(result)
            if (i + 1) % progress_every == 0:
                self.rtp_over_time.append(self.total_win / self.total_bet)
                logger.debug("Completed %d/%d spins", i + 1, self.num_spins)

    def run_simulation(self):
        logger.info("Starting simulation: %d spins at bet %d", self.num_spins, self.bet_amount)
        asyncio.run(self._run())
        self.calculate_statistics()
        logger.info("Simulation finished: RTP %.4f", self.overall_rtp)
        return self.report()

    def calculate_statistics(self):
        if not self.total_bet:
            return
        spins = len(self.spin_returns)
        self.overall_rtp = self.total_win / self.total_bet
        self.hit_frequency = self.hit_count / spins
        self.bonus_frequency = (self.bonus_triggers + self.milestone_triggers) / spins
        if self.bonus_data:
            self.avg_bonus_win = self.total_bonus_win / len(self.bonus_data)
        self.bonus_rtp_contribution = self.total_bonus_win / self.total_bet
        self.base_game_rtp_contribution = self.overall_rtp - self.bonus_rtp_contribution
        self.volatility_index = float(np.std(np.asarray(self.spin_returns, dtype=float)))

    def report(self):
        return {
            "spins": len(self.spin_returns),
            "total_bet": self.total_bet,
            "total_win": self.total_win,
            "rtp": self.overall_rtp,
            "hit_frequency": self.hit_frequency,
            "bonus_frequency": self.bonus_frequency,
            "natural_bonuses": self.bonus_triggers,
            "milestone_bonuses": self.milestone_triggers,
            "avg_bonus_win": self.avg_bonus_win,
            "base_game_rtp": self.base_game_rtp_contribution,
            "bonus_rtp": self.bonus_rtp_contribution,
            "volatility_index": self.volatility_index,
            "wins_by_multiplier": dict(self.wins_by_multiplier),
            "rtp_over_time": list(self.rtp_over_time),
        }
