import asyncio
import logging

from prince_slots.error_codes import ErrorCodes
from prince_slots.exceptions import ConcurrentSpinException
from prince_slots.models import SessionState, SpinResult, SpinStatus, TriggerKind
from prince_slots.services.presentation import Presenter
from prince_slots.utils.game_logger import GameEventLogger
from prince_slots.utils.grid_evaluator import GridEvaluator
from prince_slots.utils.symbol_generator import OutcomeGenerator

logger = logging.getLogger(__name__)


class SpinOrchestrator:
    """
    Sequences spins, free-spin sessions and bonus reveals for one session.

    Every public coroutine checks the session phase and leaves IDLE before its
    first await, so overlapping requests are rejected rather than interleaved.
    """

    def __init__(self, state, settings, generator=None, evaluator=None, presenter=None, random_source=None):
        self.state = state
        self.settings = settings
        self.generator = generator or OutcomeGenerator(settings, random_source=random_source)
        self.evaluator = evaluator or GridEvaluator(self.generator)
        self.presenter = presenter or Presenter()

    @classmethod
    def new_session(cls, settings, **kwargs):
        state = SessionState(balance=settings.start_balance, bet=settings.start_bet)
        return cls(state, settings, **kwargs)

    # --- Helpers ---

    async def _pause(self, delay_ms):
        if self.settings.pacing_enabled and delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    def _reject(self, status, error_code, required=None):
        details = {"phase": self.state.phase.value, "balance": self.state.balance, "bet": self.state.bet}
        if required is not None:
            details["required"] = required
        GameEventLogger.log_rejection(error_code, details=details)
        return SpinResult(status=status, error_code=error_code)

    def _check_can_start(self, required):
        if not self.state.is_idle:
            return self._reject(SpinStatus.IGNORED, ErrorCodes.CONCURRENT_SPIN_REJECTED)
        if not self.state.can_afford(required):
            return self._reject(SpinStatus.INSUFFICIENT_FUNDS, ErrorCodes.INSUFFICIENT_FUNDS, required=required)
        return None

    def _debit(self, amount, event_type):
        balance_before = self.state.balance
        self.state.escrow(amount)
        GameEventLogger.log_financial_event(
            event_type, amount, balance_before, self.state.balance,
            details={"spin_count": self.state.spin_count}
        )

    def _credit(self, amount, event_type):
        balance_before = self.state.balance
        self.state.credit(amount)
        GameEventLogger.log_financial_event(event_type, amount, balance_before, self.state.balance)

    def _release_session(self):
        """Frees the spin lock after a spin raised or was cancelled."""
        state = self.state
        logger.warning(
            "Spin %d aborted in phase '%s'; releasing session with %d free spins forfeited",
            state.spin_count, state.phase.value, state.free_spins_remaining
        )
        GameEventLogger.log_game_event(
            "spin_aborted", spin_count=state.spin_count, bet_amount=state.bet,
            details={"phase": state.phase.value, "free_spins_forfeited": state.free_spins_remaining,
                     "balance": state.balance}
        )
        state.abort_spin()

    async def _play_spin(self, bet, boosted=False, free_spin=False):
        """Generate, present, evaluate and credit one grid."""
        if free_spin:
            pacing = self.settings.free_spin_pacing
            grid = self.generator.generate_grid(scatter_chance=self.settings.free_spin_scatter_chance)
        else:
            pacing = self.settings.base_pacing
            grid = self.generator.generate_grid(boosted=boosted)

        await self.presenter.present_spin(grid, pacing)
        await self._pause(pacing.settle_ms)

        outcome = self.evaluator.evaluate(grid, bet, in_free_spins=self.state.in_free_spins)
        if outcome.is_win:
            self._credit(outcome.total_win, "free_spin_win" if free_spin else "win")
        if outcome.is_win or outcome.triggered:
            await self.presenter.present_win(outcome)
        return outcome

    # --- Spins ---

    async def run_base_spin(self):
        """
        Runs one paid spin.

        Returns:
            SpinResult: IGNORED while another spin or session is active,
            INSUFFICIENT_FUNDS when balance < bet (nothing mutated), otherwise
            COMPLETED with the outcome and, when a bonus followed, its kind and
            free-spin total.
        """
        state = self.state
        rejection = self._check_can_start(state.bet)
        if rejection:
            return rejection

        state.begin_spin()
        try:
            self._debit(state.bet, "wager")
            state.spin_count += 1

            # milestone precedes normal generation, so it never co-occurs with a natural trigger
            if state.spin_count % self.settings.milestone_interval == 0 and not state.in_free_spins:
                logger.info("Milestone bonus reached at spin %d", state.spin_count)
                return await self.run_purchase_reveal(TriggerKind.MILESTONE)

            outcome = await self._play_spin(state.bet, boosted=state.boosted)
            GameEventLogger.log_game_event(
                "spin", spin_count=state.spin_count, bet_amount=state.bet, win_amount=outcome.total_win,
                details={"scatters": outcome.scatter_count, "boosted": state.boosted}
            )

            if not outcome.triggered:
                state.finish_spin()
                return SpinResult(status=SpinStatus.COMPLETED, outcome=outcome)

            state.grant_free_spins(outcome.free_spins_awarded)
            await self.presenter.present_trigger(TriggerKind.NATURAL)
            total = await self.run_free_spin_session()
        except BaseException:
            self._release_session()
            raise
        return SpinResult(
            status=SpinStatus.COMPLETED, outcome=outcome,
            trigger=TriggerKind.NATURAL, free_spin_total=total
        )

    async def run_free_spin_session(self, bet=None):
        """
        Plays every remaining free spin at the locked bet.

        Each iteration consumes one free spin before spinning; no bet is
        escrowed. Returns the session's cumulative win.
        """
        state = self.state
        if state.in_free_spins:
            raise ConcurrentSpinException("A free-spin session is already running")
        owns_lock = state.is_idle
        if owns_lock:
            state.begin_spin()

        locked_bet = bet if bet is not None else state.bet
        state.enter_free_spins()
        logger.info("Free-spin session started: %d spins at bet %d", state.free_spins_remaining, locked_bet)

        try:
            spins_played = 0
            while state.free_spins_remaining > 0:
                state.consume_free_spin()
                await self._play_spin(locked_bet, free_spin=True)
                spins_played += 1
                await self._pause(self.settings.free_spin_interval_ms)

            total = state.free_spin_total_win
            await self.presenter.present_free_spins_summary(total)
        except BaseException:
            if owns_lock:
                self._release_session()
            raise

        GameEventLogger.log_game_event(
            "free_spin_session", spin_count=state.spin_count, bet_amount=locked_bet,
            win_amount=total, details={"spins_played": spins_played}
        )
        state.exit_free_spins()
        return total

    async def run_purchase_reveal(self, kind=TriggerKind.PURCHASE, bet=None):
        """
        Shows a forced 4-scatter grid, grants the free spins and plays them.

        Used for purchased and milestone bonuses; the reveal grid itself pays
        nothing. Any purchase cost must already be settled by the caller.
        """
        state = self.state
        owns_lock = state.is_idle
        if owns_lock:
            state.begin_spin()
        bet = bet if bet is not None else state.bet

        try:
            grid = self.generator.generate_forced_scatter_grid()
            await self.presenter.present_spin(grid, self.settings.reveal_pacing)
            await self._pause(self.settings.reveal_pacing.settle_ms)

            outcome = self.evaluator.reveal_outcome(grid, bet)
            await self.presenter.present_win(outcome)
            await self._pause(self.settings.reveal_hold_ms)

            state.grant_free_spins(outcome.free_spins_awarded)
            await self.presenter.present_trigger(kind)
            GameEventLogger.log_game_event(
                "bonus_reveal", spin_count=state.spin_count, bet_amount=bet,
                details={"kind": kind.value, "free_spins": state.free_spins_remaining}
            )

            total = await self.run_free_spin_session(bet)
        except BaseException:
            if owns_lock:
                self._release_session()
            raise
        return SpinResult(status=SpinStatus.COMPLETED, outcome=outcome, trigger=kind, free_spin_total=total)

    async def purchase_free_spins(self, bet=None):
        """
        Buys a free-spin bonus for purchase_cost_multiplier x bet.

        The bonus is played at the chosen bet; the session bet is restored
        afterwards. Refused while boosted, ignored while busy, and rejected
        without any mutation when the balance cannot cover the cost.
        """
        state = self.state
        if not state.is_idle:
            return self._reject(SpinStatus.IGNORED, ErrorCodes.CONCURRENT_SPIN_REJECTED)
        if state.boosted:
            return self._reject(SpinStatus.REJECTED, ErrorCodes.BOOST_ACTIVE)

        purchase_bet = self.snap_bet(bet if bet is not None else state.bet)
        cost = self.settings.purchase_cost(purchase_bet)
        rejection = self._check_can_start(cost)
        if rejection:
            return rejection

        state.begin_spin()
        saved_bet = state.bet
        try:
            self._debit(cost, "bonus_purchase")
            state.bet = purchase_bet
            return await self.run_purchase_reveal(TriggerKind.PURCHASE, bet=purchase_bet)
        except BaseException:
            self._release_session()
            raise
        finally:
            state.bet = saved_bet

    # --- Controls ---

    def snap_bet(self, value):
        step = self.settings.bet_step
        return self.settings.clamp_bet((value // step) * step)

    def change_bet(self, delta):
        """Moves the bet by delta, clamped to the bet bounds. Ignored unless idle."""
        if not self.state.is_idle:
            return False
        requested = self.state.bet + delta
        self.state.bet = self.snap_bet(requested)
        if self.state.bet != requested:
            logger.info("Bet adjustment to %d clamped to %d (%s)", requested, self.state.bet,
                        ErrorCodes.INVALID_BET_ADJUSTMENT)
        return True

    def set_bet(self, value):
        """Sets the bet, snapped to the bet step and clamped. Ignored unless idle."""
        if not self.state.is_idle:
            return False
        self.state.bet = self.snap_bet(value)
        if self.state.bet != value:
            logger.info("Bet %d adjusted to %d (%s)", value, self.state.bet, ErrorCodes.INVALID_BET_ADJUSTMENT)
        return True

    def select_preset_bet(self, value):
        """
        Sets the bet to one of the configured presets. Ignored unless idle.

        Returns:
            bool: False when busy or when value is not a preset; the bet is
            left unchanged in both cases.
        """
        if not self.state.is_idle:
            return False
        if value not in self.settings.bet_presets:
            GameEventLogger.log_rejection(
                ErrorCodes.INVALID_BET_ADJUSTMENT,
                details={"requested": value, "presets": list(self.settings.bet_presets), "bet": self.state.bet}
            )
            return False
        self.state.bet = value
        logger.info("Bet preset %d selected", value)
        return True

    def toggle_boost(self):
        """Toggles the boost and its bet surcharge. Ignored unless idle."""
        state = self.state
        if not state.is_idle:
            return False
        state.boosted = not state.boosted
        if state.boosted:
            state.bet = min(self.settings.max_bet, state.bet + self.settings.boost_surcharge)
        else:
            state.bet = max(self.settings.min_bet, state.bet - self.settings.boost_surcharge)
        logger.info("Boost %s, bet now %d", "enabled" if state.boosted else "disabled", state.bet)
        return True

    @property
    def can_spin(self):
        return self.state.is_idle and self.state.can_afford(self.state.bet)

    def max_win(self, bet=None):
        return self.settings.max_win(bet if bet is not None else self.state.bet)
