"""
In-memory game models: symbols, settings, session state and spin results.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from prince_slots.exceptions import (
    ConcurrentSpinException,
    GameLogicException,
    InsufficientFundsException,
)


class Symbol(str, Enum):
    CHERRY = "cherry"
    LEMON = "lemon"
    GRAPES = "grapes"
    WATERMELON = "watermelon"
    ORANGE = "orange"
    STRAWBERRY = "strawberry"
    PEACH = "peach"
    PINEAPPLE = "pineapple"
    SCATTER = "scatter"

    @property
    def is_scatter(self) -> bool:
        return self is Symbol.SCATTER


FRUIT_SYMBOLS = tuple(s for s in Symbol if not s.is_scatter)

Position = Tuple[int, int]
Grid = Tuple[Tuple[Symbol, ...], ...]


class SessionPhase(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    IN_FREE_SPINS = "in_free_spins"


class TriggerKind(str, Enum):
    NATURAL = "natural"
    PURCHASE = "purchase"
    MILESTONE = "milestone"


class SpinStatus(str, Enum):
    COMPLETED = "completed"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    IGNORED = "ignored"
    REJECTED = "rejected"


class WinTier(str, Enum):
    NONE = "none"
    WIN = "win"
    BIG = "big"
    MEGA = "mega"


@dataclass(frozen=True)
class SpinPacing:
    """Relative timing hint handed to the presenter, in milliseconds."""
    column_delay_ms: int
    duration_ms: int
    settle_ms: int


@dataclass(frozen=True)
class GameSettings:
    rows: int
    columns: int
    symbols: Tuple[Symbol, ...]
    weights: Mapping[Symbol, int]
    scatter_chance: float
    boosted_scatter_chance: float
    free_spin_scatter_chance: float
    payout_table: Mapping[Symbol, Tuple[int, int, int]]
    default_payout: Tuple[int, int, int]
    min_match: int
    max_natural_scatters: int
    trigger_scatter_count: int
    free_spins_awarded: int
    min_bet: int
    max_bet: int
    bet_step: int
    bet_presets: Tuple[int, ...]
    start_balance: Decimal
    start_bet: int
    milestone_interval: int
    purchase_cost_multiplier: int
    boost_surcharge: int
    autoplay_packages: Tuple[int, ...]
    big_win_multiplier: int
    mega_win_multiplier: int
    max_win_multiplier: int
    base_pacing: SpinPacing
    free_spin_pacing: SpinPacing
    reveal_pacing: SpinPacing
    reveal_hold_ms: int
    free_spin_interval_ms: int
    autoplay_interval_ms: int
    pacing_enabled: bool

    def clamp_bet(self, value: int) -> int:
        return max(self.min_bet, min(self.max_bet, value))

    def purchase_cost(self, bet: int) -> int:
        return bet * self.purchase_cost_multiplier

    def max_win(self, bet: int) -> int:
        return bet * self.max_win_multiplier


@dataclass(frozen=True)
class ClusterWin:
    symbol: Symbol
    positions: Tuple[Position, ...]
    count: int
    multiplier: int
    win_amount: int


@dataclass(frozen=True)
class SpinOutcome:
    grid: Grid
    bet: int
    clusters: Tuple[ClusterWin, ...] = ()
    total_win: int = 0
    scatter_count: int = 0
    scatter_positions: Tuple[Position, ...] = ()
    triggered: bool = False
    free_spins_awarded: int = 0
    win_tier: WinTier = WinTier.NONE

    @property
    def is_win(self) -> bool:
        return self.total_win > 0

    @property
    def winning_positions(self) -> Tuple[Position, ...]:
        return tuple(sorted({pos for cluster in self.clusters for pos in cluster.positions}))


@dataclass(frozen=True)
class SpinResult:
    status: SpinStatus
    outcome: Optional[SpinOutcome] = None
    trigger: Optional[TriggerKind] = None
    free_spin_total: Optional[Decimal] = None
    error_code: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status is SpinStatus.COMPLETED


@dataclass
class SessionState:
    """
    Mutable state of one player session.

    The phase doubles as the single-active-spin guard: every transition out of
    IDLE happens synchronously, so two coroutines can never both own a spin.
    """
    balance: Decimal
    bet: int
    spin_count: int = 0
    free_spins_remaining: int = 0
    free_spin_total_win: Decimal = Decimal(0)
    boosted: bool = False
    boost_suspended: bool = False
    phase: SessionPhase = SessionPhase.IDLE
    totals: Dict[str, Decimal] = field(default_factory=lambda: {"wagered": Decimal(0), "won": Decimal(0)})

    def __post_init__(self):
        self.balance = Decimal(self.balance)
        if self.balance < 0:
            raise GameLogicException("Balance cannot be negative.", details={"balance": str(self.balance)})

    @property
    def spinning(self) -> bool:
        return self.phase is SessionPhase.SPINNING

    @property
    def in_free_spins(self) -> bool:
        return self.phase is SessionPhase.IN_FREE_SPINS

    @property
    def is_idle(self) -> bool:
        return self.phase is SessionPhase.IDLE

    def can_afford(self, amount) -> bool:
        return self.balance >= amount

    def begin_spin(self):
        if not self.is_idle:
            raise ConcurrentSpinException(details={"phase": self.phase.value})
        self.phase = SessionPhase.SPINNING

    def finish_spin(self):
        if not self.spinning:
            raise GameLogicException(f"Cannot finish a spin from phase '{self.phase.value}'.")
        self.phase = SessionPhase.IDLE

    def enter_free_spins(self):
        if not self.spinning:
            raise GameLogicException(f"Cannot enter free spins from phase '{self.phase.value}'.")
        # boost and free spins are mutually exclusive; the flag comes back on exit
        self.boost_suspended = self.boosted
        self.boosted = False
        self.free_spin_total_win = Decimal(0)
        self.phase = SessionPhase.IN_FREE_SPINS

    def exit_free_spins(self):
        if not self.in_free_spins:
            raise GameLogicException(f"Cannot exit free spins from phase '{self.phase.value}'.")
        self.phase = SessionPhase.IDLE
        self.boosted = self.boost_suspended
        self.boost_suspended = False

    def abort_spin(self):
        """
        Returns the session to IDLE after a spin failed or was cancelled.

        Escrowed stakes stay debited and unplayed free spins are forfeited.
        Safe to call from any phase.
        """
        if self.in_free_spins:
            self.boosted = self.boost_suspended
        self.boost_suspended = False
        self.free_spins_remaining = 0
        self.phase = SessionPhase.IDLE

    def grant_free_spins(self, count: int):
        if count < 0:
            raise GameLogicException("Free spin grant must be non-negative.")
        self.free_spins_remaining += count

    def consume_free_spin(self):
        if self.free_spins_remaining <= 0:
            raise GameLogicException("No free spins remaining.")
        self.free_spins_remaining -= 1

    def escrow(self, amount):
        if not self.can_afford(amount):
            raise InsufficientFundsException(
                details={"balance": str(self.balance), "required": str(amount)}
            )
        self.balance -= amount
        self.totals["wagered"] += amount

    def credit(self, amount):
        if amount < 0:
            raise GameLogicException("Credit amount must be non-negative.")
        self.balance += amount
        self.totals["won"] += amount
        if self.in_free_spins:
            self.free_spin_total_win += amount
