import logging
import secrets

from prince_slots.exceptions import GameLogicException
from prince_slots.models import Symbol

logger = logging.getLogger(__name__)


class OutcomeGenerator:
    """
    Draws symbols and builds spin grids from a weighted symbol pool.

    Args:
        settings (GameSettings): Symbols, weights, scatter odds and pay table.
        random_source: Any object with random() and randrange(); defaults to
            secrets.SystemRandom(). Tests inject random.Random(seed).
    """

    def __init__(self, settings, random_source=None):
        self.settings = settings
        self.random = random_source if random_source is not None else secrets.SystemRandom()
        self.symbols = list(settings.symbols)
        self.weights = [settings.weights[s] for s in self.symbols]
        self.total_weight = sum(self.weights)
        if not self.symbols or self.total_weight <= 0:
            raise GameLogicException("Cannot generate symbols: no weighted symbols configured.")

    def scatter_chance(self, boosted=False):
        return self.settings.boosted_scatter_chance if boosted else self.settings.scatter_chance

    def draw_fruit(self):
        """Weighted pick over the fruit pool. Never returns the scatter."""
        r = self.random.random() * self.total_weight
        for symbol, weight in zip(self.symbols, self.weights):
            r -= weight
            if r <= 0:
                return symbol
        # rounding can leave r marginally above zero
        return self.symbols[-1]

    def draw_symbol(self, boosted=False, scatter_chance=None):
        """
        Draws one cell.

        Args:
            boosted (bool): Use the boosted scatter chance.
            scatter_chance (float | None): Explicit override, used by free spins.

        Returns:
            Symbol: SCATTER with the scatter probability, otherwise a weighted fruit.
        """
        chance = scatter_chance if scatter_chance is not None else self.scatter_chance(boosted)
        if self.random.random() < chance:
            return Symbol.SCATTER
        return self.draw_fruit()

    def payout_multiplier(self, symbol, match_count):
        """
        Returns the pay multiplier for a symbol landing match_count times.

        Brackets are >=12, 10-11 and 8-9 (with the default minimum match of 8);
        symbols missing from the pay table use the default low tier.
        """
        if match_count < self.settings.min_match:
            return 0
        table = self.settings.payout_table.get(symbol, self.settings.default_payout)
        if match_count >= 12:
            return table[0]
        if match_count >= 10:
            return table[1]
        return table[2]

    def generate_grid(self, rows=None, columns=None, boosted=False, scatter_chance=None):
        """
        Generates a normal spin grid.

        Every cell is drawn independently, then each scatter beyond the
        configured cap (3 by default) in row-major order is resampled into a
        fruit. The post-pass keeps per-cell odds unchanged for the first three.

        Returns:
            tuple[tuple[Symbol]]: rows x columns grid.
        """
        rows = rows or self.settings.rows
        columns = columns or self.settings.columns
        cells = [
            [self.draw_symbol(boosted=boosted, scatter_chance=scatter_chance) for _ in range(columns)]
            for _ in range(rows)
        ]

        scatter_count = 0
        for r_idx in range(rows):
            for c_idx in range(columns):
                if cells[r_idx][c_idx] is Symbol.SCATTER:
                    scatter_count += 1
                    if scatter_count > self.settings.max_natural_scatters:
                        cells[r_idx][c_idx] = self.draw_fruit()

        if scatter_count > self.settings.max_natural_scatters:
            logger.debug("Resampled %d excess scatters", scatter_count - self.settings.max_natural_scatters)
        return tuple(tuple(row) for row in cells)

    def generate_forced_scatter_grid(self, rows=None, columns=None):
        """
        Generates a reveal grid with exactly trigger_scatter_count scatters.

        Only used for purchased and milestone bonuses, never for organic spins.
        """
        rows = rows or self.settings.rows
        columns = columns or self.settings.columns
        scatters_needed = self.settings.trigger_scatter_count
        if scatters_needed > rows * columns:
            raise GameLogicException(
                f"Cannot place {scatters_needed} scatters on a {rows}x{columns} grid."
            )

        cells = [[self.draw_fruit() for _ in range(columns)] for _ in range(rows)]
        positions = []
        while len(positions) < scatters_needed:
            position = (self.random.randrange(rows), self.random.randrange(columns))
            if position not in positions:
                positions.append(position)
                cells[position[0]][position[1]] = Symbol.SCATTER
        return tuple(tuple(row) for row in cells)
