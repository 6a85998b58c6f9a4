from prince_slots.models import ClusterWin, SpinOutcome, Symbol, WinTier


class GridEvaluator:
    """Scatter-pay evaluation: a symbol pays on its total count anywhere on the grid."""

    def __init__(self, generator):
        self.generator = generator
        self.settings = generator.settings

    def _symbol_positions(self, grid):
        positions = {}
        for r_idx, row in enumerate(grid):
            for c_idx, symbol in enumerate(row):
                positions.setdefault(symbol, []).append((r_idx, c_idx))
        return positions

    def _calculate_cluster_wins(self, positions_by_symbol, bet):
        clusters = []
        for symbol in self.settings.symbols:
            positions = positions_by_symbol.get(symbol, [])
            count = len(positions)
            if count < self.settings.min_match:
                continue
            multiplier = self.generator.payout_multiplier(symbol, count)
            clusters.append(ClusterWin(
                symbol=symbol,
                positions=tuple(positions),
                count=count,
                multiplier=multiplier,
                win_amount=bet * multiplier,
            ))
        return clusters

    def win_tier(self, total_win, bet):
        if total_win <= 0:
            return WinTier.NONE
        if total_win >= bet * self.settings.mega_win_multiplier:
            return WinTier.MEGA
        if total_win >= bet * self.settings.big_win_multiplier:
            return WinTier.BIG
        return WinTier.WIN

    def evaluate(self, grid, bet, in_free_spins=False):
        """
        Evaluates a completed grid.

        Args:
            grid: rows x columns of Symbol.
            bet (int): Bet the wins are multiplied by.
            in_free_spins (bool): Scatters never trigger inside a free-spin session.

        Returns:
            SpinOutcome: Clusters, total win and scatter trigger data. The
            session is never touched here.
        """
        positions_by_symbol = self._symbol_positions(grid)
        clusters = self._calculate_cluster_wins(positions_by_symbol, bet)
        total_win = sum(cluster.win_amount for cluster in clusters)

        scatter_positions = positions_by_symbol.get(Symbol.SCATTER, [])
        triggered = (
            len(scatter_positions) == self.settings.trigger_scatter_count
            and not in_free_spins
        )

        return SpinOutcome(
            grid=tuple(tuple(row) for row in grid),
            bet=bet,
            clusters=tuple(clusters),
            total_win=total_win,
            scatter_count=len(scatter_positions),
            scatter_positions=tuple(scatter_positions) if triggered else (),
            triggered=triggered,
            free_spins_awarded=self.settings.free_spins_awarded if triggered else 0,
            win_tier=self.win_tier(total_win, bet),
        )

    def reveal_outcome(self, grid, bet):
        """Outcome for a forced reveal grid: every scatter highlighted, nothing paid."""
        scatter_positions = self._symbol_positions(grid).get(Symbol.SCATTER, [])
        return SpinOutcome(
            grid=tuple(tuple(row) for row in grid),
            bet=bet,
            scatter_count=len(scatter_positions),
            scatter_positions=tuple(scatter_positions),
            triggered=True,
            free_spins_awarded=self.settings.free_spins_awarded,
        )
