"""
Game configuration with fail-fast environment validation.

Constants describe the reference "Prince of Fruits" machine. Environment
overrides are read once at import and validated by ConfigValidator.
"""
import json
import logging
import os

from dotenv import load_dotenv

from prince_slots.config_validator import validate_game_environment
from prince_slots.exceptions import ValidationException
from prince_slots.schemas import build_game_settings

load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """Reference game configuration."""

    _validated_config = validate_game_environment()

    # Layout
    ROWS = 5
    COLUMNS = 6

    # Symbols, weights and scatter odds
    SYMBOLS = ['cherry', 'lemon', 'grapes', 'watermelon', 'orange', 'strawberry', 'peach', 'pineapple']
    WEIGHTS = {symbol: 10 for symbol in SYMBOLS}
    SCATTER_CHANCE = _validated_config['SCATTER_CHANCE']
    BOOSTED_SCATTER_CHANCE = _validated_config['BOOSTED_SCATTER_CHANCE']
    FREE_SPIN_SCATTER_CHANCE = _validated_config['FREE_SPIN_SCATTER_CHANCE']

    # Pay table: [x12+, x10-11, x8-9]
    PAYOUT_TABLE = {
        'cherry': [500, 250, 100],
        'lemon': [250, 100, 25],
        'grapes': [150, 50, 20],
        'watermelon': [120, 20, 15],
        'orange': [100, 15, 10],
        'strawberry': [80, 12, 8],
        'peach': [50, 10, 5],
        'pineapple': [40, 9, 4],
    }
    DEFAULT_PAYOUT = [20, 7, 2]
    MIN_MATCH = 8

    # Scatter rules
    MAX_NATURAL_SCATTERS = 3
    TRIGGER_SCATTER_COUNT = 4
    FREE_SPINS_AWARDED = 10
    MILESTONE_INTERVAL = _validated_config['MILESTONE_INTERVAL']

    # Betting
    MIN_BET = 10
    MAX_BET = 200
    BET_STEP = 10
    BET_PRESETS = [10, 20, 40, 60, 80, 100, 120, 140, 160, 180, 200]
    START_BALANCE = _validated_config['START_BALANCE']
    START_BET = _validated_config['START_BET']
    PURCHASE_COST_MULTIPLIER = 100
    BOOST_SURCHARGE = 10
    AUTOPLAY_PACKAGES = [20, 30, 50]

    # Win tiers (multiples of bet)
    BIG_WIN_MULTIPLIER = 10
    MEGA_WIN_MULTIPLIER = 20
    MAX_WIN_MULTIPLIER = 500

    # Pacing hints (milliseconds)
    BASE_PACING = {'column_delay_ms': 80, 'duration_ms': 900, 'settle_ms': 100}
    FREE_SPIN_PACING = {'column_delay_ms': 55, 'duration_ms': 650, 'settle_ms': 80}
    REVEAL_PACING = {'column_delay_ms': 80, 'duration_ms': 900, 'settle_ms': 100}
    REVEAL_HOLD_MS = 1200
    FREE_SPIN_INTERVAL_MS = 600
    AUTOPLAY_INTERVAL_MS = 300
    PACING_ENABLED = _validated_config['PACING_ENABLED']

    # Logging
    LOG_JSON = _validated_config['LOG_JSON']

    @classmethod
    def to_dict(cls):
        return {
            'rows': cls.ROWS,
            'columns': cls.COLUMNS,
            'symbols': list(cls.SYMBOLS),
            'weights': dict(cls.WEIGHTS),
            'scatter_chance': cls.SCATTER_CHANCE,
            'boosted_scatter_chance': cls.BOOSTED_SCATTER_CHANCE,
            'free_spin_scatter_chance': cls.FREE_SPIN_SCATTER_CHANCE,
            'payout_table': {k: list(v) for k, v in cls.PAYOUT_TABLE.items()},
            'default_payout': list(cls.DEFAULT_PAYOUT),
            'min_match': cls.MIN_MATCH,
            'max_natural_scatters': cls.MAX_NATURAL_SCATTERS,
            'trigger_scatter_count': cls.TRIGGER_SCATTER_COUNT,
            'free_spins_awarded': cls.FREE_SPINS_AWARDED,
            'min_bet': cls.MIN_BET,
            'max_bet': cls.MAX_BET,
            'bet_step': cls.BET_STEP,
            'bet_presets': list(cls.BET_PRESETS),
            'start_balance': cls.START_BALANCE,
            'start_bet': cls.START_BET,
            'milestone_interval': cls.MILESTONE_INTERVAL,
            'purchase_cost_multiplier': cls.PURCHASE_COST_MULTIPLIER,
            'boost_surcharge': cls.BOOST_SURCHARGE,
            'autoplay_packages': list(cls.AUTOPLAY_PACKAGES),
            'big_win_multiplier': cls.BIG_WIN_MULTIPLIER,
            'mega_win_multiplier': cls.MEGA_WIN_MULTIPLIER,
            'max_win_multiplier': cls.MAX_WIN_MULTIPLIER,
            'base_pacing': dict(cls.BASE_PACING),
            'free_spin_pacing': dict(cls.FREE_SPIN_PACING),
            'reveal_pacing': dict(cls.REVEAL_PACING),
            'reveal_hold_ms': cls.REVEAL_HOLD_MS,
            'free_spin_interval_ms': cls.FREE_SPIN_INTERVAL_MS,
            'autoplay_interval_ms': cls.AUTOPLAY_INTERVAL_MS,
            'pacing_enabled': cls.PACING_ENABLED,
        }

    @classmethod
    def game_settings(cls):
        return build_game_settings(cls.to_dict())


class TestingConfig(Config):
    __test__ = False  # keep pytest from collecting this class

    START_BALANCE = 5000
    START_BET = 10
    SCATTER_CHANCE = 0.12
    BOOSTED_SCATTER_CHANCE = 0.10
    FREE_SPIN_SCATTER_CHANCE = 0.12
    MILESTONE_INTERVAL = 80
    PACING_ENABLED = False
    LOG_JSON = False


def load_game_config(file_path):
    """
    Loads a JSON game configuration file and validates it.

    The file holds a root object with a 'game' key whose value uses the same
    keys as Config.to_dict(). Keys missing from the file fall back to Config.

    Args:
        file_path (str): Path to the JSON file.

    Returns:
        GameSettings: The validated settings.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValidationException: If the JSON is malformed or fails validation.
    """
    if not os.path.exists(file_path):
        logger.error("Game configuration file not found at %s", file_path)
        raise FileNotFoundError(f"Game configuration file not found at {file_path}")

    try:
        with open(file_path, 'r') as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationException(
            status_message=f"Invalid JSON in {file_path}: {e.msg} (line {e.lineno}, col {e.colno})"
        )

    game = raw.get('game') if isinstance(raw, dict) else None
    if not isinstance(game, dict):
        raise ValidationException(status_message=f"Config file {file_path}: 'game' key must be a dictionary.")

    merged = Config.to_dict()
    merged.update(game)
    settings = build_game_settings(merged)
    logger.info("Loaded game configuration from %s", file_path)
    return settings
