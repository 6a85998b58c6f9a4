from marshmallow import Schema, fields, validate, ValidationError, post_load, validates_schema

from prince_slots.exceptions import ValidationException
from prince_slots.models import (
    FRUIT_SYMBOLS, GameSettings, SessionPhase, SpinPacing, SpinStatus, Symbol, TriggerKind, WinTier
)

FRUIT_VALUES = [s.value for s in FRUIT_SYMBOLS]


# --- Game configuration ---

class SpinPacingSchema(Schema):
    column_delay_ms = fields.Integer(required=True, validate=validate.Range(min=0))
    duration_ms = fields.Integer(required=True, validate=validate.Range(min=0))
    settle_ms = fields.Integer(required=True, validate=validate.Range(min=0))

    @post_load
    def make_pacing(self, data, **kwargs):
        return SpinPacing(**data)


class GameConfigSchema(Schema):
    rows = fields.Integer(required=True, validate=validate.Range(min=1))
    columns = fields.Integer(required=True, validate=validate.Range(min=1))
    symbols = fields.List(
        fields.String(validate=validate.OneOf(FRUIT_VALUES)),
        required=True, validate=validate.Length(min=1)
    )
    weights = fields.Dict(
        keys=fields.String(validate=validate.OneOf(FRUIT_VALUES)),
        values=fields.Integer(validate=validate.Range(min=1)),
        required=True
    )
    scatter_chance = fields.Float(required=True, validate=validate.Range(min=0.0, max=1.0))
    boosted_scatter_chance = fields.Float(required=True, validate=validate.Range(min=0.0, max=1.0))
    free_spin_scatter_chance = fields.Float(required=True, validate=validate.Range(min=0.0, max=1.0))
    payout_table = fields.Dict(
        keys=fields.String(validate=validate.OneOf(FRUIT_VALUES)),
        values=fields.List(fields.Integer(validate=validate.Range(min=1)), validate=validate.Length(equal=3)),
        required=True
    )
    default_payout = fields.List(
        fields.Integer(validate=validate.Range(min=1)),
        load_default=lambda: [20, 7, 2], validate=validate.Length(equal=3)
    )
    min_match = fields.Integer(load_default=8, validate=validate.Range(min=1))
    max_natural_scatters = fields.Integer(load_default=3, validate=validate.Range(min=0))
    trigger_scatter_count = fields.Integer(load_default=4, validate=validate.Range(min=1))
    free_spins_awarded = fields.Integer(load_default=10, validate=validate.Range(min=1))
    min_bet = fields.Integer(required=True, validate=validate.Range(min=1))
    max_bet = fields.Integer(required=True, validate=validate.Range(min=1))
    bet_step = fields.Integer(required=True, validate=validate.Range(min=1))
    bet_presets = fields.List(fields.Integer(validate=validate.Range(min=1)), load_default=list)
    start_balance = fields.Decimal(required=True, validate=validate.Range(min=0))
    start_bet = fields.Integer(required=True)
    milestone_interval = fields.Integer(load_default=80, validate=validate.Range(min=1))
    purchase_cost_multiplier = fields.Integer(load_default=100, validate=validate.Range(min=1))
    boost_surcharge = fields.Integer(load_default=10, validate=validate.Range(min=0))
    autoplay_packages = fields.List(
        fields.Integer(validate=validate.Range(min=1)),
        load_default=lambda: [20, 30, 50], validate=validate.Length(min=1)
    )
    big_win_multiplier = fields.Integer(load_default=10, validate=validate.Range(min=1))
    mega_win_multiplier = fields.Integer(load_default=20, validate=validate.Range(min=1))
    max_win_multiplier = fields.Integer(load_default=500, validate=validate.Range(min=1))
    base_pacing = fields.Nested(SpinPacingSchema, required=True)
    free_spin_pacing = fields.Nested(SpinPacingSchema, required=True)
    reveal_pacing = fields.Nested(SpinPacingSchema, required=True)
    reveal_hold_ms = fields.Integer(load_default=1200, validate=validate.Range(min=0))
    free_spin_interval_ms = fields.Integer(load_default=600, validate=validate.Range(min=0))
    autoplay_interval_ms = fields.Integer(load_default=300, validate=validate.Range(min=0))
    pacing_enabled = fields.Boolean(load_default=True)

    @validates_schema
    def validate_symbol_tables(self, data, **kwargs):
        symbols = data.get('symbols') or []
        if len(set(symbols)) != len(symbols):
            raise ValidationError('Symbols must be unique.', 'symbols')
        weights = data.get('weights') or {}
        if set(weights) != set(symbols):
            raise ValidationError('Weights must be given for exactly the configured symbols.', 'weights')
        for symbol, tiers in (data.get('payout_table') or {}).items():
            if symbol not in symbols:
                raise ValidationError(f"Payout table lists unknown symbol '{symbol}'.", 'payout_table')
            # tiers are ordered [>=12, 10-11, 8-9]
            if not tiers[0] >= tiers[1] >= tiers[2]:
                raise ValidationError(f"Payout tiers for '{symbol}' must not decrease with match count.", 'payout_table')

    @validates_schema
    def validate_bets(self, data, **kwargs):
        min_bet, max_bet, step = data.get('min_bet'), data.get('max_bet'), data.get('bet_step')
        if None in (min_bet, max_bet, step):
            return
        if min_bet > max_bet:
            raise ValidationError('min_bet must not exceed max_bet.', 'min_bet')
        start_bet = data.get('start_bet')
        if start_bet is not None and not (min_bet <= start_bet <= max_bet and start_bet % step == 0):
            raise ValidationError(f'start_bet must be a multiple of {step} within [{min_bet}, {max_bet}].', 'start_bet')
        for preset in data.get('bet_presets') or []:
            if not min_bet <= preset <= max_bet:
                raise ValidationError(f'Bet preset {preset} is outside [{min_bet}, {max_bet}].', 'bet_presets')

    @validates_schema
    def validate_scatter_rules(self, data, **kwargs):
        trigger = data.get('trigger_scatter_count')
        cap = data.get('max_natural_scatters')
        if trigger is not None and cap is not None and cap >= trigger:
            raise ValidationError('max_natural_scatters must be below trigger_scatter_count.', 'max_natural_scatters')
        rows, columns = data.get('rows'), data.get('columns')
        if trigger is not None and rows and columns and trigger > rows * columns:
            raise ValidationError('trigger_scatter_count does not fit on the grid.', 'trigger_scatter_count')

    @post_load
    def make_settings(self, data, **kwargs):
        return GameSettings(
            rows=data['rows'],
            columns=data['columns'],
            symbols=tuple(Symbol(s) for s in data['symbols']),
            weights={Symbol(s): w for s, w in data['weights'].items()},
            scatter_chance=data['scatter_chance'],
            boosted_scatter_chance=data['boosted_scatter_chance'],
            free_spin_scatter_chance=data['free_spin_scatter_chance'],
            payout_table={Symbol(s): tuple(t) for s, t in data['payout_table'].items()},
            default_payout=tuple(data['default_payout']),
            min_match=data['min_match'],
            max_natural_scatters=data['max_natural_scatters'],
            trigger_scatter_count=data['trigger_scatter_count'],
            free_spins_awarded=data['free_spins_awarded'],
            min_bet=data['min_bet'],
            max_bet=data['max_bet'],
            bet_step=data['bet_step'],
            bet_presets=tuple(data['bet_presets']),
            start_balance=data['start_balance'],
            start_bet=data['start_bet'],
            milestone_interval=data['milestone_interval'],
            purchase_cost_multiplier=data['purchase_cost_multiplier'],
            boost_surcharge=data['boost_surcharge'],
            autoplay_packages=tuple(data['autoplay_packages']),
            big_win_multiplier=data['big_win_multiplier'],
            mega_win_multiplier=data['mega_win_multiplier'],
            max_win_multiplier=data['max_win_multiplier'],
            base_pacing=data['base_pacing'],
            free_spin_pacing=data['free_spin_pacing'],
            reveal_pacing=data['reveal_pacing'],
            reveal_hold_ms=data['reveal_hold_ms'],
            free_spin_interval_ms=data['free_spin_interval_ms'],
            autoplay_interval_ms=data['autoplay_interval_ms'],
            pacing_enabled=data['pacing_enabled'],
        )


def build_game_settings(raw_config):
    """Validate a raw config dict and return GameSettings, raising ValidationException on bad input."""
    try:
        return GameConfigSchema().load(raw_config)
    except ValidationError as err:
        raise ValidationException(status_message="Invalid game configuration", details=err.messages)


# --- Engine output ---

class ClusterWinSchema(Schema):
    symbol = fields.Enum(Symbol, by_value=True)
    positions = fields.List(fields.List(fields.Integer()))
    count = fields.Integer()
    multiplier = fields.Integer()
    win_amount = fields.Integer()


class SpinOutcomeSchema(Schema):
    grid = fields.Method('dump_grid')
    bet = fields.Integer()
    clusters = fields.List(fields.Nested(ClusterWinSchema))
    total_win = fields.Integer()
    scatter_count = fields.Integer()
    scatter_positions = fields.List(fields.List(fields.Integer()))
    triggered = fields.Boolean()
    free_spins_awarded = fields.Integer()
    win_tier = fields.Enum(WinTier, by_value=True)

    def dump_grid(self, outcome):
        return [[symbol.value for symbol in row] for row in outcome.grid]


class SessionStateSchema(Schema):
    balance = fields.Decimal(as_string=True)
    bet = fields.Integer()
    spin_count = fields.Integer()
    free_spins_remaining = fields.Integer()
    free_spin_total_win = fields.Decimal(as_string=True)
    boosted = fields.Boolean()
    phase = fields.Enum(SessionPhase, by_value=True)


class SpinResultSchema(Schema):
    status = fields.Enum(SpinStatus, by_value=True)
    outcome = fields.Nested(SpinOutcomeSchema, allow_none=True)
    trigger = fields.Enum(TriggerKind, by_value=True, allow_none=True)
    free_spin_total = fields.Decimal(as_string=True, allow_none=True)
    error_code = fields.String(allow_none=True)
