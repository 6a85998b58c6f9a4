import json
import os
import tempfile
import unittest
from decimal import Decimal
from unittest.mock import patch

from prince_slots.config import Config, TestingConfig, load_game_config
from prince_slots.config_validator import ConfigValidationError, ConfigValidator, validate_game_environment
from prince_slots.exceptions import ValidationException
from prince_slots.models import FRUIT_SYMBOLS, SpinPacing, Symbol
from prince_slots.schemas import build_game_settings


class TestGameSettings(unittest.TestCase):

    def test_reference_settings(self):
        settings = TestingConfig.game_settings()
        self.assertEqual((settings.rows, settings.columns), (5, 6))
        self.assertEqual(settings.symbols, FRUIT_SYMBOLS)
        self.assertEqual(settings.weights[Symbol.CHERRY], 10)
        self.assertEqual(settings.payout_table[Symbol.CHERRY], (500, 250, 100))
        self.assertEqual(settings.base_pacing, SpinPacing(80, 900, 100))
        self.assertEqual(settings.free_spin_pacing, SpinPacing(55, 650, 80))
        self.assertEqual(settings.start_balance, Decimal(5000))
        self.assertFalse(settings.pacing_enabled)
        self.assertEqual(settings.purchase_cost(10), 1000)
        self.assertEqual(settings.clamp_bet(500), 200)

    def test_unknown_symbol_rejected(self):
        raw = TestingConfig.to_dict()
        raw['symbols'] = raw['symbols'] + ['banana']
        with self.assertRaises(ValidationException):
            build_game_settings(raw)

    def test_weights_must_cover_symbols(self):
        raw = TestingConfig.to_dict()
        del raw['weights']['cherry']
        with self.assertRaises(ValidationException) as ctx:
            build_game_settings(raw)
        self.assertIn('weights', ctx.exception.details)

    def test_decreasing_payout_tiers_rejected(self):
        raw = TestingConfig.to_dict()
        raw['payout_table']['lemon'] = [10, 100, 25]
        with self.assertRaises(ValidationException) as ctx:
            build_game_settings(raw)
        self.assertIn('payout_table', ctx.exception.details)

    def test_zero_payout_tier_rejected(self):
        raw = TestingConfig.to_dict()
        raw["payout_table"]["pineapple"] = [40, 9, 0]
        with self.assertRaises(ValidationException) as ctx:
            build_game_settings(raw)
        self.assertIn("payout_table", ctx.exception.details)

    def test_scatter_cap_must_stay_below_trigger(self):
        raw = TestingConfig.to_dict()
        raw['max_natural_scatters'] = 4
        with self.assertRaises(ValidationException):
            build_game_settings(raw)

    def test_start_bet_must_be_on_step(self):
        raw = TestingConfig.to_dict()
        raw['start_bet'] = 15
        with self.assertRaises(ValidationException) as ctx:
            build_game_settings(raw)
        self.assertIn('start_bet', ctx.exception.details)

    def test_probability_out_of_range_rejected(self):
        raw = TestingConfig.to_dict()
        raw['scatter_chance'] = 1.5
        with self.assertRaises(ValidationException):
            build_game_settings(raw)


class TestLoadGameConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def _write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, 'w') as f:
            f.write(content)
        return path

    def test_overrides_merge_over_defaults(self):
        path = self._write('game.json', json.dumps({'game': {'scatter_chance': 0.2, 'milestone_interval': 40}}))
        settings = load_game_config(path)
        self.assertEqual(settings.scatter_chance, 0.2)
        self.assertEqual(settings.milestone_interval, 40)
        self.assertEqual(settings.rows, Config.ROWS)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_game_config(os.path.join(self.tmpdir.name, 'absent.json'))

    def test_malformed_json(self):
        path = self._write('bad.json', '{"game": ')
        with self.assertRaises(ValidationException):
            load_game_config(path)

    def test_game_key_required(self):
        path = self._write('nogame.json', json.dumps({'rows': 5}))
        with self.assertRaises(ValidationException):
            load_game_config(path)

    def test_invalid_values(self):
        path = self._write('invalid.json', json.dumps({'game': {'min_bet': 300}}))
        with self.assertRaises(ValidationException):
            load_game_config(path)


class TestConfigValidator(unittest.TestCase):

    def test_defaults_without_overrides(self):
        with patch.dict(os.environ, {}, clear=True):
            config = ConfigValidator(is_production=False).validate_all()
        self.assertEqual(config['START_BALANCE'], Decimal(5000))
        self.assertEqual(config['START_BET'], 10)
        self.assertEqual(config['SCATTER_CHANCE'], 0.12)
        self.assertEqual(config['BOOSTED_SCATTER_CHANCE'], 0.10)
        self.assertEqual(config['MILESTONE_INTERVAL'], 80)
        self.assertTrue(config['PACING_ENABLED'])
        self.assertFalse(config['LOG_JSON'])

    def test_overrides_parsed(self):
        env = {
            'SLOTS_START_BALANCE': '250.50',
            'SLOTS_START_BET': '40',
            'SLOTS_SCATTER_CHANCE': '0.2',
            'SLOTS_PACING_ENABLED': 'false',
            'SLOTS_LOG_JSON': '1',
        }
        with patch.dict(os.environ, env, clear=True):
            config = ConfigValidator(is_production=False).validate_all()
        self.assertEqual(config['START_BALANCE'], Decimal('250.50'))
        self.assertEqual(config['START_BET'], 40)
        self.assertEqual(config['SCATTER_CHANCE'], 0.2)
        self.assertFalse(config['PACING_ENABLED'])
        self.assertTrue(config['LOG_JSON'])

    def test_unparseable_value_raises(self):
        with patch.dict(os.environ, {'SLOTS_START_BET': 'ten'}, clear=True):
            with self.assertRaises(ConfigValidationError):
                ConfigValidator(is_production=False).validate_all()

    def test_out_of_range_warns_in_development(self):
        with patch.dict(os.environ, {'SLOTS_SCATTER_CHANCE': '1.5'}, clear=True):
            with self.assertWarns(UserWarning):
                config = ConfigValidator(is_production=False).validate_all()
        self.assertEqual(config['SCATTER_CHANCE'], 0.12)

    def test_off_step_bet_falls_back(self):
        with patch.dict(os.environ, {'SLOTS_START_BET': '15'}, clear=True):
            with self.assertWarns(UserWarning):
                config = ConfigValidator(is_production=False).validate_all()
        self.assertEqual(config['START_BET'], 10)

    def test_out_of_range_fails_in_production(self):
        with patch.dict(os.environ, {'SLOTS_START_BET': '5000'}, clear=True):
            with self.assertRaises(ConfigValidationError):
                validate_game_environment(is_production=True)

    def test_production_detected_from_environment(self):
        with patch.dict(os.environ, {'SLOTS_ENV': 'production'}, clear=True):
            self.assertTrue(ConfigValidator().is_production)
        with patch.dict(os.environ, {}, clear=True):
            self.assertFalse(ConfigValidator().is_production)


if __name__ == '__main__':
    unittest.main()
