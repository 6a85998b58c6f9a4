"""
Environment validation for game configuration overrides.

Every tunable read from the environment is checked here before the Config
class is built, so a bad value fails at import time instead of mid-session.
"""

import logging
import os
import warnings
from decimal import Decimal, InvalidOperation
from typing import List, Optional

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when an environment override is missing or invalid."""
    pass


class ConfigValidator:
    """Validates environment overrides for the game configuration."""

    def __init__(self, is_production: bool = None):
        """
        Initialize the configuration validator.

        Args:
            is_production: If None, auto-detect from SLOTS_ENV
        """
        if is_production is None:
            is_production = os.getenv('SLOTS_ENV', 'development').lower() == 'production'

        self.is_production = is_production
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def _report(self, message: str):
        if self.is_production:
            self.errors.append(f"CRITICAL: {message}")
        else:
            self.warnings.append(f"WARNING: {message}")

    def validate_int_env(self, var_name: str, default: int, minimum: int = None,
                         maximum: int = None) -> int:
        raw = os.getenv(var_name)
        if raw is None or not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ConfigValidationError(f"{var_name} must be an integer, got '{raw}'")

        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            self._report(f"{var_name}={value} outside [{minimum}, {maximum}], using default {default}")
            return default
        return value

    def validate_probability_env(self, var_name: str, default: float) -> float:
        raw = os.getenv(var_name)
        if raw is None or not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError:
            raise ConfigValidationError(f"{var_name} must be a number, got '{raw}'")

        if not 0.0 <= value <= 1.0:
            self._report(f"{var_name}={value} is not a probability, using default {default}")
            return default
        return value

    def validate_decimal_env(self, var_name: str, default: Decimal) -> Decimal:
        raw = os.getenv(var_name)
        if raw is None or not raw.strip():
            return default
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise ConfigValidationError(f"{var_name} must be a decimal amount, got '{raw}'")

        if value < 0:
            self._report(f"{var_name}={value} is negative, using default {default}")
            return default
        return value

    @staticmethod
    def validate_bool_env(var_name: str, default: bool) -> bool:
        raw = os.getenv(var_name)
        if raw is None:
            return default
        return raw.lower() in ('true', '1', 't')

    def validate_all(self) -> dict:
        """
        Validate all environment overrides.

        Returns:
            Dictionary of validated configuration values

        Raises:
            ConfigValidationError: If a value cannot be parsed, or is out of
                range while running in production
        """
        config = {}

        try:
            config['START_BALANCE'] = self.validate_decimal_env('SLOTS_START_BALANCE', Decimal(5000))
            config['START_BET'] = self.validate_int_env('SLOTS_START_BET', 10, minimum=10, maximum=200)
            config['SCATTER_CHANCE'] = self.validate_probability_env('SLOTS_SCATTER_CHANCE', 0.12)
            config['BOOSTED_SCATTER_CHANCE'] = self.validate_probability_env('SLOTS_BOOSTED_SCATTER_CHANCE', 0.10)
            config['FREE_SPIN_SCATTER_CHANCE'] = self.validate_probability_env('SLOTS_FREE_SPIN_SCATTER_CHANCE', 0.12)
            config['MILESTONE_INTERVAL'] = self.validate_int_env('SLOTS_MILESTONE_INTERVAL', 80, minimum=1)
            config['PACING_ENABLED'] = self.validate_bool_env('SLOTS_PACING_ENABLED', True)
            config['LOG_JSON'] = self.validate_bool_env('SLOTS_LOG_JSON', False)

            if config['START_BET'] % 10 != 0:
                self._report(f"SLOTS_START_BET={config['START_BET']} is not a multiple of 10, using 10")
                config['START_BET'] = 10

            if self.errors:
                error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in self.errors)
                if self.warnings:
                    error_msg += "\n\nWarnings:\n" + "\n".join(f"  - {warning}" for warning in self.warnings)
                raise ConfigValidationError(error_msg)

            for warning in self.warnings:
                warnings.warn(warning, UserWarning)

            return config

        except Exception as e:
            if isinstance(e, ConfigValidationError):
                raise
            raise ConfigValidationError(f"Configuration validation error: {str(e)}") from e


def validate_game_environment(is_production: Optional[bool] = None) -> dict:
    """
    Validate environment overrides with fail-fast behavior.

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        return ConfigValidator(is_production=is_production).validate_all()
    except ConfigValidationError as e:
        logger.error("Game configuration validation failed: %s", e)
        raise
