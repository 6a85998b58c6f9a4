"""
Game Event Logging
Structured audit records for spins, bonuses and balance movements
"""

import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class GameEventLogger:
    """Centralized game event logging"""

    @staticmethod
    def log_game_event(event_type: str, spin_count: int = None, bet_amount: int = None,
                       win_amount=None, details: dict = None):
        """Log spin, trigger and free-spin session events"""
        event_data = {
            'event_type': 'game',
            'sub_type': event_type,
            'spin_count': spin_count,
            'bet_amount': bet_amount,
            'win_amount': str(win_amount) if win_amount is not None else None,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'details': details or {}
        }
        logger.info(f"GAME_EVENT: {json.dumps(event_data, default=str)}")

    @staticmethod
    def log_financial_event(event_type: str, amount, balance_before, balance_after,
                            details: dict = None):
        """Log escrow, credit and purchase movements"""
        event_data = {
            'event_type': 'financial',
            'sub_type': event_type,
            'amount': str(amount),
            'balance_before': str(balance_before),
            'balance_after': str(balance_after),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'details': details or {}
        }
        logger.info(f"FINANCIAL_EVENT: {json.dumps(event_data, default=str)}")

    @staticmethod
    def log_rejection(reason: str, details: dict = None):
        """Log a rejected or ignored request"""
        event_data = {
            'event_type': 'rejection',
            'reason': reason,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'details': details or {}
        }
        logger.warning(f"REJECTED_EVENT: {json.dumps(event_data, default=str)}")
