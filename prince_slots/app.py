"""
Session factory: configures logging and builds an orchestrator from a Config class.
"""
import logging

from prince_slots.config import Config
from prince_slots.logging_config import configure_logging
from prince_slots.services.autoplay_service import AutoPlayController
from prince_slots.services.presentation import LoggingPresenter
from prince_slots.utils.spin_handler import SpinOrchestrator

logger = logging.getLogger(__name__)


def create_session(config_class=Config, presenter=None, random_source=None):
    """
    Builds a ready-to-play session.

    Logging follows config_class.LOG_JSON: JSON records on the package logger
    when set, plain basicConfig output otherwise.

    Args:
        config_class: Config or a subclass such as TestingConfig.
        presenter: Presenter implementation; defaults to LoggingPresenter.
        random_source: Optional seeded random source for the generator.

    Returns:
        tuple[SpinOrchestrator, AutoPlayController]
    """
    configure_logging(json_format=config_class.LOG_JSON, level=logging.INFO)

    settings = config_class.game_settings()
    orchestrator = SpinOrchestrator.new_session(
        settings,
        presenter=presenter if presenter is not None else LoggingPresenter(),
        random_source=random_source,
    )
    logger.info(
        "Session created: balance %s, bet %d, pacing %s",
        orchestrator.state.balance, orchestrator.state.bet,
        "on" if settings.pacing_enabled else "off"
    )
    return orchestrator, AutoPlayController(orchestrator)
