import logging

from pythonjsonlogger import jsonlogger


def configure_logging(json_format=True, level=logging.INFO, logger_name="prince_slots"):
    """
    Installs a single stream handler on the package logger.

    JSON output uses python-json-logger so game and financial events can be
    shipped as structured records; plain output falls back to basicConfig.
    """
    logger = logging.getLogger(logger_name)
    if json_format:
        handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(module)s %(funcName)s %(lineno)d %(message)s'
        )
        handler.setFormatter(formatter)
        if logger.hasHandlers():
            logger.handlers.clear()
        logger.addHandler(handler)
        logger.propagate = False
    else:
        logging.basicConfig(level=level)
    logger.setLevel(level)
    return logger
