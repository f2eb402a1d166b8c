"""Logging setup."""
import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(app):
    """Configure the ``pubreview`` logger hierarchy from ``LOG_LEVEL``."""
    level = app.config.get('LOG_LEVEL', 'INFO')
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger('pubreview')
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)

    app.logger.setLevel(level)
    logger.debug("Logging initialized at level %s", logging.getLevelName(level))
