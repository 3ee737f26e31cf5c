import logging

from userdesk.core import config


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configures the ``userdesk`` logger to write to the console."""
    logger = logging.getLogger('userdesk')
    logger.setLevel((level or config.LOG_LEVEL).upper())

    # --- Prevent duplicate handlers ---
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
