import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Dict, Any

DEFAULT_FORMAT = '%(asctime)s - %(name)s - [%(levelname)s] - %(message)s'


def build_logging_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Translate the ``logging`` section of the bridge config into a dictConfig.

    Console output is always on; a rotating file handler is added when
    ``file`` is set. ``max_size`` is in megabytes.
    """
    level = str(config.get('level') or 'INFO').upper()
    handlers: Dict[str, Dict[str, Any]] = {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'bridge',
        }
    }

    log_file = config.get('file')
    if log_file:
        handlers['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'bridge',
            'filename': str(log_file),
            'maxBytes': int(config.get('max_size', 10)) * 1024 * 1024,
            'backupCount': int(config.get('backup_count', 5)),
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'bridge': {'format': config.get('format') or DEFAULT_FORMAT},
        },
        'handlers': handlers,
        'root': {'level': level, 'handlers': list(handlers)},
    }


def setup_logging(config: Dict[str, Any]) -> None:
    """Install the bridge's handlers on the root logger."""
    log_file = config.get('file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    dictConfig(build_logging_config(config))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
