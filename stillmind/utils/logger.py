import logging
import logging.config
from pathlib import Path

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(app_config=None) -> logging.Logger:
    """Configure the root logger from AppConfig.get_logging_config()."""
    if app_config is None:
        from stillmind.config import config as app_config

    if app_config.log_to_file:
        Path(app_config.log_dir).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(app_config.get_logging_config())
    return logging.getLogger()
