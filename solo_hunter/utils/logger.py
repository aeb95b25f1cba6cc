import logging
import logging.config

from solo_hunter.config import config

_configured = False


def setup_logging(force: bool = False) -> logging.Logger:
    """Настройка логирования из конфигурации приложения (один раз за процесс)"""
    global _configured
    if _configured and not force:
        return logging.getLogger("solo_hunter")

    if config.log_to_file:
        config.log_dir.mkdir(exist_ok=True, parents=True)

    logging.config.dictConfig(config.get_logging_config())
    _configured = True

    logger = logging.getLogger("solo_hunter")
    logger.debug(f"Логирование настроено: уровень {config.log_level.value}")
    return logger
