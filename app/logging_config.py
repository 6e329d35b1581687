import logging
import logging.handlers
import os
from typing import Optional

LOG_FILE_NAME = "app.log"

# Формат
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

_configured = False


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    global _configured

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    # Повторный вызов (тесты, reload) не должен плодить хэндлеры
    if _configured:
        return

    # Вывод в stdout (важно для docker logs)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, LOG_FILE_NAME)

        # Файл-хэндлер с ротацией
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        root_logger.info("Логи пишутся в %s", log_file)

    _configured = True
