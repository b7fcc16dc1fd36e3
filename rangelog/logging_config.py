# rangelog/logging_config.py
"""
Конфигурация логирования для RangeLog.
Console for the operator, rotating files under ``logs/`` for post-mortem.
"""

import logging
import logging.handlers
import os
from pathlib import Path

SERIAL_LOGGER = "rangelog.serialio"


def setup_logging(log_level: str = "INFO", log_to_file: bool = True, log_dir: str = "logs"):
    """
    Настройка системы логирования.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR
        log_to_file: also write rotating files under ``log_dir``
        log_dir: directory for the rotating files
    """
    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d [%(name)24s] %(levelname)8s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)18s] %(levelname)5s: %(message)s",
        datefmt="%H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "rangelog.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        # Только порты и кадры
        serial_handler = logging.handlers.RotatingFileHandler(
            log_path / "serial_io.log",
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=10
        )
        serial_handler.setLevel(logging.DEBUG)
        serial_handler.setFormatter(detailed_formatter)
        serial_handler.addFilter(lambda record: record.name.startswith(SERIAL_LOGGER))
        root_logger.addHandler(serial_handler)

    loggers_config = {
        SERIAL_LOGGER: logging.DEBUG,
        "rangelog.poller": logging.DEBUG,
        "rangelog.api": logging.INFO,
        "uvicorn": logging.INFO,
        "uvicorn.access": logging.WARNING,
        "asyncio": logging.WARNING,
    }
    for logger_name, level in loggers_config.items():
        logging.getLogger(logger_name).setLevel(level)

    setup_log = logging.getLogger("rangelog.setup")
    setup_log.info("Logging initialized: level=%s, to_file=%s", log_level, log_to_file)
    if log_to_file:
        setup_log.info("Log directory: %s", Path(log_dir).absolute())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_hex_data(logger: logging.Logger, level: int, message: str, data: bytes, max_bytes: int = 64):
    """
    Логирование бинарных данных в hex формате с ограничением размера.
    """
    if not logger.isEnabledFor(level):
        return

    if len(data) <= max_bytes:
        logger.log(level, "%s (%d bytes): %s", message, len(data), data.hex(" ").upper())
    else:
        hex_start = data[:max_bytes // 2].hex(" ").upper()
        hex_end = data[-max_bytes // 2:].hex(" ").upper()
        logger.log(level, "%s (%d bytes): %s ... %s", message, len(data), hex_start, hex_end)


# Автонастройка при импорте, по умолчанию выключена
if os.getenv("RANGELOG_AUTO_LOGGING", "0") == "1":
    setup_logging(os.getenv("RANGELOG_LOG_LEVEL", "INFO"),
                  os.getenv("RANGELOG_LOG_TO_FILE", "1") == "1")
