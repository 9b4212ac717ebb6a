import logging
import sys
from typing import Optional

_LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s %(levelname)8s [%(name)s]: %(message)s"


def resolve_log_level(log_level: Optional[str]) -> int:
    """レベル名をloggingの定数に変換（不明な名前はINFO）"""
    if not log_level:
        return logging.INFO
    return _LOG_LEVEL_MAP.get(log_level.upper(), logging.INFO)


def setup_logging(log_level: str, stream=None) -> int:
    level = resolve_log_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)

    root_logger.addHandler(handler)
    return level


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
