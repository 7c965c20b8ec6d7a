import logging
import json
import os
from datetime import datetime, timezone


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")))
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def set_log_level(level: str) -> None:
    """Apply a level to every tranche_model logger created so far"""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("tranche_model") and isinstance(logger, logging.Logger):
            logger.setLevel(logging.getLevelName(level.upper()))


class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)
