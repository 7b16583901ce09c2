import logging
from typing import Optional

from infra.config import load_config


_logger: Optional[logging.Logger] = None


def get_logger(name: str = "condominio") -> logging.Logger:
    global _logger
    if _logger is not None:
        return _logger

    cfg = load_config("config.yaml").logging
    nivel = logging.getLevelName(cfg.nivel.upper())
    if not isinstance(nivel, int):
        nivel = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(nivel)

    ch = logging.StreamHandler()
    ch.setLevel(nivel)
    fmt = logging.Formatter(cfg.formato)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    _logger = logger
    return logger
