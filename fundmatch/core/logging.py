"""Package-wide logging configuration.

Library modules only call get_logger(). Entry points call setup_logging()
once, normally with the settings singleton, to decide where records go.
"""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from fundmatch.settings import Settings

ROOT_LOGGER_NAME = "fundmatch"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client loggers of the optional LLM renderer; quiet unless DEBUG
CLIENT_LOGGERS = ("openai", "httpx", "httpcore")

# Attribute marking handlers installed by setup_logging
_OWNED = "_fundmatch_owned"


def setup_logging(
    config: Optional["Settings"] = None,
    *,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Configure the "fundmatch" logger tree.

    Values come from config (default: the settings singleton); explicit
    keyword arguments override them. Reconfiguring replaces only the
    handlers installed here, so handlers added by a host application
    survive.

    Args:
        config: Settings providing log_level, log_file and log_format
        level: Logging level override (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file override
        format_string: Format override

    Returns:
        The "fundmatch" logger
    """
    if config is None:
        from fundmatch.settings import settings as config

    level_name = (level or config.log_level).upper()
    log_file = log_file if log_file is not None else config.log_file
    formatter = logging.Formatter(format_string or config.log_format, datefmt=DATE_FORMAT)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, _OWNED, False):
            logger.removeHandler(handler)
            handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _OWNED, True)
        logger.addHandler(handler)

    client_level = logging.DEBUG if level_name == "DEBUG" else logging.WARNING
    for name in CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the "fundmatch" tree.

    Args:
        name: Module name (e.g., "matching.gate", "dedup")
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
