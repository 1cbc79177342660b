import logging
import logging.config
import re
from pathlib import Path
from typing import Optional, Union

# Matches ANSI escape codes (colours, bold, ...)
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")

DEFAULT_LOGGING_CONFIG = Path(__file__).resolve().parent.parent.parent / "logging.ini"


class StripAnsiFilter(logging.Filter):
    """Remove ANSI colour codes from log records (meant for file logs)."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = ANSI_ESCAPE_RE.sub("", record.msg)
        return True


def attach_strip_ansi_to_file_handlers() -> None:
    """
    Attach StripAnsiFilter to every existing FileHandler.

    Call after logging.config.fileConfig(...) has run so the handlers
    declared in logging.ini exist.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.addFilter(StripAnsiFilter())


def configure_logging(
    config_path: Optional[Path] = None,
    level: str = "INFO",
    log_file: Union[str, Path] = "app.log",
) -> None:
    """
    Configure logging from logging.ini, or fall back to basicConfig.

    `level` and `log_file` fill the %(log_level)s and %(log_file)s
    placeholders of the ini file.
    """
    config_path = config_path or DEFAULT_LOGGING_CONFIG
    if config_path.exists():
        defaults = {
            "log_level": level.upper(),
            # Quoted for the handler args tuple; % doubled for configparser
            "log_file": repr(str(log_file)).replace("%", "%%"),
        }
        logging.config.fileConfig(config_path, defaults=defaults, disable_existing_loggers=False)
        attach_strip_ansi_to_file_handlers()
        logging.getLogger(__name__).debug("Logging configured from %s", config_path)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger(__name__).debug(
        "Logging config file not found at %s, using basic configuration", config_path
    )
