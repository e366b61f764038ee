from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    verbose: bool = False,
    log_files: Iterable[Path] = (),
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """
    Configure process-wide logging and return a scoped logger.

    Records go to a Rich console handler and, when possible, to the first of
    *log_files* that can be opened for appending. If none can be opened the
    process logs to the console only.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_time=True, show_path=False),
    ]

    failures: list[str] = []
    chosen: Optional[Path] = None
    for candidate in log_files:
        path = Path(candidate)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as exc:
            failures.append(f"{path}: {exc}")
            continue
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)
        chosen = path
        break

    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)
    logger = logging.getLogger(logger_name or "xls_script_bot")
    for failure in failures:
        logger.warning("Failed to open log file %s", failure)
    if chosen is not None:
        logger.info("Logger initialized. Writing to: %s", chosen)
    else:
        logger.info("Logger initialized. Writing to console only.")
    logger.debug("Logging configured with level %s", logging.getLevelName(level))
    return logger
