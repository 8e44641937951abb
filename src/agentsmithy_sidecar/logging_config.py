"""
Centralized logging configuration for the sidecar lifecycle.

This module provides a single setup_logging function that configures:
- Console output (DEBUG when verbose, INFO otherwise)
- Optional file output to <log_dir>/agentsmithy-sidecar.log (appended)
- A dedicated logger that carries the sidecar's own stdout/stderr
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional

_config_lock = threading.Lock()
_CONFIGURED = False
_MODULE_LOGGER = logging.getLogger(__name__)

LOG_FILE_NAME = "agentsmithy-sidecar.log"
SIDECAR_OUTPUT_LOGGER = "agentsmithy_sidecar.sidecar_output"

_TECHNICAL_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_sidecar_output_logger() -> logging.Logger:
    """Logger that receives the sidecar process output line by line."""
    return logging.getLogger(SIDECAR_OUTPUT_LOGGER)


def _close_handlers(logger: logging.Logger) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as e:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            _MODULE_LOGGER.debug("Handler close failed: %s", e)
    logger.handlers = []


def _build_console_handler(verbose: bool) -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    return console_handler


def _build_file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(logging.DEBUG)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def setup_logging(log_dir: Optional[Path] = None, *, verbose: bool = False, force: bool = False) -> None:
    """Configure logging for the application"""
    global _CONFIGURED

    with _config_lock:
        if _CONFIGURED and not force:
            return

        root_logger = logging.getLogger()
        _close_handlers(root_logger)
        root_logger.addHandler(_build_console_handler(verbose))

        if log_dir is not None:
            root_logger.addHandler(_build_file_handler(Path(log_dir)))

        root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        _suppress_noisy_third_parties()
        _CONFIGURED = True


__all__ = ["LOG_FILE_NAME", "SIDECAR_OUTPUT_LOGGER", "get_sidecar_output_logger", "setup_logging"]
