"""Utility helpers shared across panepoint."""

from .logging import configure_logging, get_log_path, get_logger, setup_logging

__all__ = ["configure_logging", "get_log_path", "get_logger", "setup_logging"]
