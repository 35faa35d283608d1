"""
Logging for the differentiation engine.

One package logger, gated by a LogLevel, so the parser, differentiator,
simplifier and Taylor builder report through one channel instead of printing.
Library code calls the module-level helpers (log_warning, log_step, ...).
"""

import logging
import sys
import time
from datetime import datetime
from enum import Enum
from typing import Optional

LOGGER_NAME = 'symbolic_differentiation'

_FORMAT = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S')


class LogLevel(Enum):
    """Verbosity levels, each including everything below it"""
    SILENT = 0      # Nothing at all
    MINIMAL = 1     # Warnings and critical errors
    MODERATE = 2    # Milestones: derivative built, Taylor polynomial built
    DETAILED = 3    # One line per differentiation order
    VERBOSE = 4     # Debug detail from every component


class DifferentiatorLogger:
    """
    Wraps the std-logging logger named 'symbolic_differentiation'.

    The logger itself always accepts DEBUG; filtering happens here against
    `log_level`, which can be changed at any time with set_log_level().
    """

    def __init__(self, log_level: LogLevel = LogLevel.MINIMAL,
                 log_to_file: bool = False, log_file_path: Optional[str] = None):
        self.log_level = log_level
        self.start_time = time.time()

        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)

        self._attach(logging.StreamHandler(sys.stdout))
        if log_to_file:
            stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            self._attach(logging.FileHandler(log_file_path or f"differentiator_{stamp}.log"))

    def _attach(self, handler: logging.Handler):
        handler.setFormatter(_FORMAT)
        self.logger.addHandler(handler)

    def enabled(self, required_level: LogLevel) -> bool:
        return required_level.value <= self.log_level.value

    def _emit(self, required_level: LogLevel, std_level: int, message: str):
        if self.log_level is not LogLevel.SILENT and self.enabled(required_level):
            self.logger.log(std_level, message)

    def critical(self, message: str):
        self._emit(LogLevel.MINIMAL, logging.ERROR, f"CRITICAL: {message}")

    def warning(self, message: str):
        self._emit(LogLevel.MINIMAL, logging.WARNING, message)

    def info(self, message: str, required_level: LogLevel = LogLevel.MODERATE):
        self._emit(required_level, logging.INFO, message)

    def milestone(self, message: str):
        self._emit(LogLevel.MODERATE, logging.INFO, f"MILESTONE: {message}")

    def step(self, order: int, tree_size: int, additional_info: str = ""):
        """One differentiation order finished"""
        if not self.enabled(LogLevel.DETAILED):
            return
        elapsed = time.time() - self.start_time
        suffix = f" {additional_info}" if additional_info else ""
        self._emit(LogLevel.DETAILED, logging.INFO,
                   f"Order {order:3d}: nodes={tree_size} ({elapsed:.3f}s){suffix}")

    def debug(self, message: str):
        self._emit(LogLevel.VERBOSE, logging.DEBUG, f"DEBUG: {message}")


_global_logger: Optional[DifferentiatorLogger] = None


def get_logger() -> DifferentiatorLogger:
    global _global_logger
    if _global_logger is None:
        _global_logger = DifferentiatorLogger()
    return _global_logger


def set_log_level(level: LogLevel):
    get_logger().log_level = level


def configure_logging(log_level: LogLevel = LogLevel.MINIMAL,
                      log_to_file: bool = False,
                      log_file_path: Optional[str] = None) -> DifferentiatorLogger:
    """Replace the package logger, rebuilding its handlers"""
    global _global_logger
    _global_logger = DifferentiatorLogger(log_level, log_to_file, log_file_path)
    return _global_logger


def log_info(message: str, level: LogLevel = LogLevel.MODERATE):
    get_logger().info(message, level)


def log_step(order: int, tree_size: int, additional_info: str = ""):
    get_logger().step(order, tree_size, additional_info)


def log_milestone(message: str):
    get_logger().milestone(message)


def log_warning(message: str):
    get_logger().warning(message)


def log_critical(message: str):
    get_logger().critical(message)


def log_debug(message: str):
    get_logger().debug(message)
