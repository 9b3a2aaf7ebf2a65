"""
Logging System for Symbolic Partial Derivatives

This module provides a centralized logging system with different verbosity levels
so that library use stays quiet unless more detail is asked for.
"""

import logging
import sys
from typing import Optional
from enum import Enum
from datetime import datetime


class LogLevel(Enum):
    """Enumeration of logging levels"""
    SILENT = 0      # No handler attached
    MINIMAL = 1     # Default, errors are raised rather than logged
    MODERATE = 2    # Same output as MINIMAL
    DETAILED = 3    # One line per top-level derivative
    VERBOSE = 4     # All information including recursion details


class PartialsLogger:
    """
    Centralized logger for the differentiation engine and its collaborators
    """

    def __init__(self, log_level: LogLevel = LogLevel.MINIMAL,
                 log_to_file: bool = False, log_file_path: Optional[str] = None):
        self.log_level = log_level
        self.log_to_file = log_to_file

        # Create logger
        self.logger = logging.getLogger('symbolic_partials')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()  # Remove any existing handlers
        self.logger.propagate = False

        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        # Console handler
        if self.log_level != LogLevel.SILENT:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # File handler (optional)
        if log_to_file:
            if log_file_path is None:
                log_file_path = f"symbolic_partials_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            file_handler = logging.FileHandler(log_file_path)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def _should_log(self, required_level: LogLevel) -> bool:
        """Check if message should be logged based on current log level"""
        return self.log_level.value >= required_level.value

    def is_enabled(self, level: LogLevel) -> bool:
        """Whether messages of the given level are emitted; lets callers skip building them"""
        return self.log_level != LogLevel.SILENT and self._should_log(level)

    def detail(self, message: str):
        """Per-call details, e.g. one line per partial derivative"""
        if self._should_log(LogLevel.DETAILED):
            self.logger.info(message)

    def debug(self, message: str):
        """Debug information - only in verbose mode"""
        if self._should_log(LogLevel.VERBOSE):
            self.logger.debug(f"DEBUG: {message}")


# Global logger instance
_global_logger: Optional[PartialsLogger] = None


def get_logger() -> PartialsLogger:
    """Get or create the global logger instance"""
    global _global_logger
    if _global_logger is None:
        _global_logger = PartialsLogger()
    return _global_logger


def set_log_level(level: LogLevel):
    """Set the global logging level"""
    global _global_logger
    if _global_logger is None:
        _global_logger = PartialsLogger(log_level=level)
    else:
        _global_logger.log_level = level


def configure_logging(log_level: LogLevel = LogLevel.MINIMAL,
                      log_to_file: bool = False,
                      log_file_path: Optional[str] = None) -> PartialsLogger:
    """Configure the global logging system"""
    global _global_logger
    _global_logger = PartialsLogger(
        log_level=log_level,
        log_to_file=log_to_file,
        log_file_path=log_file_path
    )
    return _global_logger


# Convenience functions for common operations
def log_detail(message: str):
    """Log per-call detail message"""
    get_logger().detail(message)


def log_debug(message: str):
    """Log debug message"""
    get_logger().debug(message)
