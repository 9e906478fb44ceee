"""
Logging Configuration for Serato Import

This module provides centralized logging configuration for the application
and the two append-only audit logs (import log, archive cleanup log).
"""

import os
import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, Optional
from datetime import datetime


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for better readability"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class SeratoImportLogger:
    """Centralized logger configuration for Serato Import"""

    def __init__(self, log_dir: Optional[str] = None, console_level: str = "INFO",
                 file_level: str = "DEBUG", enable_console: bool = True):
        """
        Initialize the logging system

        Args:
            log_dir: Directory for log files (default: ~/.serato_import/logs)
            console_level: Console logging level
            file_level: File logging level
            enable_console: Whether to enable console logging
        """
        self.log_dir = log_dir or os.path.expanduser('~/.serato_import/logs')
        self.console_level = self._resolve_level(console_level)
        self.file_level = self._resolve_level(file_level)
        self.enable_console = enable_console

        # Ensure log directory exists
        Path(self.log_dir).mkdir(parents=True, exist_ok=True)

        self._setup_package_logger()
        self._setup_component_loggers()

    @staticmethod
    def _resolve_level(name: str) -> int:
        level = str(name).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {name}")
        return getattr(logging, level)

    def _setup_package_logger(self):
        """Setup the package logger with console and file handlers"""
        package_logger = logging.getLogger('seratoimport')
        package_logger.setLevel(logging.DEBUG)

        # Clear existing handlers
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()

        # Console handler
        if self.enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.console_level)
            console_formatter = ColoredFormatter(
                '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                datefmt='%H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            package_logger.addHandler(console_handler)

        # Main log file (rotating)
        main_log_file = os.path.join(self.log_dir, 'serato_import.log')
        file_handler = logging.handlers.RotatingFileHandler(
            main_log_file, maxBytes=10*1024*1024, backupCount=5
        )
        file_handler.setLevel(self.file_level)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        package_logger.addHandler(file_handler)

        # Session-specific log file
        session_timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        self.session_log_file = os.path.join(self.log_dir, f'session_{session_timestamp}.log')
        session_handler = logging.FileHandler(self.session_log_file, delay=True)
        session_handler.setLevel(logging.DEBUG)
        session_handler.setFormatter(file_formatter)
        package_logger.addHandler(session_handler)

    def _setup_component_loggers(self):
        """Setup loggers for specific components"""
        components = {
            'seratoimport.main': logging.INFO,
            'seratoimport.discovery': logging.INFO,
            'seratoimport.database': logging.INFO,
            'seratoimport.engine': logging.DEBUG,
            'seratoimport.probe': logging.DEBUG,
            'seratoimport.tagging': logging.DEBUG,
            'seratoimport.file_ops': logging.INFO,
            'seratoimport.retention': logging.INFO,
            'seratoimport.lifecycle': logging.INFO,
        }

        for component, level in components.items():
            logger = logging.getLogger(component)
            logger.setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger for a specific component"""
        return get_logger(name)

    def log_batch_start(self, root: str, cutoff: str, options: Dict[str, Any]):
        """Log start of an import run"""
        logger = self.get_logger('main')
        logger.info(f"Starting import: {root} (changed on or after {cutoff})")
        logger.debug(f"Import options: {options}")

    def log_batch_complete(self, root: str, total_files: int, successful: int,
                           failed: int, total_time: float):
        """Log completion of an import run"""
        logger = self.get_logger('main')

        success_rate = (successful / total_files * 100) if total_files > 0 else 0
        logger.info(f"Import complete: {root}")
        logger.info(f"Results: {successful}/{total_files} successful ({success_rate:.1f}%), {failed} failed")
        logger.info(f"Total time: {total_time:.1f}s")


class AuditLog:
    """
    Append-only, human-readable audit log file

    Each instance owns a dedicated non-propagating logger with a single
    FileHandler, so audit lines never reach the console or the main log.
    """

    def __init__(self, path: str, name: str):
        self.path = path
        self.name = name
        self._logger = logging.getLogger(f'seratoimport.audit.{name}')
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler: Optional[logging.FileHandler] = None

    def _ensure_handler(self):
        if self._handler is not None:
            return
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._handler = logging.FileHandler(self.path, mode='a', encoding='utf-8', delay=True)
        self._handler.setFormatter(logging.Formatter('%(message)s'))
        self._logger.addHandler(self._handler)

    def write(self, line: str):
        """Append one line to the audit log"""
        self._ensure_handler()
        self._logger.info(line)

    def close(self):
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# Global logger instance
_logger_instance = None

def setup_logging(log_dir: Optional[str] = None, console_level: str = "INFO",
                  file_level: str = "DEBUG", enable_console: bool = True) -> SeratoImportLogger:
    """Setup global logging configuration"""
    global _logger_instance
    _logger_instance = SeratoImportLogger(log_dir, console_level, file_level, enable_console)
    return _logger_instance

def get_logger(name: str = 'main') -> logging.Logger:
    """Get a component logger"""
    return logging.getLogger(f'seratoimport.{name}')

def get_app_logger() -> Optional[SeratoImportLogger]:
    """Get the application logger instance, if logging has been set up"""
    return _logger_instance
