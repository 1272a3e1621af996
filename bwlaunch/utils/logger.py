#!/usr/bin/env python3
"""
🔍 Centralized Logging System for BWLaunch
Logs all activities to rotating files
Keeps writes minimal on e-ink devices (flash storage)
Supports structured JSON logging
"""

import json
import logging
import logging.handlers
import os
import platform
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import psutil

# Environment detection
IS_DEVICE = (
    (platform.machine().startswith(('arm', 'aarch64')) and platform.system() == 'Linux') or
    os.path.exists('/sys/firmware/devicetree/base/model') or
    os.getenv('BWLAUNCH_DEVICE') == '1'
)
IS_DEV_MODE = '--dev' in sys.argv or os.getenv('BWLAUNCH_DEV') == '1'

ENABLE_JSON_LOGS = os.getenv('BWLAUNCH_JSON_LOGS', '0') == '1'

FILE_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s'


def _get_app_log_dir() -> Path:
    """Get application log directory path-agnostically"""
    env_log_dir = os.getenv('BWLAUNCH_LOG_DIR')
    if env_log_dir:
        return Path(env_log_dir)
    return Path.home() / ".bwlaunch" / "logs"


if IS_DEVICE and not IS_DEV_MODE:
    LOG_LEVEL = logging.WARNING
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = True
    MAX_LOG_SIZE = 1 * 1024 * 1024
    BACKUP_COUNT = 1
    ENABLE_SYSTEM_INFO = False
    LOG_DIR = Path(os.getenv('BWLAUNCH_LOG_DIR') or "/tmp/bwlaunch_logs")
else:
    LOG_LEVEL = logging.INFO
    ENABLE_FILE_LOGGING = True
    ENABLE_ERROR_LOGS = True
    MAX_LOG_SIZE = 5 * 1024 * 1024
    BACKUP_COUNT = 3
    ENABLE_SYSTEM_INFO = True
    LOG_DIR = _get_app_log_dir()

# ---- Environment overrides ----
_env_level = os.getenv('BWLAUNCH_LOG_LEVEL')
if _env_level:
    LOG_LEVEL = getattr(logging, _env_level.upper(), LOG_LEVEL)

if os.getenv('BWLAUNCH_FORCE_FILE_LOG') == '1':
    ENABLE_FILE_LOGGING = True

if os.getenv('BWLAUNCH_SYSTEM_INFO') == '0':
    ENABLE_SYSTEM_INFO = False

try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
except OSError:
    # Console-only logging if directory is not writable
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = False


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, 'no_color', False):
            return super().format(record)

        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        original = record.levelname
        record.levelname = f"{color}{original}{reset}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'no_color',
))


class JSONFormatter(logging.Formatter):
    """Structured JSON formatter.

    Example output:
        {"timestamp": "2025-11-04T10:30:00.123Z", "level": "WARNING",
         "logger": "weather_cache", "message": "Weather fetch failed"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_data['source'] = f"{record.filename}:{record.lineno}"
            log_data['function'] = record.funcName

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info("msg", extra={...})
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_data:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=True, sort_keys=True)


def _file_formatter() -> logging.Formatter:
    return JSONFormatter() if ENABLE_JSON_LOGS else logging.Formatter(FILE_FORMAT)


def setup_logger(name: str) -> logging.Logger:
    """
    Sets up a logger with appropriate handlers based on environment

    Args:
        name: Logger name (usually module name)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    if ENABLE_JSON_LOGS:
        console_formatter = JSONFormatter()
    elif IS_DEVICE and not IS_DEV_MODE:
        console_formatter = logging.Formatter('%(asctime)s | %(levelname)s | %(message)s')
    else:
        console_formatter = ColoredFormatter('%(asctime)s | %(name)s | %(levelname)s | %(message)s')
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if ENABLE_FILE_LOGGING:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / "bwlaunch.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setLevel(LOG_LEVEL)
            file_handler.setFormatter(_file_formatter())
            logger.addHandler(file_handler)
        except OSError:
            pass

    if ENABLE_ERROR_LOGS:
        try:
            error_handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / "bwlaunch_errors.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(_file_formatter())
            logger.addHandler(error_handler)
        except OSError:
            pass

    return logger


def log_startup(module_name: str) -> None:
    """Log startup information for a module.

    Note:
        Only shows detailed system info in development mode
    """
    logger = logging.getLogger(module_name)
    logger.info(f"📱 Starting {module_name}")

    if not ENABLE_SYSTEM_INFO:
        logger.info(f"🚀 Running on {'device' if IS_DEVICE else 'development system'}")
        logger.info(f"📂 Logs: {LOG_DIR}")
        return

    try:
        logger.info("=" * 50)
        logger.info("🚀 BWLaunch System Information")
        logger.info("=" * 50)
        logger.info(f"🖥️  Platform: {platform.platform()}")
        logger.info(f"🐍 Python: {platform.python_version()}")
        memory = psutil.virtual_memory()
        logger.info(f"💾 Memory: {memory.available / (1024**3):.1f}GB available")
        disk = psutil.disk_usage('/')
        logger.info(f"💽 Disk: {disk.free / (1024**3):.1f}GB free")
        logger.info(f"📂 Log Directory: {LOG_DIR}")
        logger.info("=" * 50)
    except (OSError, psutil.Error) as e:
        logger.warning(f"Could not gather system info: {e}")


def log_shutdown(logger: logging.Logger, component_name: str) -> None:
    logger.info(f"🛑 Shutting down {component_name}")
    for handler in logger.handlers:
        handler.flush()


def cleanup_old_logs(days_to_keep: int = 7) -> int:
    """Delete log files older than ``days_to_keep`` days.

    Returns:
        Number of files removed
    """
    cutoff_time = time.time() - (days_to_keep * 24 * 60 * 60)
    cleaned = 0
    for log_file in LOG_DIR.glob("*.log*"):
        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                cleaned += 1
        except OSError:
            continue
    if cleaned:
        logging.getLogger("bwlaunch").info(f"🧹 Cleaned up {cleaned} old log files (keeping {days_to_keep} days)")
    return cleaned


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log a message with structured context fields.

    In JSON mode, context fields appear as separate JSON keys. Otherwise
    they're appended to the message as key=value pairs.

    Example:
        >>> log_structured(logger, logging.INFO, "Favorites pruned",
        ...                removed=2, remaining=3)
    """
    if ENABLE_JSON_LOGS:
        logger.log(level, message, extra=context)
    elif context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        logger.log(level, f"{message} | {context_str}")
    else:
        logger.log(level, message)
