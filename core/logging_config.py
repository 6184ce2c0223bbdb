"""
Logging setup shared by the operation console and the display board.

Console output is colored in development and JSON in production. Files
rotate under the log directory: everything in scoreboard.log, errors in
errors.log, and relay traffic (connection manager and sync layer) at DEBUG
in relay.log so a reconnect storm can be read back without turning the
console up.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, List

RELAY_LOGGERS = ("core.connection_manager", "sync")

THIRD_PARTY_LEVELS = {
    "websocket": logging.WARNING,
    "websockets": logging.WARNING,
    "asyncio": logging.WARNING,
}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line; extra_data is merged into the top level"""

    def __init__(self, client_type: Optional[str] = None):
        super().__init__()
        self.client_type = client_type

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if self.client_type:
            entry["client_type"] = self.client_type
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict):
            entry.update(extra)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """[time] [LEVEL] [thread] logger: message, level colored"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[92m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[95m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = (
            f"[{stamp}] [{color}{record.levelname}{self.RESET}] "
            f"[{record.threadName}] {record.name}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class LoggingConfig:
    """Builds and installs the root handlers once"""

    def __init__(self,
                 log_level: str = "INFO",
                 log_dir: Optional[str] = None,
                 enable_file_logging: bool = True,
                 enable_console_logging: bool = True,
                 structured_logging: bool = False,
                 max_log_size_mb: int = 10,
                 backup_count: int = 5,
                 client_type: Optional[str] = None):
        """
        Args:
            log_level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for rotating files (./logs if not given)
            enable_file_logging: Write scoreboard.log, errors.log and relay.log
            enable_console_logging: Write to stdout
            structured_logging: JSON lines instead of human-readable text
            max_log_size_mb: Rotation size per file
            backup_count: Rotated files kept per log
            client_type: Tagged on every structured entry
        """
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir) if log_dir else Path("./logs")
        self.enable_file_logging = enable_file_logging
        self.enable_console_logging = enable_console_logging
        self.structured_logging = structured_logging
        self.max_bytes = max_log_size_mb * 1024 * 1024
        self.backup_count = backup_count
        self.client_type = client_type
        self._configured = False

    def _formatter(self, for_file: bool) -> logging.Formatter:
        if self.structured_logging:
            return StructuredFormatter(self.client_type)
        if for_file:
            return logging.Formatter(
                "[%(asctime)s] [%(levelname)s] [%(threadName)s] [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            )
        return ColoredConsoleFormatter()

    def _rotating_handler(self, filename: str, level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(self._formatter(for_file=True))
        return handler

    def _build_handlers(self) -> List[logging.Handler]:
        handlers = []
        if self.enable_console_logging:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(self.log_level)
            console.setFormatter(self._formatter(for_file=False))
            handlers.append(console)

        if self.enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(self._rotating_handler("scoreboard.log", self.log_level))
            handlers.append(self._rotating_handler("errors.log", logging.ERROR))

            relay = self._rotating_handler("relay.log", logging.DEBUG)
            relay.addFilter(_PrefixFilter(RELAY_LOGGERS))
            handlers.append(relay)
        return handlers

    def configure(self) -> None:
        if self._configured:
            return

        root = logging.getLogger()
        root.handlers.clear()
        # Root stays at DEBUG when relay.log is on; each handler filters its own level
        root.setLevel(logging.DEBUG if self.enable_file_logging else self.log_level)
        for handler in self._build_handlers():
            root.addHandler(handler)

        for name, level in THIRD_PARTY_LEVELS.items():
            logging.getLogger(name).setLevel(level)

        self._configured = True
        logging.getLogger(__name__).info("Logging configured", extra={"extra_data": {
            "log_level": logging.getLevelName(self.log_level),
            "file_logging": self.enable_file_logging,
            "structured_logging": self.structured_logging,
            "log_dir": str(self.log_dir) if self.enable_file_logging else None,
        }})


class _PrefixFilter(logging.Filter):
    """Passes records whose logger name is one of the prefixes or below it"""

    def __init__(self, prefixes):
        super().__init__()
        self.prefixes = tuple(prefixes)

    def filter(self, record: logging.LogRecord) -> bool:
        return any(record.name == p or record.name.startswith(p + ".") for p in self.prefixes)


_logging_config: Optional[LoggingConfig] = None


def setup_logging(config_dict: Optional[Dict[str, Any]] = None, client_type: Optional[str] = None) -> None:
    """
    Install handlers from a LOGGING_CONFIG-style dict.

    Keys missing from the dict fall back to the environment, with DEBUG as
    the default level outside production.
    """
    global _logging_config

    is_production = os.getenv("ENVIRONMENT", "development").lower() == "production"
    settings = {
        "log_level": os.getenv("LOG_LEVEL", "INFO" if is_production else "DEBUG"),
        "log_dir": os.getenv("LOG_DIR", "./logs"),
        "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "true").lower() == "true",
        "enable_console_logging": os.getenv("ENABLE_CONSOLE_LOGGING", "true").lower() == "true",
        "structured_logging": is_production,
        "max_log_size_mb": int(os.getenv("MAX_LOG_SIZE_MB", "10")),
        "backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
    }
    settings.update(config_dict or {})

    _logging_config = LoggingConfig(client_type=client_type, **settings)
    _logging_config.configure()


def get_logger(name: str) -> logging.Logger:
    """Plain stdlib logger; output appears once setup_logging() has run"""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    logger.log(level, message, extra={"extra_data": context})


def log_error_with_context(logger: logging.Logger, error: Exception,
                           operation: str, **context) -> None:
    """Log an error with operation name and exception type as structured fields"""
    log_with_context(logger, logging.ERROR, f"Error in {operation}: {error}",
                     operation=operation, error_type=type(error).__name__,
                     error_message=str(error), **context)
