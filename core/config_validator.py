"""
Configuration validation module.

Validates the relay, client, board and logging settings on startup so a
misconfigured console fails early with a clear message instead of looping
on reconnects.
"""

import os
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple
from urllib.parse import urlparse

from core.exceptions import ScoreboardError


class ConfigValidationError(ScoreboardError):
    """Raised when configuration validation fails"""
    pass


class ConfigValidator:
    """Validates application configuration"""

    def __init__(self,
                 connection_config: Optional[Dict[str, Any]] = None,
                 client_config: Optional[Dict[str, Any]] = None,
                 board_config: Optional[Dict[str, Any]] = None,
                 logging_config: Optional[Dict[str, Any]] = None):
        from config import CONNECTION_CONFIG, CLIENT_CONFIG, BOARD_CONFIG, LOGGING_CONFIG

        self.connection_config = connection_config if connection_config is not None else CONNECTION_CONFIG
        self.client_config = client_config if client_config is not None else CLIENT_CONFIG
        self.board_config = board_config if board_config is not None else BOARD_CONFIG
        self.logging_config = logging_config if logging_config is not None else LOGGING_CONFIG
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """
        Validate all configuration settings.

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors.clear()
        self.warnings.clear()

        self._validate_connection_config()
        self._validate_client_config()
        self._validate_board_config()
        self._validate_logging_config()

        is_valid = len(self.errors) == 0
        return is_valid, self.errors.copy(), self.warnings.copy()

    def _validate_connection_config(self):
        """Validate relay path and reconnect backoff"""
        config = self.connection_config

        ws_path = config.get("ws_path", "/ws")
        if not isinstance(ws_path, str) or not ws_path.startswith("/"):
            self.errors.append(f"Relay path must start with '/': {ws_path!r}")

        base_delay = config.get("base_delay_ms", 1000)
        max_delay = config.get("max_delay_ms", 30000)
        if base_delay <= 0:
            self.errors.append(f"Reconnect base delay must be positive, got {base_delay}ms")
        elif max_delay < base_delay:
            self.errors.append(f"Reconnect delay cap {max_delay}ms is below the base delay {base_delay}ms")

        max_attempts = config.get("max_attempts", 10)
        if max_attempts < 1:
            self.errors.append(f"Max reconnect attempts must be at least 1, got {max_attempts}")
        elif max_attempts > 50:
            self.warnings.append(f"Max reconnect attempts {max_attempts} is unusually high. Recommended: 5-20")

    def _validate_client_config(self):
        """Validate client type, page URL and local paths"""
        from config import CLIENT_TYPES
        from sync.credential_store import INSTANCE_ID_PATTERN

        config = self.client_config

        client_type = config.get("client_type", "")
        if client_type not in CLIENT_TYPES:
            self.errors.append(f"Invalid client type '{client_type}'. Must be one of: {', '.join(CLIENT_TYPES)}")

        page_url = config.get("page_url", "")
        parsed = urlparse(page_url)
        if not config.get("embedded"):
            if parsed.scheme not in ("http", "https"):
                self.errors.append(f"Page URL must be http:// or https://: {page_url!r}")
            elif not parsed.netloc:
                self.errors.append(f"Page URL has no host: {page_url!r}")

        init_data_path = config.get("init_data_path")
        if init_data_path and not Path(init_data_path).exists():
            self.warnings.append(f"Init data file '{init_data_path}' not found: titles and team names start empty")

        instance_id = config.get("instance_id")
        if instance_id and not INSTANCE_ID_PATTERN.fullmatch(instance_id):
            self.errors.append(f"Instance id must be 1-64 letters, digits, '-' or '_': {instance_id!r}")

        credential_dir = config.get("credential_dir")
        if credential_dir:
            parent_dir = Path(credential_dir).resolve().parent
            if not parent_dir.exists():
                self.errors.append(f"Credential directory parent '{parent_dir}' does not exist")
            elif not os.access(parent_dir, os.W_OK):
                self.errors.append(f"Credential directory parent '{parent_dir}' is not writable")

    def _validate_board_config(self):
        """Validate board colors"""
        from security import validate_hex_color

        for key in ("default_background_color", "background_color"):
            color = self.board_config.get(key)
            if not color:
                continue
            result = validate_hex_color(color)
            if not result.valid:
                message = f"Board setting {key} is not a valid color: {result.error}"
                if key == "default_background_color":
                    self.errors.append(message)
                else:
                    self.warnings.append(message + " (default will be used)")

    def _validate_logging_config(self):
        """Validate logging configuration"""
        config = self.logging_config

        log_level = config.get("log_level", "INFO")
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            self.errors.append(f"Invalid log level '{log_level}'. Must be one of: {', '.join(valid_levels)}")

        max_size = config.get("max_log_size_mb", 10)
        if max_size < 1 or max_size > 1000:
            self.warnings.append(f"Log file size {max_size}MB may be {'too small' if max_size < 5 else 'too large'}. Recommended: 5-100MB")

        backup_count = config.get("backup_count", 5)
        if backup_count < 1 or backup_count > 50:
            self.warnings.append(f"Log backup count {backup_count} may be {'too low' if backup_count < 3 else 'too high'}. Recommended: 3-20")


def validate_startup_config(validator: Optional[ConfigValidator] = None) -> List[str]:
    """
    Validate configuration on startup.

    Returns:
        The warnings found

    Raises:
        ConfigValidationError: If critical configuration errors are found
    """
    validator = validator or ConfigValidator()
    is_valid, errors, warnings = validator.validate_all()

    if warnings:
        print("Configuration warnings:")
        for warning in warnings:
            print(f"  - {warning}")
        print()

    if errors:
        print("Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        print()

        error_msg = f"Found {len(errors)} configuration error(s) that must be fixed before starting."
        if warnings:
            error_msg += f" Also found {len(warnings)} warning(s) that should be addressed."
        raise ConfigValidationError(error_msg, {"errors": errors, "warnings": warnings})

    return warnings


if __name__ == "__main__":
    try:
        validate_startup_config()
        print("Configuration validated successfully")
    except ConfigValidationError as e:
        print(f"\nConfiguration validation failed: {e}")
        exit(1)
