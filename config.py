"""
Centralized configuration for the scoreboard clients
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Relay connection and reconnect backoff
CONNECTION_CONFIG = {
    "ws_path": "/ws",
    "embedded_host": "localhost:8080",  # Fixed loopback used inside the desktop shell
    "base_delay_ms": 1000,
    "max_delay_ms": 30000,
    "max_attempts": 10,
}

# Client identity and where it was served from
CLIENT_CONFIG = {
    "client_type": os.getenv("SCOREBOARD_CLIENT_TYPE", "operation"),  # "operation" or "board"
    "page_url": os.getenv("SCOREBOARD_PAGE_URL", "http://localhost:8080/"),
    "embedded": os.getenv("SCOREBOARD_EMBEDDED", "false").lower() in ("true", "1", "yes"),
    "init_data_path": os.getenv("SCOREBOARD_INIT_DATA", "./data/init_data.json"),
    "credential_dir": os.getenv("SCOREBOARD_CREDENTIAL_DIR", ""),  # Empty keeps the token in memory only
    "instance_id": os.getenv("SCOREBOARD_INSTANCE_ID", ""),  # Token file key; empty uses the client type
}

CLIENT_TYPES = ("operation", "board")

# Game defaults used before init data or a relay snapshot arrives
GAME_CONFIG = {
    "default_last_inning": 9,
    "max_balls": 3,
    "max_strikes": 2,
    "max_outs": 2,
}

# Display board settings
BOARD_CONFIG = {
    "default_background_color": "#ff55ff",
    "background_color": os.getenv("SCOREBOARD_BOARD_COLOR", ""),
}

# Terminal output for the operation console and board
DISPLAY_CONFIG = {
    "colors": {
        "master": "\033[92m",   # Green
        "slave": "\033[93m",    # Yellow
        "error": "\033[91m",    # Red
        "info": "\033[94m",     # Blue
        "reset": "\033[0m"      # Reset
    },
}

# Logging configuration
LOGGING_CONFIG = {
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "log_dir": os.getenv("LOG_DIR", "./logs"),
    "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "true").lower() == "true",
    "enable_console_logging": os.getenv("ENABLE_CONSOLE_LOGGING", "true").lower() == "true",
    "structured_logging": os.getenv("ENVIRONMENT", "development").lower() == "production",
    "max_log_size_mb": int(os.getenv("MAX_LOG_SIZE_MB", "10")),
    "backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
}
