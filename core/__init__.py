"""
Core system components: errors, logging and configuration checks
"""

from .exceptions import ScoreboardError, ProtocolError, InitDataError
from .logging_config import setup_logging, get_logger

__all__ = ["ScoreboardError", "ProtocolError", "InitDataError", "setup_logging", "get_logger"]
