"""
Custom exceptions for the scoreboard clients
"""

from typing import Optional, Dict, Any


class ScoreboardError(Exception):
    """Base exception for all scoreboard client errors"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ProtocolError(ScoreboardError):
    """Raised when an inbound envelope cannot be decoded"""
    def __init__(self, message: str, raw: Any = None):
        self.raw = raw
        super().__init__(message, {"raw": repr(raw)[:200]} if raw is not None else None)


class InitDataError(ScoreboardError):
    """Raised when the static init data resource is missing or invalid"""
    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Init data {path}: {message}", {"path": path})
