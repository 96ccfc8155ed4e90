"""
Base exception for the schedule engine.

Each module defines its own error class (``TaskError``, ``DragError``,
``ReorderError`` ...) deriving from ``SiteGanttError`` so callers can catch
engine failures in one place.
"""

from typing import Any, Dict, Optional


class SiteGanttError(Exception):
    """Base exception for all schedule engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }
