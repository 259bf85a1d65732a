"""
Pydantic data models package.
"""

from .user import ErrorResponse, User

__all__ = [
    "User",
    "ErrorResponse",
]
