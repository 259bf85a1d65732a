"""
UserAPI - In-memory user records behind a shared API key

A FastAPI demo service exposing CRUD operations over an ordered, in-memory
list of users, with base64-masked secrets and per-request logging.
"""

__version__ = "0.1.0"

from .main import app, create_app

__all__ = ["app", "create_app"]
