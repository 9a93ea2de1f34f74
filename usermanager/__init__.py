"""Core package for the user management service."""

from __future__ import annotations

from typing import Any

from .database import SQLiteUserRepository, resolve_database_path
from .errors import DuplicateEmailError, InvalidArgumentError, UserNotFoundError
from .models import User
from .repository import InMemoryUserRepository, UserRepository
from .service import UserService


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP API application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "User",
    "UserRepository",
    "InMemoryUserRepository",
    "SQLiteUserRepository",
    "UserService",
    "InvalidArgumentError",
    "UserNotFoundError",
    "DuplicateEmailError",
    "resolve_database_path",
    "create_app",
]
