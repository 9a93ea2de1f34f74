"""Exceptions raised by the user management service."""
from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised when a caller supplies arguments that violate a precondition."""


class UserNotFoundError(InvalidArgumentError):
    """Raised when an operation targets a user id that does not exist."""

    def __init__(self, user_id: object) -> None:
        super().__init__(f"User not found with ID: {user_id}")
        self.user_id = user_id


class DuplicateEmailError(InvalidArgumentError):
    """Raised when a user with the given email address is already stored."""

    def __init__(self, email: str) -> None:
        super().__init__(f"User with email already exists: {email}")
        self.email = email


__all__ = ["InvalidArgumentError", "UserNotFoundError", "DuplicateEmailError"]
