"""Validation and delegation layer sitting in front of a user repository."""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import DuplicateEmailError, InvalidArgumentError, UserNotFoundError
from .models import User, current_timestamp
from .repository import UserRepository

logger = logging.getLogger("usermanager.service")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class UserService:
    """Validate caller input and delegate persistence to a repository.

    Email uniqueness is checked with a lookup before the insert. The lookup and
    the insert are separate repository calls, so a repository that must stay
    consistent under concurrent callers has to enforce uniqueness itself; the
    bundled repositories do and raise :class:`DuplicateEmailError` from
    ``save``.
    """

    def __init__(self, user_repository: UserRepository) -> None:
        self._repository = user_repository

    @property
    def repository(self) -> UserRepository:
        return self._repository

    def create_user(self, name: Optional[str], email: Optional[str]) -> User:
        if _is_blank(name):
            logger.warning("Rejected user creation with a blank name")
            raise InvalidArgumentError("Name cannot be null or empty")
        if _is_blank(email):
            logger.warning("Rejected user creation with a blank email")
            raise InvalidArgumentError("Email cannot be null or empty")

        existing_users = self._repository.find_by_email(email)
        if existing_users:
            logger.warning("Rejected user creation for duplicate email %s", email)
            raise DuplicateEmailError(email)

        user = User(name=name, email=email, created_at=current_timestamp())
        saved = self._repository.save(user)
        logger.info("Created user #%s <%s>", saved.id, saved.email)
        return saved

    def find_user_by_id(self, user_id: Optional[int]) -> Optional[User]:
        if user_id is None:
            logger.warning("Rejected lookup without a user id")
            raise InvalidArgumentError("ID cannot be null")
        return self._repository.find_by_id(user_id)

    def find_all_users(self) -> List[User]:
        return self._repository.find_all()

    def update_user(
        self,
        user_id: Optional[int],
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """Apply the non-empty ``name``/``email`` values to an existing user."""

        user = self._repository.find_by_id(user_id)
        if user is None:
            logger.warning("Rejected update for unknown user #%s", user_id)
            raise UserNotFoundError(user_id)

        if not _is_blank(name):
            user.name = name
        if not _is_blank(email):
            user.email = email

        saved = self._repository.save(user)
        logger.info("Updated user #%s", saved.id)
        return saved

    def delete_user(self, user_id: Optional[int]) -> None:
        if not self._repository.exists_by_id(user_id):
            logger.warning("Rejected delete for unknown user #%s", user_id)
            raise UserNotFoundError(user_id)
        self._repository.delete_by_id(user_id)
        logger.info("Deleted user #%s", user_id)

    def user_exists(self, user_id: Optional[int]) -> bool:
        return self._repository.exists_by_id(user_id)


__all__ = ["UserService"]
