"""Persistence boundary for users plus an in-memory implementation."""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Optional, Protocol, runtime_checkable

from .errors import DuplicateEmailError
from .models import User


@runtime_checkable
class UserRepository(Protocol):
    """Capability set the service needs from a persistence layer."""

    def find_by_id(self, user_id: Optional[int]) -> Optional[User]:
        ...

    def save(self, user: User) -> User:
        ...

    def find_all(self) -> List[User]:
        ...

    def find_by_email(self, email: str) -> List[User]:
        ...

    def delete_by_id(self, user_id: Optional[int]) -> None:
        ...

    def exists_by_id(self, user_id: Optional[int]) -> bool:
        ...


class InMemoryUserRepository:
    """Store users in a dictionary guarded by a lock."""

    def __init__(self) -> None:
        self._users: Dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def find_by_id(self, user_id: Optional[int]) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id) if user_id is not None else None
            return replace(user) if user is not None else None

    def save(self, user: User) -> User:
        with self._lock:
            for stored in self._users.values():
                if stored.email == user.email and stored.id != user.id:
                    raise DuplicateEmailError(user.email)

            user_id = user.id
            if user_id is None:
                user_id = self._next_id
            self._next_id = max(self._next_id, user_id + 1)

            stored = replace(user, id=user_id)
            self._users[user_id] = stored
            return replace(stored)

    def find_all(self) -> List[User]:
        with self._lock:
            return [replace(self._users[key]) for key in sorted(self._users)]

    def find_by_email(self, email: str) -> List[User]:
        with self._lock:
            return [
                replace(self._users[key])
                for key in sorted(self._users)
                if self._users[key].email == email
            ]

    def delete_by_id(self, user_id: Optional[int]) -> None:
        with self._lock:
            if user_id is not None:
                self._users.pop(user_id, None)

    def exists_by_id(self, user_id: Optional[int]) -> bool:
        with self._lock:
            return user_id is not None and user_id in self._users


__all__ = ["UserRepository", "InMemoryUserRepository"]
