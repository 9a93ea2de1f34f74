"""Unit tests for UserService against a mocked repository."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from unittest import mock

import pytest

from usermanager.errors import DuplicateEmailError, InvalidArgumentError, UserNotFoundError
from usermanager.models import User
from usermanager.repository import UserRepository
from usermanager.service import UserService


def _user(user_id: int = 1, name: str = "Ada Lovelace", email: str = "ada@example.com") -> User:
    return User(
        id=user_id,
        name=name,
        email=email,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _assign_id(user: User) -> User:
    return replace(user, id=42)


@pytest.fixture()
def repository() -> mock.Mock:
    return mock.Mock(spec=UserRepository)


@pytest.fixture()
def service(repository: mock.Mock) -> UserService:
    return UserService(repository)


def test_create_user_saves_new_user(service: UserService, repository: mock.Mock) -> None:
    repository.find_by_email.return_value = []
    repository.save.side_effect = _assign_id

    user = service.create_user("Ada", "ada@x.com")

    assert user.id == 42
    assert user.name == "Ada"
    assert user.email == "ada@x.com"
    assert user.created_at is not None
    assert user.created_at.tzinfo is not None
    repository.find_by_email.assert_called_once_with("ada@x.com")
    repository.save.assert_called_once()


@pytest.mark.parametrize(
    ("name", "email", "message"),
    [
        (None, "ada@example.com", "Name cannot be null or empty"),
        ("", "ada@example.com", "Name cannot be null or empty"),
        ("   ", "ada@example.com", "Name cannot be null or empty"),
        ("Ada", None, "Email cannot be null or empty"),
        ("Ada", "", "Email cannot be null or empty"),
        ("Ada", "\t ", "Email cannot be null or empty"),
    ],
)
def test_create_user_rejects_blank_fields(
    service: UserService, repository: mock.Mock, name, email, message
) -> None:
    with pytest.raises(InvalidArgumentError, match=message):
        service.create_user(name, email)

    repository.find_by_email.assert_not_called()
    repository.save.assert_not_called()


def test_create_user_rejects_existing_email(service: UserService, repository: mock.Mock) -> None:
    repository.find_by_email.return_value = [_user()]

    with pytest.raises(DuplicateEmailError) as excinfo:
        service.create_user("Another Ada", "ada@example.com")

    assert str(excinfo.value) == "User with email already exists: ada@example.com"
    assert isinstance(excinfo.value, InvalidArgumentError)
    repository.save.assert_not_called()


def test_find_user_by_id_returns_repository_result(service: UserService, repository: mock.Mock) -> None:
    expected = _user()
    repository.find_by_id.return_value = expected

    assert service.find_user_by_id(1) is expected
    repository.find_by_id.assert_called_once_with(1)


def test_find_user_by_id_returns_none_when_missing(service: UserService, repository: mock.Mock) -> None:
    repository.find_by_id.return_value = None

    assert service.find_user_by_id(999) is None
    repository.find_by_id.assert_called_once_with(999)


def test_find_user_by_id_rejects_none(service: UserService, repository: mock.Mock) -> None:
    with pytest.raises(InvalidArgumentError, match="ID cannot be null"):
        service.find_user_by_id(None)

    assert repository.mock_calls == []


def test_find_all_users_delegates(service: UserService, repository: mock.Mock) -> None:
    users = [_user(1), _user(2, "Grace Hopper", "grace@example.com")]
    repository.find_all.return_value = users

    assert service.find_all_users() == users
    repository.find_all.assert_called_once_with()


def test_update_user_applies_supplied_fields(service: UserService, repository: mock.Mock) -> None:
    repository.find_by_id.return_value = _user()
    repository.save.side_effect = lambda user: user

    updated = service.update_user(1, "Augusta Ada King", "augusta@example.com")

    assert updated.name == "Augusta Ada King"
    assert updated.email == "augusta@example.com"
    repository.save.assert_called_once_with(updated)


@pytest.mark.parametrize("blank", [None, "", "  "])
def test_update_user_keeps_fields_left_blank(service: UserService, repository: mock.Mock, blank) -> None:
    original = _user()
    repository.find_by_id.return_value = original
    repository.save.side_effect = lambda user: user

    renamed = service.update_user(1, "Countess of Lovelace", blank)
    assert renamed.name == "Countess of Lovelace"
    assert renamed.email == "ada@example.com"

    readdressed = service.update_user(1, blank, "countess@example.com")
    assert readdressed.name == "Countess of Lovelace"
    assert readdressed.email == "countess@example.com"
    assert readdressed.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_update_user_rejects_unknown_id(service: UserService, repository: mock.Mock) -> None:
    repository.find_by_id.return_value = None

    with pytest.raises(UserNotFoundError, match="User not found with ID: 7"):
        service.update_user(7, "Name", "name@example.com")

    repository.save.assert_not_called()


def test_delete_user_removes_existing_user(service: UserService, repository: mock.Mock) -> None:
    repository.exists_by_id.return_value = True

    service.delete_user(3)

    repository.exists_by_id.assert_called_once_with(3)
    repository.delete_by_id.assert_called_once_with(3)


def test_delete_user_rejects_unknown_id(service: UserService, repository: mock.Mock) -> None:
    repository.exists_by_id.return_value = False

    with pytest.raises(UserNotFoundError):
        service.delete_user(3)

    repository.delete_by_id.assert_not_called()


@pytest.mark.parametrize("exists", [True, False])
def test_user_exists_delegates(service: UserService, repository: mock.Mock, exists: bool) -> None:
    repository.exists_by_id.return_value = exists

    assert service.user_exists(5) is exists
    repository.exists_by_id.assert_called_once_with(5)


def test_repository_errors_propagate_unchanged(service: UserService, repository: mock.Mock) -> None:
    repository.find_all.side_effect = RuntimeError("Database connection failed")

    with pytest.raises(RuntimeError, match="Database connection failed"):
        service.find_all_users()


@pytest.mark.parametrize(
    ("call", "expected"),
    [
        (lambda svc: svc.create_user("", "ada@example.com"), "blank name"),
        (lambda svc: svc.create_user("Ada", None), "blank email"),
        (lambda svc: svc.find_user_by_id(None), "without a user id"),
        (lambda svc: svc.update_user(9, "Name", None), "unknown user #9"),
        (lambda svc: svc.delete_user(9), "unknown user #9"),
    ],
)
def test_rejections_are_logged_as_warnings(
    service: UserService, repository: mock.Mock, caplog, call, expected: str
) -> None:
    repository.find_by_id.return_value = None
    repository.exists_by_id.return_value = False

    with caplog.at_level(logging.WARNING, logger="usermanager.service"):
        with pytest.raises(InvalidArgumentError):
            call(service)

    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert expected in warnings[0].getMessage()


def test_duplicate_email_rejection_is_logged(service: UserService, repository: mock.Mock, caplog) -> None:
    repository.find_by_email.return_value = [_user()]

    with caplog.at_level(logging.WARNING, logger="usermanager.service"):
        with pytest.raises(DuplicateEmailError):
            service.create_user("Ada", "ada@example.com")

    assert "duplicate email ada@example.com" in caplog.text


def test_successful_create_is_logged_at_info(service: UserService, repository: mock.Mock, caplog) -> None:
    repository.find_by_email.return_value = []
    repository.save.side_effect = _assign_id

    with caplog.at_level(logging.INFO, logger="usermanager.service"):
        service.create_user("Ada", "ada@x.com")

    assert [record.levelno for record in caplog.records] == [logging.INFO]
    assert "Created user #42 <ada@x.com>" in caplog.text
