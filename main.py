"""Command-line interface for the user management service."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Execute `pip install -e .` to install dependencies."
    ) from exc

from usermanager.config import ServiceConfig, load_settings
from usermanager.database import SQLiteUserRepository
from usermanager.errors import InvalidArgumentError
from usermanager.service import UserService

logger = logging.getLogger("usermanager.main")

_DEFAULT_SERVICE_URL = "http://127.0.0.1:8000"


def _skip_global_options(args_list: Sequence[str]) -> int:
    """Return the index of the first argument that is not a global option."""

    index = 0
    while index < len(args_list):
        token = args_list[index]
        if token == "--config":
            index += 2
        elif token.startswith("--config="):
            index += 1
        else:
            break
    return min(index, len(args_list))


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    # SUPPRESS keeps a subcommand's missing --config from clobbering one given before it.
    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="Path to the YAML configuration file (defaults to USERMANAGER_CONFIG or config/usermanager.yaml)",
    )

    parser = argparse.ArgumentParser(description="User management utilities", parents=[config_parent])
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve", config=None)

    subparsers.add_parser("init-db", help="Initialise the user database", parents=[config_parent])

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API", parents=[config_parent])
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument("--port", type=int, default=None, help="Port for the API")

    create_parser = subparsers.add_parser(
        "create-user", help="Create a user directly in the database", parents=[config_parent]
    )
    create_parser.add_argument("name", help="Display name for the user")
    create_parser.add_argument("email", help="Unique email address")

    list_parser = subparsers.add_parser(
        "list-users", help="List users known to a running service", parents=[config_parent]
    )
    list_parser.add_argument(
        "--service-url",
        default=_DEFAULT_SERVICE_URL,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )
    list_parser.add_argument("--token", default=None, help="Bearer token for the service API")

    subparsers.add_parser("admin", help="Launch the interactive administration console", parents=[config_parent])

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin", "init-db", "create-user", "list-users"}

    position = _skip_global_options(args_list)
    remaining = args_list[position:]

    if not remaining:
        args_list = [*args_list, "serve"]
    else:
        first = remaining[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in remaining for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = [*args_list[:position], "serve", *remaining]

    return parser.parse_args(args_list)


def _initialise_service(config: ServiceConfig) -> UserService:
    repository = SQLiteUserRepository(config.database_path)
    repository.initialize()
    logger.info("Database initialised at %s", config.database_path)
    return UserService(repository)


def _serve(*, service: UserService, config: ServiceConfig, host: str | None, port: int | None) -> None:
    from usermanager.api import create_app
    import uvicorn

    bind_host = host or config.host
    bind_port = port or config.port
    logger.info("Starting user management API on http://%s:%s", bind_host, bind_port)

    app = create_app(service=service, config=config)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=config.log_level.lower())


def _create_user(service: UserService, name: str, email: str) -> int:
    try:
        user = service.create_user(name, email)
    except InvalidArgumentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.name} <{user.email}>")
    return 0


def _list_remote_users(service_url: str, token: str | None) -> int:
    endpoint = service_url.rstrip("/") + "/v1/users"
    headers = {"Authorization": f"Bearer {token}"} if token else {}

    try:
        response = httpx.get(endpoint, headers=headers, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact user service: {exc}", file=sys.stderr)
        return 1

    if response.status_code in (401, 403):
        print("Authentication failed when querying the user service. Verify the token.", file=sys.stderr)
        return 1
    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}", file=sys.stderr)
        return 1

    try:
        users = response.json()
    except ValueError:
        print("Service returned an unexpected response format.", file=sys.stderr)
        return 1

    if not users:
        print("No users are currently registered.")
        return 0

    print(f"{len(users)} user(s) found:")
    for user in users:
        print(f"{user.get('id', '?'):>4}  {user.get('name', ''):<24}  {user.get('email', '')}")
    return 0


def _run_admin_cli(service: UserService) -> None:
    """Provide an interactive management console for administrators."""

    print("User Management Administration Console")
    print("Press Ctrl+C at any time to exit.\n")

    try:
        while True:
            print("Select an option:")
            print("  1) List all users")
            print("  2) Add a new user")
            print("  3) Update a user")
            print("  4) Delete a user")
            print("  5) Exit")

            choice = input("Enter choice [1-5]: ").strip()

            if choice == "1":
                _list_users(service)
            elif choice == "2":
                _add_user(service)
            elif choice == "3":
                _update_user(service)
            elif choice == "4":
                _delete_user(service)
            elif choice == "5":
                print("Goodbye!")
                return
            else:
                print("Invalid selection. Please choose a number from the menu.\n")

            print()
    except KeyboardInterrupt:
        print("\nExiting administration console.")


def _list_users(service: UserService) -> None:
    users = service.find_all_users()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  Created")
    print("-" * 80)
    for user in users:
        created = user.created_at.strftime("%Y-%m-%d %H:%M:%S %Z")
        print(f"{user.id:>4}  {user.name:<24}  {user.email:<32}  {created}")


def _add_user(service: UserService) -> None:
    print("\nCreate a new user (leave the name blank to cancel).")
    name = input("Name: ").strip()
    if not name:
        print("User creation cancelled.")
        return

    email = input("Email address: ").strip()

    try:
        user = service.create_user(name, email)
    except InvalidArgumentError as exc:
        print(f"Failed to create user: {exc}")
        return

    print(f"Created user #{user.id}: {user.name} <{user.email}>")


def _prompt_for_user_id() -> int | None:
    raw = input("User ID: ").strip()
    try:
        return int(raw)
    except ValueError:
        print("User IDs must be numeric.")
        return None


def _update_user(service: UserService) -> None:
    print("\nUpdate a user (leave a field blank to keep its current value).")
    user_id = _prompt_for_user_id()
    if user_id is None:
        return

    name = input("New name: ").strip()
    email = input("New email address: ").strip()

    try:
        user = service.update_user(user_id, name, email)
    except InvalidArgumentError as exc:
        print(f"Failed to update user: {exc}")
        return

    print(f"Updated user #{user.id}: {user.name} <{user.email}>")


def _delete_user(service: UserService) -> None:
    user_id = _prompt_for_user_id()
    if user_id is None:
        return

    confirmation = input(f"Delete user #{user_id}? [y/N]: ").strip().lower()
    if confirmation not in {"y", "yes"}:
        print("Deletion cancelled.")
        return

    try:
        service.delete_user(user_id)
    except InvalidArgumentError as exc:
        print(f"Failed to delete user: {exc}")
        return

    print(f"Deleted user #{user_id}.")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    config = load_settings(args.config)

    logging.basicConfig(level=config.log_level, format="%(asctime)s [%(levelname)s] %(message)s")

    if args.command == "list-users":
        return _list_remote_users(args.service_url, args.token)

    service = _initialise_service(config)

    if args.command == "serve":
        _serve(service=service, config=config, host=args.host, port=args.port)
    elif args.command == "admin":
        _run_admin_cli(service)
    elif args.command == "create-user":
        return _create_user(service, args.name, args.email)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
