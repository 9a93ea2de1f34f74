import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from usermanager.config import load_settings
from usermanager.database import SQLiteUserRepository, resolve_database_path
from usermanager.errors import InvalidArgumentError
from usermanager.service import UserService


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user in the user management database")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERMANAGER_DB_PATH or data/users.sqlite3)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    if args.db_path:
        db_path = resolve_database_path(args.db_path)
    else:
        db_path = load_settings().database_path

    repository = SQLiteUserRepository(db_path)
    repository.initialize()
    service = UserService(repository)

    try:
        user = service.create_user(args.name.strip(), args.email.strip())
    except InvalidArgumentError as exc:  # duplicates, blank fields
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.name} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
