"""Command-line interface for the user administration service."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Optional, Sequence

from useradmin.config import apply_seed_users, load_seed_users, load_settings
from useradmin.database import Database, DuplicateUserError
from useradmin.forms import UserCreateForm, validate_create_form
from useradmin.models import ROLE_OPTIONS, Role

logger = logging.getLogger("useradmin.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User administration utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    init_parser = subparsers.add_parser("init-db", help="Initialise the user database")
    init_parser.add_argument(
        "--seed",
        default=None,
        help="YAML file with accounts to create (default: USERADMIN_SEED_PATH)",
    )

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP administration service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP service (default: 8000)",
    )

    subparsers.add_parser("admin", help="Launch the interactive administration console")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin", "init-db"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(seed: Optional[str] = None) -> Database:
    settings = load_settings()
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)

    seed_path = Path(seed).expanduser() if seed else settings.seed_path
    if seed_path is not None:
        created = apply_seed_users(database, load_seed_users(seed_path))
        logger.info("Created %d seed account(s) from %s", created, seed_path)
    return database


def _serve(*, database: Database, host: str, port: int) -> None:
    from useradmin.service import create_app
    import uvicorn

    logger.info("Starting user administration on http://%s:%s", host, port)
    app = create_app(database=database)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _run_admin_cli(database: Database) -> None:
    """Provide an interactive management console for administrators."""

    print("User Administration Console")
    print("Press Ctrl+C at any time to exit.\n")

    try:
        while True:
            print("Select an option:")
            print("  1) List all users")
            print("  2) Add a new user")
            print("  3) Delete a user")
            print("  4) Exit")

            choice = input("Enter choice [1-4]: ").strip()

            if choice == "1":
                _list_users(database)
            elif choice == "2":
                _add_user(database)
            elif choice == "3":
                _delete_user(database)
            elif choice == "4":
                print("Goodbye!")
                return
            else:
                print("Invalid selection. Please choose a number from the menu.\n")

            print()
    except KeyboardInterrupt:
        print("\nExiting administration console.")


def _list_users(database: Database) -> None:
    users = database.find_all()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'User ID':<24}  {'Name':<24}  {'Role':<14}  Dark mode")
    print("-" * 80)
    for user in users:
        darkmode = "on" if user.darkmode else "off"
        print(f"{user.user_id:<24}  {user.user_name:<24}  {user.role.value:<14}  {darkmode}")


def _prompt_for_role() -> Role:
    labels = ", ".join(f"{index}) {option.label}" for index, option in enumerate(ROLE_OPTIONS, 1))
    while True:
        choice = input(f"Role [{labels}] (default 2): ").strip() or "2"
        if choice.isdigit() and 1 <= int(choice) <= len(ROLE_OPTIONS):
            return ROLE_OPTIONS[int(choice) - 1].value
        print("Invalid role selection.")


def _add_user(database: Database) -> None:
    print("\nCreate a new user (leave the user ID blank to cancel).")
    user_id = input("User ID: ").strip()
    if not user_id:
        print("User creation cancelled.")
        return

    user_name = input("Name: ").strip() or user_id
    role = _prompt_for_role()

    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.")
        return

    errors = validate_create_form(
        UserCreateForm(user_id=user_id, password=password, user_name=user_name, role=role.value)
    )
    if errors:
        for message in errors.values():
            print(f"Failed to create user: {message}")
        return

    try:
        database.insert(user_id, password, user_name, role)
    except DuplicateUserError as exc:
        print(f"Failed to create user: {exc}")
        return

    print(f"Created user {user_id}: {user_name} ({role.value})")


def _delete_user(database: Database) -> None:
    user_id = input("User ID to delete: ").strip()
    if not user_id:
        print("Nothing deleted.")
        return
    if database.delete(user_id):
        print(f"Deleted user {user_id}.")
    else:
        print(f"No user with ID {user_id} exists.")


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass("Password: ")
        if not password:
            print("Password must not be empty. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    database = _initialise_database(getattr(args, "seed", None))

    if args.command == "serve":
        _serve(database=database, host=args.host, port=args.port)
    elif args.command == "admin":
        _run_admin_cli(database)
    elif args.command == "init-db":
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
