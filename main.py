#!/usr/bin/env python3
"""
FileVault -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 4000
  python main.py create-user --username ana --email ana@example.com
  python main.py list-files --email ana@example.com

Environment variables (see core/config.py):
  SECRET_KEY    Required unless DEBUG=true. At least 32 characters.
  DATABASE_URL  SQLAlchemy URL for the user and file tables.
  STORAGE_DIR   Directory that holds uploaded blobs.
"""

import argparse
import getpass
import sys

from api.models import SignupRequest, parse_email
from auth.models import User
from auth.passwords import hash_password
from auth.store import UserStore
from core.config import get_settings
from core.errors import Conflict, ValidationFailed
from storage.store import FileStore


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    """Create an account from the terminal. The password is read with getpass, never from argv."""
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        print("  [!] Passwords do not match.")
        return 1

    try:
        body = SignupRequest.build(username=args.username, email=args.email, password=password)
    except ValidationFailed as exc:
        for err in exc.errors:
            print(f"  [!] {err.field}: {err.message}")
        return 1

    store = UserStore(get_settings().database_url)
    try:
        password_hash, salt = hash_password(body.password)
        user = store.create_user(
            User(username=body.username, email=body.email, password_hash=password_hash, salt=salt)
        )
    except Conflict as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        store.close()

    print(f"Created user {user.id} ({user.email})")
    return 0


def cmd_list_files(args: argparse.Namespace) -> int:
    try:
        email = parse_email(args.email)
    except ValidationFailed as exc:
        for err in exc.errors:
            print(f"  [!] {err.field}: {err.message}")
        return 1

    settings = get_settings()
    users = UserStore(settings.database_url)
    files = FileStore(settings.database_url)
    try:
        user = users.get_by_email(email)
        if user is None:
            print(f"  [!] No user with email '{args.email}'.")
            return 1
        records = files.list_by_owner(user.id)
    finally:
        files.close()
        users.close()

    if not records:
        print(f"{user.username} has no files.")
        return 0

    print(f"Files for {user.username} ({len(records)})")
    print("─" * 40)
    for f in records:
        print(f"  {f.id:>5}  {f.name:<30}  {_format_size(f.size):>10}  {f.mime_type:<24}  {f.uploaded_at}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="filevault",
        description="Minimal multi-user file storage service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=4000, help="Port (default: 4000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=cmd_serve)

    create = sub.add_parser("create-user", help="Create an account (prompts for the password)")
    create.add_argument("--username", required=True)
    create.add_argument("--email", required=True)
    create.set_defaults(func=cmd_create_user)

    list_cmd = sub.add_parser("list-files", help="List the files owned by an account")
    list_cmd.add_argument("--email", required=True)
    list_cmd.set_defaults(func=cmd_list_files)

    args = parser.parse_args()
    if not getattr(args, "func", None):
        parser.print_help()
        return
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
