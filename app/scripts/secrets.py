"""
Manage encrypted secrets. Run from project root:
  python -m app.scripts.secrets generate-key
  python -m app.scripts.secrets set NAME [--environment ENV] [--stdin]
  python -m app.scripts.secrets list [--environment ENV]
  python -m app.scripts.secrets check [--environment ENV]
  python -m app.scripts.secrets delete NAME [--environment ENV]

Values are read from a hidden prompt (or stdin with --stdin), never from the
command line, and are never printed.
"""
import argparse
import getpass
import sys

from app.core.crypto import generate_master_key
from app.core.errors import AppError


def _read_value(from_stdin: bool) -> str:
    if from_stdin:
        return sys.stdin.read().rstrip("\r\n")
    return getpass.getpass("Secret value: ")


def _cmd_set(db, store, args: argparse.Namespace) -> int:
    value = _read_value(args.stdin)
    store.set_secret(db, args.name, value, args.environment)
    print(f"Stored secret '{args.name}'.")
    return 0


def _cmd_list(db, store, args: argparse.Namespace) -> int:
    secrets = store.list_secrets(db, args.environment)
    if not secrets:
        print("No secrets found.")
        return 0
    for item in secrets:
        print(
            f"{item.name} ({item.environment}) "
            f"created={item.created_at.isoformat()} rotated={item.rotated_at.isoformat()}"
        )
    return 0


def _cmd_check(db, store, args: argparse.Namespace) -> int:
    """Decrypt every listed secret and report its length only."""
    failures = 0
    for item in store.list_secrets(db, args.environment):
        try:
            value = store.get_secret(db, item.name, item.environment)
        except AppError as exc:
            failures += 1
            print(f"FAIL {item.name} ({item.environment}): {exc.message}", file=sys.stderr)
            continue
        print(f"OK   {item.name} ({item.environment}): {len(value)} chars")
    return 1 if failures else 0


def _cmd_delete(db, store, args: argparse.Namespace) -> int:
    if store.delete_secret(db, args.name, args.environment):
        print(f"Deleted secret '{args.name}'.")
    else:
        print(f"Secret '{args.name}' did not exist.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage encrypted application secrets.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("generate-key", help="Print a new random MASTER_KEY (64 hex chars)")

    p_set = sub.add_parser("set", help="Encrypt and store (or rotate) a secret")
    p_set.add_argument("name")
    p_set.add_argument("--environment", default=None)
    p_set.add_argument("--stdin", action="store_true", help="Read the value from stdin")
    p_set.set_defaults(handler=_cmd_set)

    p_list = sub.add_parser("list", help="List secret names and timestamps")
    p_list.add_argument("--environment", default=None)
    p_list.set_defaults(handler=_cmd_list)

    p_check = sub.add_parser("check", help="Verify every secret decrypts")
    p_check.add_argument("--environment", default=None)
    p_check.set_defaults(handler=_cmd_check)

    p_delete = sub.add_parser("delete", help="Delete a secret")
    p_delete.add_argument("name")
    p_delete.add_argument("--environment", default=None)
    p_delete.set_defaults(handler=_cmd_delete)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "generate-key":
        print(generate_master_key())
        return 0

    # Everything below needs a valid configuration (MASTER_KEY, DATABASE_URL).
    from app.core.config import get_settings
    from app.core.database import SessionLocal
    from app.core.logging import configure_logging
    from app.services import secret_store

    configure_logging(get_settings())
    db = SessionLocal()
    try:
        return args.handler(db, secret_store, args)
    except AppError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
