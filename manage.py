#!/usr/bin/env python3
"""
Entrypoint script for development and management tasks.

    python manage.py issue-token <user_id> [--admin] [--name NAME] [--email EMAIL]
    python manage.py reconcile <user_id> [<user_id> ...]
"""
import argparse
import asyncio
import sys
from pathlib import Path

# === Add 'src' directory to PYTHONPATH ===
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_PATH = PROJECT_ROOT / "src"

if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from dotenv import load_dotenv
load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=True)

from common.logging.logger import log_info
from common.security.jwt.tokens import generate_access_token
from domain.followers.services.reconcile_counters import reconcile_user_counters
from infrastructure.database.store_provider import close_document_store, init_document_store


def issue_token(args: argparse.Namespace) -> int:
    token = generate_access_token(
        args.user_id,
        role="admin" if args.admin else "user",
        admin=args.admin,
        name=args.name,
        email=args.email,
        expires_in_minutes=args.minutes,
    )
    print(token)
    return 0


async def _reconcile(user_ids) -> int:
    store = await init_document_store()
    try:
        for user_id in user_ids:
            result = await reconcile_user_counters(store, user_id)
            print(f"{user_id}: followers {result.followers.before}->{result.followers.after}, "
                  f"following {result.following.before}->{result.following.after}")
    finally:
        await close_document_store()
    return 0


def reconcile(args: argparse.Namespace) -> int:
    return asyncio.run(_reconcile(args.user_ids))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TravelShare management tasks")
    commands = parser.add_subparsers(dest="command", required=True)

    token_cmd = commands.add_parser("issue-token", help="Mint a development access token")
    token_cmd.add_argument("user_id")
    token_cmd.add_argument("--admin", action="store_true", help="Include the admin claim")
    token_cmd.add_argument("--name")
    token_cmd.add_argument("--email")
    token_cmd.add_argument("--minutes", type=int, default=None, help="Lifetime in minutes")
    token_cmd.set_defaults(handler=issue_token)

    reconcile_cmd = commands.add_parser("reconcile", help="Recount follow counters from markers")
    reconcile_cmd.add_argument("user_ids", nargs="+")
    reconcile_cmd.set_defaults(handler=reconcile)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log_info("Manage command started", extra={"command": args.command})
    return args.handler(args)

if __name__ == "__main__":
    sys.exit(main())
