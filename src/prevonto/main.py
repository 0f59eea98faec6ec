"""Prevonto command line: ``python -m prevonto.main``."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys

from prevonto.app import create_client
from prevonto.core.config.settings import get_settings
from prevonto.core.http.errors import APIClientError
from prevonto.core.storage.encryption import SecretEncryptor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="prevonto", description="Prevonto API client")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in and store the session")
    login.add_argument("email")
    login.add_argument("--password", help="Prompted for when omitted")

    commands.add_parser("logout", help="End the session")
    commands.add_parser("status", help="Show whether a session is stored")
    commands.add_parser("me", help="Show the signed-in account")
    commands.add_parser("generate-key", help="Print a new ENCRYPTION_KEY value")
    return parser


async def _execute(args: argparse.Namespace) -> int:
    async with create_client() as client:
        if args.command == "login":
            password = args.password or getpass.getpass("Password: ")
            await client.auth.login(args.email, password)
            print(f"Signed in as {args.email}")
        elif args.command == "logout":
            await client.auth.logout()
            print("Signed out")
        elif args.command == "status":
            state = "signed in" if client.credentials.is_authenticated else "signed out"
            print(f"{state} ({client.executor.base_url})")
        elif args.command == "me":
            user = await client.auth.get_current_user()
            print(f"{user.id}\t{user.email}\t{user.name or '-'}")
    return 0


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv`` and run one command. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.prevonto_log_level.upper(), logging.INFO))

    if args.command == "generate-key":
        print(SecretEncryptor.generate_key())
        return 0

    try:
        return asyncio.run(_execute(args))
    except APIClientError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(run())
