#!/usr/bin/env python3
"""Create the initial admin account.

Credentials default to the INITIAL_ADMIN_* settings (see ``.env``); any of
them can be overridden on the command line. The script refuses to run once
an admin exists.

Usage:
    python scripts/create_admin.py --email admin@example.com --name "Site Admin"
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from _bootstrap import configure_logging, open_repository

from cms_backend.config import get_settings
from cms_backend.errors import ContentError
from cms_backend.services.auth import AuthService


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", default=settings.initial_admin_email)
    parser.add_argument("--name", default=settings.initial_admin_name)
    parser.add_argument(
        "--password",
        default=None,
        help="Defaults to INITIAL_ADMIN_PASSWORD, or prompts when unset.",
    )
    return parser.parse_args(argv)


async def create_admin(email: str, password: str, name: str) -> None:
    settings = get_settings()
    async with open_repository() as repository:
        auth = AuthService(repository, token_ttl_hours=settings.auth_token_ttl_hours)
        admin = await auth.bootstrap_admin(email=email, password=password, name=name)
        print(f"Created admin {admin['email']} ({admin['id']})")


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = _parse_args(argv)
    password = args.password
    if password is None:
        configured = get_settings().initial_admin_password
        password = configured.get_secret_value() if configured else getpass.getpass("Password: ")

    try:
        asyncio.run(create_admin(args.email, password, args.name))
    except ContentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
