from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from clientportal.core.config import get_settings
from clientportal.persistence.storage import build_storage
from clientportal.services.auth.passwords import hash_password


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a ClientPortal user")
    parser.add_argument("--username", required=True, help="Login name, unique")
    parser.add_argument("--full-name", required=True, help="Display name")
    parser.add_argument("--email", required=True, help="Contact email")
    parser.add_argument("--plan", default=None, help="Plan type (defaults to settings)")
    parser.add_argument(
        "--password",
        default=None,
        help="Password; prompted for when omitted so it stays out of shell history",
    )
    return parser


async def _create_user(args: argparse.Namespace) -> int:
    settings = get_settings()
    password = args.password or getpass.getpass("Password: ")
    storage = build_storage(settings)
    user = await storage.create_user(
        username=args.username,
        password_hash=hash_password(password),
        full_name=args.full_name,
        email=args.email,
        plan_type=args.plan or settings.default_plan_type,
    )
    print(f"User created: id={user.id} username={user.username} plan={user.plan_type}")
    return 0


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    try:
        return asyncio.run(_create_user(args))
    except Exception as exc:  # noqa: BLE001 - surface provisioning failures clearly
        print(f"create_user failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
