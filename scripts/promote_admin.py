#!/usr/bin/env python3
"""Grant or revoke admin rights for an existing account.

    python -m scripts.promote_admin hiker@example.com
    python -m scripts.promote_admin hiker@example.com --revoke
"""
import argparse
import asyncio
import sys

from ukhiker.core.database import SessionLocal, init_models, close_engine
from ukhiker.core.errors import NotFound
from ukhiker.services.auth_service import set_admin


async def run(email: str, revoke: bool) -> int:
    await init_models()
    try:
        async with SessionLocal() as db:
            try:
                user = await set_admin(db, email, is_admin=not revoke)
            except NotFound:
                print(f"No user registered with {email}", file=sys.stderr)
                return 1
        state = "revoked from" if revoke else "granted to"
        print(f"Admin rights {state} {user.email} ({user.id})")
        return 0
    finally:
        await close_engine()


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage UkHiker admin accounts")
    parser.add_argument("email", help="email of the registered user")
    parser.add_argument("--revoke", action="store_true", help="remove admin rights instead of granting them")
    args = parser.parse_args()
    return asyncio.run(run(args.email, args.revoke))


if __name__ == "__main__":
    raise SystemExit(main())
