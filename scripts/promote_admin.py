"""
Role Change Script

Promotes a verified account to admin (or demotes it back to customer).
Run from project root: python scripts/promote_admin.py owner@example.com
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from bakery_api.database import async_session_maker, engine, init_db
from bakery_api.models import User, UserRole
from bakery_api.services.otp import normalize_email


async def set_role(email: str, role: UserRole) -> bool:
    """Change the role of a verified account. Returns False if none matches."""
    await init_db()
    async with async_session_maker() as session:
        result = await session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        user = result.scalar_one_or_none()

        if user is None:
            print(f"❌ No account for {email}")
            return False
        if not user.is_verified:
            print(f"❌ {email} has not verified their e-mail yet")
            return False

        previous = user.role
        user.role = role
        await session.commit()
        print(f"✅ {user.email}: {previous.value} -> {role.value}")
        return True


async def main(args: argparse.Namespace) -> int:
    try:
        ok = await set_role(args.email, UserRole(args.role))
    finally:
        await engine.dispose()
    return 0 if ok else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Change an account's role")
    parser.add_argument("email", help="E-mail of a verified account")
    parser.add_argument(
        "--role",
        choices=[r.value for r in UserRole],
        default=UserRole.ADMIN.value,
        help="Role to assign (default: admin)",
    )
    sys.exit(asyncio.run(main(parser.parse_args())))
