"""
Seed Super Admin

Creates the first super admin account for the mosque directory console.
Credentials come from the environment; nothing is hardcoded.

Usage:
    cd apps/api
    SUPER_ADMIN_EMAIL=ops@example.org SUPER_ADMIN_PASSWORD=... \
        SUPER_ADMIN_NAME="Directory Ops" python scripts/seed_super_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.database import async_session_maker, close_db
from app.core.security import hash_password
from app.modules.admins.lifecycle import MIN_PASSWORD_LENGTH
from app.modules.super_admins.repository import SuperAdminRepository


async def seed_super_admin() -> int:
    """Create the super admin if it doesn't exist. Returns a process exit code."""
    email = os.environ.get("SUPER_ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("SUPER_ADMIN_PASSWORD", "")
    name = os.environ.get("SUPER_ADMIN_NAME", "Super Admin").strip()

    if not email or not password:
        print("SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD must be set.")
        return 1
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"SUPER_ADMIN_PASSWORD must be at least {MIN_PASSWORD_LENGTH} characters.")
        return 1

    try:
        async with async_session_maker() as db:
            existing = await SuperAdminRepository.get_by_email(db, email)
            if existing:
                print(f"Super admin already exists: {email}")
                print(f"  ID: {existing.id}")
                return 0

            super_admin = await SuperAdminRepository.create(
                db,
                name=name,
                email=email,
                password_hash=hash_password(password),
            )
            await db.commit()

            print("Super admin created successfully!")
            print(f"  Email: {super_admin.email}")
            print(f"  Name: {super_admin.name}")
            print(f"  ID: {super_admin.id}")
    finally:
        await close_db()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_super_admin()))
