#!/usr/bin/env python3
"""
Create or promote an admin account for the Learnix admin panel.

Reads credentials from .env:
    ADMIN_EMAIL      admin account email (required)
    ADMIN_PASSWORD   admin account password (required)
    ADMIN_NAME       display name (optional, defaults to "Admin")

Usage:
    python -m scripts.create_admin
"""
from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

# Add repo root to path so `learnix` resolves without installing
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from learnix.config import get_settings
from learnix.database import get_async_session_factory
from learnix.models import UserRole
from learnix.users import service as users_service


async def main() -> None:
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        print("Error: ADMIN_EMAIL and ADMIN_PASSWORD must be set in .env")
        sys.exit(1)
    full_name = os.getenv("ADMIN_NAME", "Admin")

    session_factory = get_async_session_factory(get_settings().database_url)

    async with session_factory() as session:
        existing = await users_service.get_user_by_email(session, email)

        if existing is not None:
            print(f"User {email} already exists (id={existing.id}).")
            if existing.role != UserRole.ADMIN or not existing.is_email_verified:
                existing.role = UserRole.ADMIN
                existing.is_email_verified = True
                existing.is_active = True
                await session.commit()
                print("  -> Promoted to admin.")
            else:
                print("  -> Already an admin. Nothing to do.")
        else:
            user = await users_service.create_user(
                session,
                email=email,
                full_name=full_name,
                password=password,
                role=UserRole.ADMIN,
                is_email_verified=True,
            )
            await session.commit()
            print(f"Admin created: {email} (id={user.id})")

    await session_factory.kw["bind"].dispose()


if __name__ == "__main__":
    asyncio.run(main())
