"""Create the tables and an administrator account.

Credentials come from ``ADMIN_EMAIL`` / ``ADMIN_PASSWORD``. Safe to re-run:
an existing account with that email is promoted to ADMIN, never duplicated.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_admin
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from app.auth.passwords import hash_password, is_valid_password
from app.config import settings
from app.database import async_session_factory, create_tables, engine
from app.models.user import User, UserRole


async def seed() -> None:
    """Ensure the schema exists and the configured admin account is present."""
    if not is_valid_password(settings.admin_password):
        raise SystemExit("ADMIN_PASSWORD must be between 6 and 128 characters")

    await create_tables()

    email = settings.admin_email.lower()
    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                email=email,
                hashed_password=hash_password(settings.admin_password),
                name="Administrator",
                role=UserRole.ADMIN,
            )
            session.add(user)
            print(f"✅ Created admin user: {email}")
        elif user.role != UserRole.ADMIN:
            user.role = UserRole.ADMIN
            print(f"⬆️  Promoted existing user to admin: {email}")
        else:
            print(f"⚠️  Admin user '{email}' already exists, nothing to do.")

        await session.commit()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
