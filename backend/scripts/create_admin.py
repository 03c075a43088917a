#!/usr/bin/env python3
"""
Script to create a global admin user for the Secrets Manager
"""

import asyncio
import getpass
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import select

from secrets_manager.core.database import AsyncSessionLocal, create_tables
from secrets_manager.models.user import GlobalRole, User
from secrets_manager.services.auth_service import auth_service
from secrets_manager.utils.exceptions import ConflictError


def prompt_non_empty(label: str, min_length: int = 1) -> str:
    while True:
        value = input(f"{label}: ").strip()
        if len(value) < min_length:
            print(f"❌ {label} must be at least {min_length} character(s) long.")
            continue
        return value


def prompt_password() -> str:
    while True:
        password = getpass.getpass("Password: ")
        if len(password) < 8:
            print("❌ Password must be at least 8 characters long.")
            continue
        if password != getpass.getpass("Confirm Password: "):
            print("❌ Passwords do not match.")
            continue
        return password


async def create_admin_user():
    """Create a global admin interactively"""
    print("🔧 Secrets Manager - Admin User Creation")
    print("=" * 50)

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.role == GlobalRole.ADMIN.value))
        existing_admins = result.scalars().all()

        if existing_admins:
            print(f"⚠️  Found {len(existing_admins)} existing admin user(s):")
            for admin in existing_admins:
                print(f"   - {admin.username} ({admin.email})")

            response = input("\nDo you want to create another admin user? (y/N): ").strip().lower()
            if response != 'y':
                print("❌ Admin user creation cancelled.")
                return

        print("\n📝 Please provide the following information:")
        username = prompt_non_empty("Username", min_length=3)
        email = prompt_non_empty("Email")
        full_name = prompt_non_empty("Full Name")
        password = prompt_password()

        try:
            admin_user = await auth_service.create_user(
                username=username,
                email=email,
                password=password,
                full_name=full_name,
                role=GlobalRole.ADMIN.value,
                db=db,
            )
        except ConflictError as e:
            print(f"❌ {e.message}")
            return

        print("✅ Admin user created successfully!")
        print(f"   Username: {admin_user.username}")
        print(f"   Email: {admin_user.email}")
        print(f"   User ID: {admin_user.id}")


async def list_users():
    """List all users in the system"""
    print("👥 Secrets Manager - User List")
    print("=" * 50)

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).order_by(User.id))
        users = result.scalars().all()

        if not users:
            print("❌ No users found in the system.")
            return

        print(f"\nFound {len(users)} user(s):")
        print("-" * 80)
        print(f"{'ID':<6} {'Username':<20} {'Email':<30} {'Role':<10} {'Status':<10}")
        print("-" * 80)
        for user in users:
            status = "Active" if user.is_active else "Inactive"
            print(f"{user.id:<6} {user.username:<20} {user.email:<30} {user.role:<10} {status}")
        print("-" * 80)


async def main():
    """Main function"""
    await create_tables()

    command = sys.argv[1].lower() if len(sys.argv) > 1 else "admin"
    if command == "admin":
        await create_admin_user()
    elif command == "list":
        await list_users()
    else:
        print("❌ Unknown command. Use: admin or list")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
