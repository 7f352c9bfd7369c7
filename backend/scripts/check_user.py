"""Script to look up a user by email or username and show their circle and journal counts."""
import asyncio
import sys

from closecircle.infra.db.base import Database
from closecircle.infra.db.repositories.circle_repo import CircleRepositoryImpl
from closecircle.infra.db.repositories.journal_repo import JournalRepositoryImpl
from closecircle.infra.db.repositories.user_repo import UserRepositoryImpl
from closecircle.settings import settings


async def check_user(identifier: str) -> bool:
    """Print what the system knows about a user."""
    database = Database(settings.database_url)
    database.connect()
    try:
        async with database.session() as session:
            users = UserRepositoryImpl(session)
            if "@" in identifier:
                user = await users.get_by_email(identifier.lower())
            else:
                user = await users.get_by_username(identifier.lower())

            if not user:
                print(f"❌ User '{identifier}' NOT FOUND in the system.")
                return False

            circle_count = await CircleRepositoryImpl(session).count(user.id)
            journals_count, total_likes, total_reads = await JournalRepositoryImpl(session).totals_for_author(user.id)

            print(f"✅ User '{identifier}' EXISTS in the system:")
            print(f"   ID: {user.id}")
            print(f"   Name: {user.name} (@{user.username})")
            print(f"   Email: {user.email}")
            print(f"   Password login: {'yes' if user.password_hash else 'no (federated account)'}")
            print(f"   Is Active: {user.is_active}")
            print(f"   Created At: {user.created_at}")
            print(f"   Close circle: {circle_count} member(s)")
            print(f"   Journals: {journals_count} (likes {total_likes}, reads {total_reads})")
            print(f"   Cached consistency: {user.consistency}")
            return True
    finally:
        await database.dispose()


if __name__ == "__main__":
    identifier = sys.argv[1] if len(sys.argv) > 1 else "a@g.com"
    print(f"🔍 Checking user '{identifier}'...\n")
    found = asyncio.run(check_user(identifier))
    sys.exit(0 if found else 1)
