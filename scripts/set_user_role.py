"""
Set the stored role of a user directly in the database.

Used to bootstrap the first admin on an existing account or to repair a
role without going through the admin API. Creates the record when the email
has never signed in.

Usage:
    python -m scripts.set_user_role someone@example.com writer
"""
import asyncio
import sys
from datetime import datetime, timezone

from chapel.auth.roles import Role
from chapel.crud.user import UserRepository
from chapel.database import AsyncSessionLocal
from chapel.domain.users import UserRecord
from chapel.errors import NotFoundError
from chapel.use_cases.users.manage_users import update_role


async def set_user_role(email: str, role: Role) -> None:
    async with AsyncSessionLocal() as session:
        repo = UserRepository(session)
        try:
            record = await update_role(repo, email, role)
            print(f"  ✓ {record.email} is now {record.role.value}")
        except NotFoundError:
            now = datetime.now(timezone.utc)
            await repo.upsert(
                UserRecord(email=email, role=role, last_login=now, created_at=now)
            )
            await repo.commit()
            print(f"  ✓ Created {email} with role {role.value}")


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print(__doc__)
        return 2
    email, raw_role = argv
    try:
        role = Role.parse(raw_role)
    except ValueError as exc:
        print(f"  ERROR: {exc}")
        return 2
    asyncio.run(set_user_role(email.strip(), role))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
