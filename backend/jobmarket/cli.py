"""Management CLI for access data.

Usage:
    python -m jobmarket.cli import-legacy-access FILE.json   # Load legacy flag grants as team members
    python -m jobmarket.cli show-access EMAIL                # Print a user's businesses and permissions
"""

import asyncio
import json
import sys

from sqlalchemy import select

from jobmarket.database import async_session
from jobmarket.models.business import Business
from jobmarket.models.user import User
from jobmarket.services.access import accessible_business_ids, resolve_access
from jobmarket.services.legacy_access import import_legacy_grants


async def import_legacy_access(path: str):
    with open(path, encoding="utf-8") as fh:
        records = json.load(fh)
    if isinstance(records, dict):
        records = [records]

    async with async_session() as db:
        summary = await import_legacy_grants(db, records)
        await db.commit()

    print(f"  Created: {summary.created}")
    print(f"  Updated: {summary.updated}")
    for reason in summary.skipped:
        print(f"  SKIPPED {reason}")
    print(f"\n{len(records)} record(s) processed")


async def show_access(email: str):
    async with async_session() as db:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()
        if user is None:
            print(f"No user with email {email}")
            return

        ids = await accessible_business_ids(db, user)
        if not ids:
            print(f"{user.email} has no business access.")
            return

        result = await db.execute(
            select(Business).where(Business.id.in_(ids)).order_by(Business.name)
        )
        for business in result.scalars().all():
            access = await resolve_access(db, user, business.id)
            print(f"  {business.name} ({business.id}) role={access.role}")
            print(f"    {', '.join(sorted(access.effective_permissions))}")
        print(f"\n{len(ids)} business(es)")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    arg = sys.argv[2] if len(sys.argv) > 2 else ""
    if cmd == "import-legacy-access" and arg:
        asyncio.run(import_legacy_access(arg))
    elif cmd == "show-access" and arg:
        asyncio.run(show_access(arg))
    else:
        print("Usage: python -m jobmarket.cli [import-legacy-access FILE.json|show-access EMAIL]")
