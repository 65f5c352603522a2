#!/usr/bin/env python3
"""
Find authority accounts with no categories assigned.

Such accounts see no issues at all. With --auto each one gets a single
category guessed from its department name.

Usage:
    python scripts/fix_authority_categories.py           # List only
    python scripts/fix_authority_categories.py --auto    # Assign guessed categories
"""

import asyncio
import argparse
import sys
from pathlib import Path
from typing import List

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from app.core.database import session_scope, close_db
from app.models.issue import IssueCategory
from app.models.user import User, UserRole


DEPARTMENT_KEYWORDS = [
    (("maintenance",), IssueCategory.MAINTENANCE),
    (("canteen", "food"), IssueCategory.CANTEEN),
    (("hostel", "accommodation"), IssueCategory.HOSTEL),
    (("transport",), IssueCategory.TRANSPORT),
    (("classroom", "academic"), IssueCategory.CLASSROOM),
]


def guess_category(department: str) -> IssueCategory:
    """First keyword found in the department name wins; ``other`` otherwise"""
    dept = (department or "").lower()
    for keywords, category in DEPARTMENT_KEYWORDS:
        if any(keyword in dept for keyword in keywords):
            return category
    return IssueCategory.OTHER


async def find_authorities_without_categories(db) -> List[User]:
    result = await db.execute(select(User).where(User.role == UserRole.AUTHORITY))
    return [user for user in result.scalars().all() if not user.categories]


async def fix_authority_categories(auto: bool = False) -> int:
    """
    Returns how many accounts were found without categories.

    Changes made with ``auto`` are committed when the session scope closes.
    """
    async with session_scope() as db:
        users = await find_authorities_without_categories(db)

        print(f"\n[FixCategories] Found {len(users)} authority users without categories\n")
        if not users:
            print("[FixCategories] All authority users have categories assigned!")
            return 0

        for index, user in enumerate(users, start=1):
            print(f"{index}. {user.name} ({user.email}) - Department: {user.department or '-'}")

        if not auto:
            print("\nThese accounts cannot see or update any issues until categories are set.")
            print("To assign a default category based on department, run:")
            print("   python scripts/fix_authority_categories.py --auto\n")
            return len(users)

        print("\n[FixCategories] Setting default category based on department...\n")
        for user in users:
            category = guess_category(user.department)
            user.categories = [category.value]
            print(f"Updated {user.name}: categories = [\"{category.value}\"]")

    print("\n[FixCategories] All authority users have been updated!")
    return len(users)


async def main():
    parser = argparse.ArgumentParser(description="Assign categories to authority users that have none")
    parser.add_argument("--auto", action="store_true", help="Assign a category guessed from the department")
    args = parser.parse_args()

    try:
        await fix_authority_categories(auto=args.auto)
    except Exception as e:
        print(f"[FixCategories] ERROR: {e}")
        sys.exit(1)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
