"""Seed the locker inventory when the table is empty."""
from __future__ import annotations

import argparse
import asyncio

from locker_rental.db.session import get_sessionmaker
from locker_rental.services.availability_service import LOCKER_COUNT, seed_lockers


async def seed(count: int = LOCKER_COUNT) -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        created = await seed_lockers(session, count=count)
    print(f"Seeded {created} locker(s).")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--count", type=int, default=LOCKER_COUNT)
    args = parser.parse_args()
    asyncio.run(seed(args.count))


if __name__ == "__main__":
    main()
