"""
Create all application tables that do not exist yet.

Run once against a fresh database:
  python -m preschool.db.init_db
"""

import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import preschool.core.models  # noqa: F401  registers every table on Base.metadata
from preschool.db.session import Base, engine


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """Create missing tables and return their names."""
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        await conn.run_sync(Base.metadata.create_all)
    return [name for name in Base.metadata.tables if name not in existing]


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(sorted(missing)))
    else:
        print("All tables already exist in the database.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
