"""
referral_genie.db.init_db

DB initialization helpers (dev/test convenience).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from referral_genie.db import models  # noqa: F401  # register tables on Base.metadata
from referral_genie.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Create any missing tables. Production deployments run Alembic instead.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
