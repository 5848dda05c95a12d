"""
Database helper functions — credential upsert / lookup and the capped
early-access insert.

Both writes are single statements so concurrent requests cannot slip
between a read and the following write.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import DateTime, String, func, literal, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import EarlyAccess, SpotifyUser

logger = logging.getLogger(__name__)


class WaitlistOutcome(str, Enum):
    CREATED = "created"
    FULL = "full"
    DUPLICATE = "duplicate"


def _dialect_insert(session: AsyncSession):
    """Pick the dialect-specific ``insert`` that supports ON CONFLICT."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return pg_insert
    if name == "sqlite":
        return sqlite_insert
    raise RuntimeError(f"Unsupported database dialect for upserts: {name}")


async def get_spotify_user(
    session: AsyncSession,
    spotify_id: str,
) -> Optional[SpotifyUser]:
    result = await session.execute(
        select(SpotifyUser).where(SpotifyUser.spotify_id == spotify_id)
    )
    return result.scalar_one_or_none()


async def upsert_spotify_user(
    session: AsyncSession,
    spotify_id: str,
    access_token: str,
    refresh_token: Optional[str],
) -> None:
    """
    Insert the credential row, or update it in place when ``spotify_id``
    already exists.

    A ``None`` refresh token leaves the stored one untouched (Spotify does
    not always rotate refresh tokens).
    """
    now = datetime.now(timezone.utc)
    insert = _dialect_insert(session)
    stmt = insert(SpotifyUser.__table__).values(
        spotify_id=spotify_id,
        access_token=access_token,
        refresh_token=refresh_token,
        created_at=now,
        updated_at=now,
    )
    set_: Dict[str, Any] = {
        "access_token": stmt.excluded.access_token,
        "updated_at": stmt.excluded.updated_at,
    }
    if refresh_token is not None:
        set_["refresh_token"] = stmt.excluded.refresh_token

    await session.execute(
        stmt.on_conflict_do_update(index_elements=["spotify_id"], set_=set_)
    )
    await session.flush()


async def count_early_access(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(EarlyAccess))
    return int(result.scalar_one())


async def register_early_access(
    session: AsyncSession,
    email: str,
    capacity: int,
) -> Tuple[WaitlistOutcome, Optional[Dict[str, Any]]]:
    """
    Add ``email`` to the waitlist unless it is full or already listed.

    Returns the outcome and, on success, the new row as a dict.
    """
    table = EarlyAccess.__table__
    now = datetime.now(timezone.utc)
    insert = _dialect_insert(session)

    current_total = select(func.count()).select_from(table).scalar_subquery()
    source = select(
        literal(email, String),
        literal(now, DateTime(timezone=True)),
    ).where(current_total < capacity)

    stmt = (
        insert(table)
        .from_select(["email", "created_at"], source)
        .on_conflict_do_nothing(index_elements=["email"])
        .returning(table.c.id, table.c.email, table.c.created_at)
    )
    row = (await session.execute(stmt)).first()

    if row is not None:
        await session.flush()
        return WaitlistOutcome.CREATED, {
            "id": row.id,
            "email": row.email,
            "created_at": row.created_at,
        }

    if await count_early_access(session) >= capacity:
        return WaitlistOutcome.FULL, None
    return WaitlistOutcome.DUPLICATE, None
