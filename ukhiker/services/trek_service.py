# FILE: ukhiker/services/trek_service.py
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.core.errors import NotFound, ValidationError
from ukhiker.models.trek import Trek
from ukhiker.schemas.treks import REQUIRED_TREK_FIELDS, TrekCreate

logger = logging.getLogger("ukhiker.treks")


def list_statement() -> Select:
    # undated treks sort last; NULLS LAST is not portable to MySQL
    return select(Trek).order_by(Trek.date.is_(None), Trek.date.desc(), Trek.created_at.desc())


async def list_treks(db: AsyncSession) -> List[Trek]:
    rows = await db.execute(list_statement())
    return list(rows.scalars().all())


async def get_trek(db: AsyncSession, trek_id: str) -> Trek:
    # ids are opaque strings, anything unknown (malformed included) is simply not found
    trek = await db.get(Trek, trek_id) if trek_id else None
    if not trek:
        raise NotFound("Trek not found")
    return trek


async def create_trek(db: AsyncSession, data: TrekCreate) -> Trek:
    now = datetime.utcnow()
    trek = Trek(
        id=str(uuid.uuid4()),
        created_at=now,
        updated_at=now,
        **data.model_dump(),
    )
    db.add(trek)
    await db.commit()
    await db.refresh(trek)
    logger.info(f"Trek created: {trek.id}")
    return trek


async def update_trek(db: AsyncSession, trek_id: str, changes: Dict[str, Any]) -> Trek:
    trek = await get_trek(db, trek_id)

    for field in REQUIRED_TREK_FIELDS:
        if field in changes:
            value = changes[field]
            if value is None or not str(value).strip():
                raise ValidationError(f"{field} cannot be empty")
            changes[field] = str(value).strip()

    for field, value in changes.items():
        setattr(trek, field, value)
    trek.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(trek)
    return trek


async def delete_trek(db: AsyncSession, trek_id: str) -> None:
    trek = await get_trek(db, trek_id)
    await db.delete(trek)
    await db.commit()
    logger.info(f"Trek removed: {trek_id}")
