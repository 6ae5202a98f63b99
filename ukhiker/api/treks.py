# =========================================================
# FILE: ukhiker/api/treks.py
# =========================================================

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.api.deps import get_current_user, require_admin
from ukhiker.core.database import get_db
from ukhiker.schemas.treks import TrekCreate, TrekUpdate, TrekResponse
from ukhiker.services import trek_service

router = APIRouter(prefix="/api/treks", tags=["treks"])


@router.get("", response_model=List[TrekResponse])
async def list_treks(db: AsyncSession = Depends(get_db)):
    return [TrekResponse.model_validate(t) for t in await trek_service.list_treks(db)]


@router.get("/{trek_id}", response_model=TrekResponse)
async def get_trek(trek_id: str, db: AsyncSession = Depends(get_db)):
    return TrekResponse.model_validate(await trek_service.get_trek(db, trek_id))


@router.post("", response_model=TrekResponse, status_code=201)
async def create_trek(
        data: TrekCreate,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    return TrekResponse.model_validate(await trek_service.create_trek(db, data))


@router.put("/{trek_id}", response_model=TrekResponse)
async def update_trek(
        trek_id: str,
        data: TrekUpdate,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    changes = data.model_dump(exclude_unset=True)
    return TrekResponse.model_validate(await trek_service.update_trek(db, trek_id, changes))


@router.delete("/{trek_id}")
async def delete_trek(
        trek_id: str,
        user=Depends(require_admin),
        db: AsyncSession = Depends(get_db),
):
    await trek_service.delete_trek(db, trek_id)
    return {"success": True, "message": "Trek removed"}
