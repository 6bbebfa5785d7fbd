from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.core.dependencies import get_current_user
from app.schemas.settlements import SettlementCreate, SettlementOut, SettlementUpdate
from app.services.settlement_services import add_settlement, get_settlement_history, update_settlement, delete_settlement

router = APIRouter()

@router.post("/", response_model=SettlementOut)
async def add_manual_settlement(
    data: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await add_settlement(db, user.id, data)

@router.get("/group/{group_id}", response_model=list[SettlementOut])
async def fetch_history(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await get_settlement_history(db, group_id, user.id)

@router.patch("/{settlement_id}", response_model=SettlementOut)
async def edit_settlement(
    settlement_id: int,
    data: SettlementUpdate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await update_settlement(db, settlement_id, data, user.id)

@router.delete("/{settlement_id}")
async def remove_settlement(
    settlement_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await delete_settlement(db, settlement_id, user.id)
