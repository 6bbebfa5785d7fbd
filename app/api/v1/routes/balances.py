from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.core.dependencies import get_current_user, check_group_membership, get_recorder
from app.core.metrics import BalanceRecorder
from app.schemas.balances import GroupBalances, MyBalanceOut
from app.services.balance_services import get_group_balances, get_user_net_balances

router = APIRouter()

@router.get("/{group_id}/balances", response_model=GroupBalances)
async def group_balances(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    recorder: BalanceRecorder = Depends(get_recorder),
):
    await check_group_membership(db, group_id, current_user.id)
    return await get_group_balances(db, group_id, recorder)


@router.get("/{group_id}/balances/me", response_model=MyBalanceOut)
async def my_balance(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    await check_group_membership(db, group_id, current_user.id)
    net = await get_user_net_balances(db, group_id, current_user.id)
    return {
        "user_id": current_user.id,
        "net": {cur: str(amt) for cur, amt in net.items()}
    }
