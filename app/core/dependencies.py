from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.core.config import settings
from app.core.jwt_config import decode_token, get_token_from_request
from app.core.metrics import BalanceRecorder, LoggingRecorder
from app.models.group import Group
from app.models.group_member import GroupMember
from app.services.user_service import get_user_by_id

async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    token = get_token_from_request(request=request)
    payload = decode_token(token)
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    user = await get_user_by_id(db, int(user_id))

    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")

    return user

def get_recorder() -> BalanceRecorder:
    return LoggingRecorder(slow_ms=settings.SLOW_BALANCE_MS)

async def get_active_member_ids(db: AsyncSession, group_id: int) -> set[int]:
    q = select(GroupMember.user_id).where(
        GroupMember.group_id == group_id,
        GroupMember.left_at.is_(None)
    )
    res = await db.execute(q)
    return set(res.scalars().all())

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int):
    group = await db.get(Group, group_id)

    if not group:
        raise HTTPException(404, "Group does not exist")

    q_member = select(GroupMember).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id,
        GroupMember.left_at.is_(None)
    )

    res_member = await db.execute(q_member)
    member = res_member.scalar_one_or_none()

    if not member:
        raise HTTPException(403, "You are not a member of this group")

    return member
