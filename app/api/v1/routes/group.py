from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.services.group_services import create_group, add_member, list_group_for_user, list_group_members, remove_member, exit_group
from app.schemas.group import GroupCreate, GroupMemberOut, GroupOut
from app.core.dependencies import get_current_user, check_group_membership

router = APIRouter()

@router.post("/", response_model=GroupOut, description="create new group")
async def create_new_group(
    data:GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await create_group(db, data.name, user.id)

@router.get("/my-groups", response_model=list[GroupOut], description="get user groups")
async def my_groups(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_for_user(db, user.id)

@router.post("/{group_id}/add/{user_id}", response_model=GroupMemberOut)
async def add_user_to_group(
    group_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await add_member(db, group_id, user_id, current_user.id)

@router.delete("/{group_id}/remove/{user_id}")
async def rem_mem(group_id: int, user_id : int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    await check_group_membership(db, group_id, current_user.id)
    return await remove_member(db, group_id=group_id, user_id=user_id, creator_id=current_user.id)

@router.delete("/{group_id}/exit")
async def leave(group_id: int, db:AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    await check_group_membership(db, group_id, current_user.id)
    return await exit_group(db, group_id=group_id, user_id=current_user.id)

@router.get("/{group_id}/members", response_model=list[GroupMemberOut])
async def group_members(group_id: int, db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    await check_group_membership(db, group_id, current_user.id)
    return await list_group_members(db, group_id)
