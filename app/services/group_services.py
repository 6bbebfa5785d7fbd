import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import HTTPException
from app.models.group import Group
from app.models.group_member import GroupMember
from app.models.user import User
from app.services.balance_services import ensure_settled_up

logger = logging.getLogger(__name__)

async def _get_group(db: AsyncSession, group_id: int) -> Group:
    group = await db.get(Group, group_id)
    if not group:
        raise HTTPException(404, "Group doesn't exist")
    return group

async def _get_membership(db: AsyncSession, group_id: int, user_id: int):
    res = await db.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        )
    )
    return res.scalar_one_or_none()

async def create_group(db: AsyncSession, name:str, creator_id:int):
    group = Group(name=name, created_by=creator_id)
    db.add(group)
    await db.flush()

    db.add(GroupMember(group_id=group.id, user_id=creator_id))

    await db.commit()
    await db.refresh(group)

    logger.info("Group %s created by user %s", group.id, creator_id)
    return group

async def add_member(db: AsyncSession, group_id: int, user_id: int, creator_id: int):
    group = await _get_group(db, group_id)

    if group.created_by != creator_id:
        raise HTTPException(403, "Only the group creator can add members")

    if not await db.get(User, user_id):
        raise HTTPException(404, "User does not exist")

    member = await _get_membership(db, group_id, user_id)

    if member and member.left_at is None:
        raise HTTPException(400, "User already exist in this group")

    if member:
        # returning member: their old records unlock again
        member.left_at = None
    else:
        member = GroupMember(group_id=group_id, user_id=user_id)
        db.add(member)

    await db.commit()
    await db.refresh(member)

    logger.info("User %s joined group %s", user_id, group_id)
    return member

async def _depart(db: AsyncSession, member: GroupMember):
    await ensure_settled_up(db, member.group_id, member.user_id)

    member.left_at = datetime.now(timezone.utc)
    await db.commit()

async def remove_member(db: AsyncSession, group_id: int, user_id: int, creator_id: int):
    group = await _get_group(db, group_id)

    if group.created_by != creator_id:
        raise HTTPException(403, "Only group admin can remove members")

    if user_id == creator_id:
        raise HTTPException(400, "Transfer admin role before removing yourself")

    member = await _get_membership(db, group_id, user_id)

    if not member or member.left_at is not None:
        raise HTTPException(404, "User is not a member of this group")

    await _depart(db, member)

    logger.info("User %s removed from group %s by %s", user_id, group_id, creator_id)
    return {"status": "member_removed"}

async def exit_group(db: AsyncSession, group_id: int, user_id: int):
    group = await _get_group(db, group_id)

    if group.created_by == user_id:
        raise HTTPException(400, "Group admin cannot exit. Transfer admin role first.")

    member = await _get_membership(db, group_id, user_id)

    if not member or member.left_at is not None:
        raise HTTPException(404, "You are not a member of this group")

    await _depart(db, member)

    logger.info("User %s left group %s", user_id, group_id)
    return {"status": "exited_group"}

async def list_group_for_user(db: AsyncSession, user_id: int):
    q = (
        select(Group)
        .join(GroupMember)
        .where(GroupMember.user_id == user_id, GroupMember.left_at.is_(None))
        .order_by(Group.id)
    )
    result = await db.execute(q)
    return result.scalars().all()

async def list_group_members(db: AsyncSession, group_id: int):
    q = (
        select(GroupMember)
        .where(GroupMember.group_id == group_id, GroupMember.left_at.is_(None))
        .order_by(GroupMember.user_id)
    )
    result = await db.execute(q)
    return result.scalars().all()
