import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import HTTPException
from app.models.settlement import Settlement
from app.schemas.settlements import SettlementCreate, SettlementOut, SettlementUpdate
from app.core.dependencies import check_group_membership, get_active_member_ids
from app.core.exceptions import LedgerValidationError
from app.core.utils import fits_minor_unit, qround
from app.services.balance.locks import ensure_unlocked, is_locked
from app.services.balance_services import settlement_to_record

logger = logging.getLogger(__name__)


def _check_precision(amount, currency: str):
    if not fits_minor_unit(amount, currency):
        raise LedgerValidationError(
            f"Amount {amount} has more decimal places than {currency} allows"
        )


def _to_out(settlement: Settlement, active: set[int]) -> SettlementOut:
    return SettlementOut(
        id=settlement.id,
        group_id=settlement.group_id,
        payer_id=settlement.payer_id,
        payee_id=settlement.payee_id,
        currency=settlement.currency,
        amount=qround(settlement.amount, settlement.currency),
        note=settlement.note,
        created_at=settlement.created_at,
        is_locked=is_locked(settlement_to_record(settlement), active),
    )


async def _fetch_live_settlement(db: AsyncSession, settlement_id: int) -> Settlement:
    q = (
        select(Settlement)
        .where(Settlement.id == settlement_id, Settlement.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    settlement = (await db.execute(q)).scalar_one_or_none()

    if not settlement:
        raise HTTPException(404, "Settlement entry not found")

    return settlement


async def add_settlement(db: AsyncSession, user_id: int, data: SettlementCreate) -> SettlementOut:
    await check_group_membership(db, data.group_id, user_id)
    active = await get_active_member_ids(db, data.group_id)

    payer = data.payer_id or user_id

    if payer == data.payee_id:
        raise HTTPException(400, "Payer and payee must be different members")

    if payer not in active or data.payee_id not in active:
        raise HTTPException(400, "Payer and payee must both be group members")

    _check_precision(data.amount, data.currency)

    settlement = Settlement(
        group_id=data.group_id,
        payer_id=payer,
        payee_id=data.payee_id,
        currency=data.currency,
        amount=qround(data.amount, data.currency),
        note=data.note,
    )

    db.add(settlement)
    await db.commit()

    logger.info(
        "Settlement %s: %s paid %s %s %s in group %s",
        settlement.id, payer, data.payee_id, settlement.amount, data.currency, data.group_id,
    )

    settlement = await _fetch_live_settlement(db, settlement.id)
    return _to_out(settlement, active)


async def get_settlement_history(db: AsyncSession, group_id: int, user_id: int) -> list[SettlementOut]:
    await check_group_membership(db, group_id, user_id)
    active = await get_active_member_ids(db, group_id)

    q = (
        select(Settlement)
        .where(Settlement.group_id == group_id, Settlement.deleted_at.is_(None))
        .order_by(Settlement.created_at.desc(), Settlement.id.desc())
    )
    result = await db.scalars(q)
    return [_to_out(s, active) for s in result.all()]


async def update_settlement(db: AsyncSession, settlement_id: int, data: SettlementUpdate, user_id: int) -> SettlementOut:
    settlement = await _fetch_live_settlement(db, settlement_id)
    await check_group_membership(db, settlement.group_id, user_id)

    active = await get_active_member_ids(db, settlement.group_id)
    ensure_unlocked(settlement_to_record(settlement), active)

    if data.amount is not None:
        _check_precision(data.amount, settlement.currency)
        settlement.amount = qround(data.amount, settlement.currency)
    if data.note is not None:
        settlement.note = data.note

    await db.commit()
    logger.info("Settlement %s updated by user %s", settlement_id, user_id)

    settlement = await _fetch_live_settlement(db, settlement_id)
    return _to_out(settlement, active)


async def delete_settlement(db: AsyncSession, settlement_id: int, user_id: int):
    settlement = await _fetch_live_settlement(db, settlement_id)
    await check_group_membership(db, settlement.group_id, user_id)

    active = await get_active_member_ids(db, settlement.group_id)
    ensure_unlocked(settlement_to_record(settlement), active)

    settlement.deleted_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info("Settlement %s deleted by user %s", settlement_id, user_id)
    return {"status": "deleted"}
