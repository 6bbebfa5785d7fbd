from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.schemas.expense import ExpenseCreate, ExpenseOut, ExpenseUpdate
from app.services.expense_services import create_expense, delete_expense, update_expense, get_expense_by_id, list_group_expenses
from app.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=ExpenseOut)
async def add_expense(data: ExpenseCreate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await create_expense(db, data, current_user.id)

@router.get("/group/{group_id}", response_model=list[ExpenseOut])
async def group_expenses(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await list_group_expenses(db, group_id, current_user.id)

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_expense_by_id(db, expense_id=expense_id, user_id=current_user.id)

@router.patch("/{expense_id}", response_model=ExpenseOut)
async def edit(expense_id: int, data: ExpenseUpdate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await update_expense(db, expense_id, data, user_id=current_user.id)

@router.delete("/{expense_id}")
async def del_expense(expense_id: int, db:AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await delete_expense(db, expense_id=expense_id, user_id=current_user.id)
