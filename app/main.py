from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import LedgerValidationError, LockedRecordError, OutstandingBalanceError
from app.core.logging_config import configure_logging
from app.api.v1.routes.user import router as user_router
from app.api.v1.routes.group import router as group_router
from app.api.v1.routes.balances import router as balances_router
from app.api.v1.routes.expense import router as expense_router
from app.api.v1.routes.settlement import router as settlement_router

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Splitwise Backend")

@app.exception_handler(LedgerValidationError)
async def ledger_validation_handler(request: Request, exc: LedgerValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(LockedRecordError)
async def locked_record_handler(request: Request, exc: LockedRecordError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "code": "RECORD_LOCKED", "departed_members": exc.departed},
    )

@app.exception_handler(OutstandingBalanceError)
async def outstanding_balance_handler(request: Request, exc: OutstandingBalanceError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
            "code": "OUTSTANDING_BALANCE",
            "outstanding": {cur: str(amt) for cur, amt in exc.outstanding.items()},
        },
    )

@app.get("/")
async def root():
    return {"message": "Splitwise Backend is live"}

app.include_router(user_router, prefix="/api/v1/users")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(balances_router, prefix="/api/v1/groups")
app.include_router(expense_router, prefix="/api/v1/expense")
app.include_router(settlement_router, prefix="/api/v1/settlements")
