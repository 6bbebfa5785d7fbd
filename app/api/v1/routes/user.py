from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.schemas.user import UserCreate, UserOut, UserLogin
from app.models.user import User
from app.services.user_service import create_user, authenticate_user
from app.core.dependencies import get_current_user
from app.core.jwt_config import create_access_token, create_refresh_token

router = APIRouter()

@router.post("/register", response_model=UserOut)
async def register_user(data:UserCreate, db:AsyncSession = Depends(get_db)):
    return await create_user(db, data)

@router.post("/login", response_model=UserOut)
async def login_user(data:UserLogin, response : Response, db:AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, data.email, data.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    access = create_access_token({"sub": str(user.id)})
    refresh = create_refresh_token({"sub": str(user.id)})

    user.refresh_token = refresh
    await db.commit()
    await db.refresh(user)

    response.set_cookie(key="refresh_token", value=refresh, httponly=True, samesite="lax")
    response.set_cookie(key="access_token", value=access, httponly=True, samesite="lax")

    return user

@router.get("/me", response_model=UserOut)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)
