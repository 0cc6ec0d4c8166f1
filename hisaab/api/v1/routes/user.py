from fastapi import APIRouter, Depends, HTTPException, Response, Cookie
from sqlalchemy.ext.asyncio import AsyncSession
from hisaab.core.config import Settings
from hisaab.core.dependencies import get_db, get_current_user, get_app_settings
from hisaab.core.jwt_config import create_access_token, create_refresh_token, decode_token
from hisaab.models.user import User
from hisaab.schemas.user import UserCreate, UserOut, UserLogin, TokenOut
from hisaab.services.user_service import create_user, get_user_by_id, authenticate_user

router = APIRouter()

async def _issue_tokens(db: AsyncSession, user: User, response: Response, settings: Settings) -> str:
    access = create_access_token({"sub": str(user.id)}, settings)
    refresh = create_refresh_token({"sub": str(user.id)}, settings)

    user.refresh_token = refresh
    await db.commit()
    await db.refresh(user)

    for key, value in (("refresh_token", refresh), ("access_token", access)):
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax"
        )

    return access

@router.post("/register", response_model=TokenOut, status_code=201)
async def register_user(
    data: UserCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    try:
        user = await create_user(db, data, bcrypt_rounds=settings.BCRYPT_ROUNDS)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    access = await _issue_tokens(db, user, response, settings)
    return {"access_token": access, "user": user}

@router.post("/login", response_model=TokenOut)
async def login_user(
    data: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = await authenticate_user(db, data.email, data.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    access = await _issue_tokens(db, user, response, settings)
    return {"access_token": access, "user": user}

@router.get("/me", response_model=UserOut)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user

@router.post("/refresh", response_model=TokenOut)
async def refresh_token(
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    refresh_cookie: str | None = Cookie(None, alias="refresh_token")
):
    if refresh_cookie is None:
        raise HTTPException(status_code=401, detail="Refresh token missing")

    payload = decode_token(refresh_cookie, settings, token_type="refresh")

    try:
        user = await get_user_by_id(db, int(payload.get("sub")))
    except (TypeError, ValueError):
        raise HTTPException(401, "Invalid refresh token")

    if not user:
        raise HTTPException(401, "User not found")

    if user.refresh_token != refresh_cookie:
        raise HTTPException(401, "Refresh token revoked or rotated")

    access = await _issue_tokens(db, user, response, settings)
    return {"access_token": access, "user": user}

@router.post("/logout")
async def logout_user(response: Response, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    current_user.refresh_token = None
    await db.commit()

    response.delete_cookie("refresh_token")
    response.delete_cookie("access_token")
    return {"message": "Logged out"}
