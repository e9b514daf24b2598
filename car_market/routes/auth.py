# car_market/routes/auth.py

"""
API endpoints для регистрации, авторизации и жизненного цикла токенов.

refresh/logout принимают refresh-токен в заголовке Authorization: Bearer <token>.
"""

from fastapi import APIRouter, Depends, status, Request

from sqlalchemy.orm import Session

from car_market.schemas import (
    AuthResponse,
    GoogleSignIn,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
    TokenResponse,
)

from car_market.models import User
from car_market.utils.database import get_db
from car_market.dependencies import PathId, get_bearer_token, get_current_user
from car_market.services.auth_service import (
    authenticate_user,
    logout_user,
    refresh_tokens,
    register_user_in_db,
    sign_in_with_google,
    update_user_profile,
)

from car_market.utils.limiter import limiter
from car_market.config import settings

# Router для всех auth-эндпоинтов
router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={400: {"description": "Bad Request"}},
)


# ===============================
# РЕГИСТРАЦИЯ НОВОГО ПОЛЬЗОВАТЕЛЯ
# ===============================

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
async def register_user(
        user: UserCreate,
        request: Request,
        db: Session = Depends(get_db)
):
    """Регистрация: пользователь + пара токенов"""
    return await register_user_in_db(db, user)


# ==============================
# Авторизация созданного профиля
# ==============================

@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_user(
        user: UserLogin,
        request: Request,
        db: Session = Depends(get_db)
):
    """Логин пользователя"""
    return await authenticate_user(db, user)


@router.post("/google", response_model=AuthResponse, status_code=status.HTTP_200_OK)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def google_sign_in(
        body: GoogleSignIn,
        request: Request,
        db: Session = Depends(get_db)
):
    """Вход через Google. При первом входе пользователь создаётся"""
    return await sign_in_with_google(db, body.credential)


# ================
# REFRESH ENDPOINT
# ================

@router.get("/refresh", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def refresh_token_endpoint(
        refresh_token: str = Depends(get_bearer_token),
        db: Session = Depends(get_db)
):
    return await refresh_tokens(db, refresh_token)


# ===============
# LOGOUT ENDPOINT
# ===============

@router.get("/logout", status_code=status.HTTP_200_OK)
async def logout(
        refresh_token: str = Depends(get_bearer_token),
        db: Session = Depends(get_db)
):
    await logout_user(db, refresh_token)
    return {"message": "Logged out"}


# ==================
# ОБНОВЛЕНИЕ ПРОФИЛЯ
# ==================

@router.put("/{user_id}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def update_user(
        user_id: PathId,
        user_in: UserUpdate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return await update_user_profile(db, user_id, user_in, current_user)
