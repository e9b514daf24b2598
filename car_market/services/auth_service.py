# car_market/services/auth_service.py

"""
Сервисный слой для регистрации, логина и жизненного цикла токенов.

Знает про модели, БД, хэширование и JWT, но не про HTTP-статусы.
Ошибки сообщает через AppError (InvalidInput, Unauthorized, NotFound, Conflict).
"""

import logging
import secrets
from typing import Optional

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy.orm import Session

from car_market.config import settings
from car_market.models import User
from car_market.schemas import UserCreate, UserLogin, UserUpdate
from car_market.utils.exceptions import Conflict, InvalidInput, NotFound, Unauthorized
from car_market.utils.security import (
    REFRESH_TOKEN_TYPE,
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    decode_expired_token,
)
from car_market.services.auth_tokens import (
    store_refresh_token,
    find_refresh_token,
    rotate_refresh_token,
    revoke_refresh_token,
    revoke_all_refresh_tokens,
)

logger = logging.getLogger(__name__)


def _user_id_from_payload(payload: dict) -> Optional[int]:
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


async def issue_tokens(db: Session, user: User) -> dict:
    """
    Выдать пару access/refresh и добавить refresh-токен в набор пользователя.
    """
    access_token = create_access_token(data={"sub": str(user.id)})
    refresh_token = create_refresh_token(data={"sub": str(user.id)})

    await store_refresh_token(db, user, refresh_token)

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
    }


async def register_user_in_db(
    db: Session,
    user_in: UserCreate,
) -> dict:
    """
    Зарегистрировать нового пользователя и сразу выдать ему токены.
    """
    # Проверка уникальности email
    if db.query(User).filter(User.email == user_in.email).first():
        raise Conflict("Email already registered")

    # Хэшируем пароль и создаём пользователя
    db_user = User(
        name=user_in.name,
        email=user_in.email,
        hashed_password=hash_password(user_in.password),
        phone_number=user_in.phone_number,
        img_url=user_in.img_url,
    )

    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info("Registered user %s", db_user.id)

    tokens = await issue_tokens(db, db_user)
    return {"user": db_user, "tokens": tokens}


async def authenticate_user(
    db: Session,
    creds: UserLogin,
) -> dict:
    """
    Аутентифицировать пользователя по email и паролю.
    """
    db_user = db.query(User).filter(User.email == creds.email).first()

    # Не уточняем, что именно неверно: email или пароль
    if not db_user or not verify_password(creds.password, db_user.hashed_password):
        raise Unauthorized("Incorrect email or password")

    tokens = await issue_tokens(db, db_user)
    return {"user": db_user, "tokens": tokens}


def verify_google_credential(credential: str) -> dict:
    """
    Проверить ID-токен Google и вернуть его payload (email, name, picture...).

    Бросает ValueError, если токен поддельный, просрочен или выписан не нам.
    """
    return google_id_token.verify_oauth2_token(
        credential,
        google_requests.Request(),
        settings.GOOGLE_CLIENT_ID,
    )


async def sign_in_with_google(db: Session, credential: str) -> dict:
    """
    Вход через Google: находим пользователя по email или создаём нового.
    """
    try:
        id_info = verify_google_credential(credential)
    except ValueError as exc:
        logger.warning("Google credential rejected: %s", exc)
        raise Unauthorized("Invalid Google credential")

    email = (id_info.get("email") or "").strip().lower()
    if not email:
        raise Unauthorized("Google account has no e-mail")

    db_user = db.query(User).filter(User.email == email).first()
    if db_user is None:
        # Пароль случайный: войти можно только через Google, пока пользователь его не сменит
        db_user = User(
            name=id_info.get("name") or email,
            email=email,
            hashed_password=hash_password(secrets.token_hex(10)),
            phone_number="",
            img_url=id_info.get("picture"),
        )
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        logger.info("Registered user %s via Google", db_user.id)

    tokens = await issue_tokens(db, db_user)
    return {"user": db_user, "tokens": tokens}


async def _resolve_refresh_token(db: Session, refresh_token: str):
    """
    Найти пользователя и запись refresh-токена.

    Любая неудача для известного пользователя (просрочен, уже использован,
    отозван) очищает весь его набор токенов: повторное использование
    считаем признаком компрометации.
    """
    payload = decode_token(refresh_token)

    if payload is None:
        # Просроченный, но подписанный нами токен - отзываем все сессии владельца
        expired = decode_expired_token(refresh_token)
        if expired is not None and expired.get("token_type") == REFRESH_TOKEN_TYPE:
            user_id = _user_id_from_payload(expired)
            db_user = db.get(User, user_id) if user_id is not None else None
            if db_user is not None:
                await revoke_all_refresh_tokens(db, db_user)
        raise Unauthorized("Invalid or expired refresh token")

    if payload.get("token_type") != REFRESH_TOKEN_TYPE:
        raise Unauthorized("Invalid or expired refresh token")

    user_id = _user_id_from_payload(payload)
    db_user = db.get(User, user_id) if user_id is not None else None
    if db_user is None:
        raise Unauthorized("User not found")

    record = await find_refresh_token(db, db_user, refresh_token)
    if record is None:
        revoked = await revoke_all_refresh_tokens(db, db_user)
        logger.warning(
            "Refresh token reuse for user %s, revoked %s session(s)", db_user.id, revoked
        )
        raise Unauthorized("Refresh token has been revoked")

    return db_user, record


async def refresh_tokens(db: Session, refresh_token: str) -> dict:
    """
    Ротация: старый refresh-токен удаляется, выдаётся новая пара.
    """
    db_user, record = await _resolve_refresh_token(db, refresh_token)

    new_access_token = create_access_token(data={"sub": str(db_user.id)})
    new_refresh_token = create_refresh_token(data={"sub": str(db_user.id)})

    await rotate_refresh_token(db, record, new_refresh_token)

    return {
        "access_token": new_access_token,
        "refresh_token": new_refresh_token,
    }


async def logout_user(db: Session, refresh_token: str) -> None:
    db_user, record = await _resolve_refresh_token(db, refresh_token)
    await revoke_refresh_token(db, record)
    logger.info("User %s logged out", db_user.id)


async def update_user_profile(
    db: Session,
    user_id: int,
    user_in: UserUpdate,
    current_user: User,
) -> User:
    """
    Полное обновление профиля (имя, email, пароль, телефон, картинка).
    """
    if not user_in.name or not user_in.email or not user_in.password:
        raise InvalidInput("Missing required fields")

    db_user = db.get(User, user_id)
    if db_user is None:
        raise NotFound("User not found")

    if str(current_user.id) != str(db_user.id):
        raise Unauthorized("You can only update your own profile")

    same_email = db.query(User).filter(User.email == user_in.email).first()
    if same_email is not None and same_email.id != db_user.id:
        raise Conflict("Email already exists")

    db_user.name = user_in.name
    db_user.email = user_in.email
    db_user.hashed_password = hash_password(user_in.password)
    db_user.phone_number = user_in.phone_number
    db_user.img_url = user_in.img_url

    db.commit()
    db.refresh(db_user)
    return db_user
