# car_market/utils/security.py

"""
Пароли (bcrypt через passlib) и JWT.

Access- и refresh-токены отличаются только claim'ом token_type и сроком жизни.
У refresh-токена есть jti: два токена, выпущенных в одну секунду, всё равно разные.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt
from passlib.context import CryptContext

from car_market.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ======
# ПАРОЛИ
# ======

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ===
# JWT
# ===

def _encode(data: dict, token_type: str, lifetime: timedelta, **claims) -> str:
    payload = {
        **data,
        **claims,
        "exp": datetime.now(timezone.utc) + lifetime,
        "token_type": token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, ACCESS_TOKEN_TYPE, lifetime)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, REFRESH_TOKEN_TYPE, lifetime, jti=uuid4().hex)


def decode_token(token: str, verify_exp: bool = True) -> Optional[dict]:
    """
    Payload токена или None, если подпись не сходится (или срок истёк при verify_exp).
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except jwt.InvalidTokenError:
        # ExpiredSignatureError - тоже InvalidTokenError
        return None


def decode_expired_token(token: str) -> Optional[dict]:
    """Подписанный нами, но просроченный токен: нужен, чтобы узнать его владельца."""
    return decode_token(token, verify_exp=False)
