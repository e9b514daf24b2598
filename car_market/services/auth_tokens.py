# car_market/services/auth_tokens.py

"""
Хранилище действующих refresh-токенов пользователя.

Набор токенов живет в таблице refresh_tokens: токен валиден,
только пока он есть в наборе своего владельца.
"""

from typing import Optional

from sqlalchemy.orm import Session

from car_market.models import RefreshToken, User


async def store_refresh_token(db: Session, user: User, token: str) -> None:
    db.add(RefreshToken(user_id=user.id, token=token))
    db.commit()


async def find_refresh_token(db: Session, user: User, token: str) -> Optional[RefreshToken]:
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user.id, RefreshToken.token == token)
        .first()
    )


async def rotate_refresh_token(db: Session, record: RefreshToken, new_token: str) -> None:
    # Старый токен удаляется и новый добавляется одним коммитом
    user_id = record.user_id
    db.delete(record)
    db.add(RefreshToken(user_id=user_id, token=new_token))
    db.commit()


async def revoke_refresh_token(db: Session, record: RefreshToken) -> None:
    db.delete(record)
    db.commit()


async def revoke_all_refresh_tokens(db: Session, user: User) -> int:
    """
    Очистить весь набор токенов пользователя (все сессии становятся недействительными).
    Возвращает число отозванных токенов.
    """
    revoked = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return revoked
