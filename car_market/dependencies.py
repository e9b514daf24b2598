# car_market/dependencies.py

"""
Зависимости для использования в endpoints
"""

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Path
from fastapi.security import HTTPBearer
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from car_market.models import Comment, Post, User
from car_market.schemas import MAX_DB_INT
from car_market.services.comment_service import (
    ensure_publisher,
    resolve_comment_in_post,
    resolve_reply_in_comment,
)
from car_market.utils.database import get_db
from car_market.utils.exceptions import Unauthorized
from car_market.utils.security import ACCESS_TOKEN_TYPE, decode_token, decode_expired_token

security = HTTPBearer(auto_error=False)

# id из пути: больше MAX_DB_INT в базе не бывает, такой запрос - ошибка ввода
PathId = Annotated[int, Path(le=MAX_DB_INT)]


async def get_bearer_token(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Сырой токен из заголовка "Authorization: Bearer <token>".

    Используется и для access-, и для refresh-токенов (/auth/refresh, /auth/logout).
    """
    if credentials is None:
        raise Unauthorized("Not authenticated")
    return credentials.credentials


async def get_current_user(
        token: str = Depends(get_bearer_token),
        db: Session = Depends(get_db)
) -> User:
    """
    Получаем текущего авторизованного пользователя

    Декодируем access-токен, из токена берем user_id (sub),
    ищем пользователя в БД и возвращаем объект User
    """
    payload = decode_token(token)

    # Если токен невалиден или истек
    if payload is None:
        if decode_expired_token(token) is not None:
            raise Unauthorized("Token has expired", code="token_expired")
        raise Unauthorized("Could not validate credentials")

    # refresh-токен не подходит для доступа к ресурсам
    if payload.get("token_type") != ACCESS_TOKEN_TYPE:
        raise Unauthorized("Could not validate credentials")

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise Unauthorized("Could not validate credentials")

    # Ищем пользователя в БД
    user = db.get(User, int(user_id))
    if user is None:
        raise Unauthorized("Could not validate credentials")

    return user


# ================================================
# Проверка цепочки пост -> комментарий -> ответ
# ================================================

@dataclass
class CommentContext:
    """Пост и комментарий, уже проверенные на принадлежность друг другу"""
    post: Post
    comment: Comment


@dataclass
class ReplyContext(CommentContext):
    """То же плюс ответ, принадлежащий комментарию"""
    reply: Comment


async def get_comment_context(
        post_id: PathId,
        comment_id: PathId,
        db: Session = Depends(get_db),
) -> CommentContext:
    post, comment = await resolve_comment_in_post(db, post_id, comment_id)
    return CommentContext(post=post, comment=comment)


async def get_owned_comment_context(
        current_user: User = Depends(get_current_user),
        context: CommentContext = Depends(get_comment_context),
) -> CommentContext:
    """Комментарий принадлежит посту и написан текущим пользователем"""
    ensure_publisher(context.comment, current_user, "Comment")
    return context


async def get_reply_context(
        post_id: PathId,
        comment_id: PathId,
        reply_id: PathId,
        db: Session = Depends(get_db),
) -> ReplyContext:
    post, comment, reply = await resolve_reply_in_comment(db, post_id, comment_id, reply_id)
    return ReplyContext(post=post, comment=comment, reply=reply)


async def get_owned_reply_context(
        current_user: User = Depends(get_current_user),
        context: ReplyContext = Depends(get_reply_context),
) -> ReplyContext:
    """Ответ принадлежит комментарию и написан текущим пользователем"""
    ensure_publisher(context.reply, current_user, "Reply")
    return context
