# car_market/routes/comments.py

"""
API endpoints для комментариев и ответов.

Все endpoints требуют авторизации. Перед обработчиком зависимость
проверяет цепочку пост -> комментарий -> ответ.
Удаление/обновление - только для автора комментария (ответа).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from car_market.schemas import CommentCreate, CommentResponse, CommentUpdate, PostResponse
from car_market.models import User
from car_market.utils.database import get_db
from car_market.dependencies import (
    PathId,
    CommentContext,
    ReplyContext,
    get_current_user,
    get_comment_context,
    get_owned_comment_context,
    get_reply_context,
    get_owned_reply_context,
)
from car_market.services.comment_service import (
    add_comment_to_post,
    add_reply_to_comment,
    delete_comment_cascade,
    delete_reply,
    update_comment_text,
)


router = APIRouter(prefix="/post", tags=["comments"])


# ===========
# КОММЕНТАРИИ
# ===========

@router.post(
    "/{post_id}/comment",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_comment(
    post_id: PathId,
    comment: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Добавить комментарий к посту. Возвращает пост с обновлённым списком комментариев.
    """
    return await add_comment_to_post(db, post_id, current_user, comment)


@router.get("/{post_id}/comment/{comment_id}", response_model=CommentResponse)
async def get_comment(
    current_user: User = Depends(get_current_user),
    context: CommentContext = Depends(get_comment_context),
):
    return context.comment


@router.put("/{post_id}/comment/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment: CommentUpdate,
    context: CommentContext = Depends(get_owned_comment_context),
    db: Session = Depends(get_db),
):
    """
    Обновить комментарий. Только для автора комментария.
    """
    return await update_comment_text(db, context.comment, comment)


@router.delete("/{post_id}/comment/{comment_id}", response_model=CommentResponse)
async def delete_comment(
    context: CommentContext = Depends(get_owned_comment_context),
    db: Session = Depends(get_db),
):
    """
    Удалить комментарий вместе со всеми ответами. Только автор комментария.
    """
    return await delete_comment_cascade(db, context.post, context.comment)


# ======
# ОТВЕТЫ
# ======

@router.post(
    "/{post_id}/comment/{comment_id}/reply",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_reply(
    reply: CommentCreate,
    current_user: User = Depends(get_current_user),
    context: CommentContext = Depends(get_comment_context),
    db: Session = Depends(get_db),
):
    """
    Ответить на комментарий. Возвращает комментарий с обновлённым списком ответов.
    """
    return await add_reply_to_comment(db, context.comment, current_user, reply)


@router.get("/{post_id}/comment/{comment_id}/reply/{reply_id}", response_model=CommentResponse)
async def get_reply(
    current_user: User = Depends(get_current_user),
    context: ReplyContext = Depends(get_reply_context),
):
    return context.reply


@router.put("/{post_id}/comment/{comment_id}/reply/{reply_id}", response_model=CommentResponse)
async def update_reply(
    reply: CommentUpdate,
    context: ReplyContext = Depends(get_owned_reply_context),
    db: Session = Depends(get_db),
):
    return await update_comment_text(db, context.reply, reply)


@router.delete("/{post_id}/comment/{comment_id}/reply/{reply_id}", response_model=CommentResponse)
async def delete_reply_endpoint(
    context: ReplyContext = Depends(get_owned_reply_context),
    db: Session = Depends(get_db),
):
    """
    Удалить ответ. Только автор ответа.
    """
    return await delete_reply(db, context.comment, context.reply)
