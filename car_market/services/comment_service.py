# car_market/services/comment_service.py

"""
Сервисный слой для комментариев и ответов.

Дерево двухуровневое: пост -> комментарии -> ответы. Ответ на ответ невозможен.
Знает про Comment/Post/User и БД, но не про HTTP-исключения.
"""

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from car_market.models import Comment, User, Post
from car_market.schemas import CommentCreate, CommentUpdate, CommentResponse
from car_market.utils.exceptions import InvalidRelationship, NotFound, Unauthorized

logger = logging.getLogger(__name__)


async def get_post_by_id(db: Session, post_id: int) -> Post:
    """
    Утилита для поиска поста по id.
    """
    post = db.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


async def get_comment_by_id(db: Session, comment_id: int, what: str = "Comment") -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise NotFound(f"{what} not found")
    return comment


async def resolve_comment_in_post(
    db: Session,
    post_id: int,
    comment_id: int,
) -> Tuple[Post, Comment]:
    """
    Найти пост и комментарий и убедиться, что комментарий числится в посте.
    """
    post = await get_post_by_id(db, post_id)
    comment = await get_comment_by_id(db, comment_id)

    if comment.post_id != post.id:
        raise InvalidRelationship("Comment does not belong to post")

    return post, comment


async def resolve_reply_in_comment(
    db: Session,
    post_id: int,
    comment_id: int,
    reply_id: int,
) -> Tuple[Post, Comment, Comment]:
    """
    То же, что resolve_comment_in_post, плюс проверка, что ответ числится в комментарии.
    """
    post, comment = await resolve_comment_in_post(db, post_id, comment_id)
    reply = await get_comment_by_id(db, reply_id, "Reply")

    if reply.parent_id != comment.id:
        raise InvalidRelationship("Reply does not belong to comment")

    return post, comment, reply


def ensure_publisher(comment: Comment, user: User, what: str = "Comment") -> None:
    """
    Править и удалять комментарий может только его автор.
    """
    if str(user.id) != str(comment.publisher_id):
        raise Unauthorized(f"{what} does not belong to user")


async def add_comment_to_post(
    db: Session,
    post_id: int,
    author: User,
    comment_in: CommentCreate,
) -> Post:
    """
    Создать комментарий к посту от имени пользователя. Возвращает обновлённый пост.
    """
    post = await get_post_by_id(db, post_id)

    db_comment = Comment(
        text=comment_in.text,
        publisher_id=author.id,
        post_id=post.id,
    )
    db.add(db_comment)
    db.commit()
    db.refresh(post)
    return post


async def add_reply_to_comment(
    db: Session,
    comment: Comment,
    author: User,
    reply_in: CommentCreate,
) -> Comment:
    """
    Создать ответ на комментарий. Возвращает обновлённый родительский комментарий.
    """
    db_reply = Comment(
        text=reply_in.text,
        publisher_id=author.id,
        parent_id=comment.id,
    )
    db.add(db_reply)
    db.commit()
    db.refresh(comment)
    return comment


async def update_comment_text(
    db: Session,
    comment: Comment,
    comment_update: CommentUpdate,
) -> Comment:
    """
    Обновить текст. Порядок в списках не меняется.
    """
    comment.text = comment_update.text
    db.commit()
    db.refresh(comment)
    return comment


async def delete_reply(
    db: Session,
    comment: Comment,
    reply: Comment,
) -> CommentResponse:
    """
    Удалить ответ: сначала отвязать от родителя, затем удалить сам документ.
    """
    snapshot = CommentResponse.model_validate(reply)

    reply.parent_id = None
    db.commit()

    db.delete(reply)
    db.commit()
    db.refresh(comment)
    return snapshot


async def delete_comment_cascade(
    db: Session,
    post: Post,
    comment: Comment,
) -> CommentResponse:
    """
    Удалить комментарий вместе с ответами.

    Шаги выполняются последовательно, каждый своим коммитом, без отката:
    ответы -> отвязка от поста -> сам комментарий.
    """
    snapshot = CommentResponse.model_validate(comment)

    for reply in list(comment.replies):
        db.delete(reply)
        db.commit()

    comment.post_id = None
    db.commit()

    db.delete(comment)
    db.commit()

    logger.info(
        "Deleted comment %s from post %s with %s repl(ies)",
        snapshot.id, post.id, len(snapshot.replies),
    )
    return snapshot
