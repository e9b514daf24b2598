# car_market/services/user_service.py

"""
Понравившиеся пользователю посты.
"""

from typing import List

from sqlalchemy.orm import Session

from car_market.models import Post, User
from car_market.services.comment_service import get_post_by_id
from car_market.utils.exceptions import NotFound, Unauthorized


async def get_user_by_id(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def _ensure_self(user: User, current_user: User) -> None:
    if str(user.id) != str(current_user.id):
        raise Unauthorized("You can only change your own liked posts")


async def list_liked_posts(db: Session, user_id: int) -> List[Post]:
    user = await get_user_by_id(db, user_id)
    return list(user.liked_posts)


async def add_liked_post(
    db: Session,
    user_id: int,
    post_id: int,
    current_user: User,
) -> None:
    """
    Добавить пост в понравившиеся. Повторный лайк ничего не меняет.
    """
    user = await get_user_by_id(db, user_id)
    _ensure_self(user, current_user)
    post = await get_post_by_id(db, post_id)

    if post not in user.liked_posts:
        user.liked_posts.append(post)
        db.commit()


async def remove_liked_post(
    db: Session,
    user_id: int,
    post_id: int,
    current_user: User,
) -> None:
    user = await get_user_by_id(db, user_id)
    _ensure_self(user, current_user)

    for post in list(user.liked_posts):
        if post.id == post_id:
            user.liked_posts.remove(post)
    db.commit()
