# car_market/services/post_services.py

"""
Сервисный слой для постов.

Знает про модели, поиск и каскадное удаление, но не про HTTP-статусы/исключения.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from car_market.models import Car, Comment, Post, User, liked_posts
from car_market.schemas import PostCreate, PostUpdate, PostResponse
from car_market.services.car_service import ensure_owner, find_car_ids, get_car_by_id, invalidate_car_options
from car_market.services.comment_service import delete_comment_cascade, get_post_by_id
from car_market.utils.exceptions import Conflict, Unauthorized

logger = logging.getLogger(__name__)


async def _ensure_car_can_be_listed(
    db: Session,
    car_id: int,
    user: User,
    post: Optional[Post] = None,
) -> Car:
    """
    Машина существует, принадлежит пользователю и ещё не выставлена в другом посте.
    """
    car = await get_car_by_id(db, car_id)
    ensure_owner(car, user)

    listed = db.query(Post).filter(Post.car_id == car.id).first()
    if listed is not None and (post is None or listed.id != post.id):
        raise Conflict("Car is already listed in a post")

    return car


def ensure_post_publisher(post: Post, user: User) -> None:
    if str(user.id) != str(post.publisher_id):
        raise Unauthorized("Post does not belong to user")


async def create_post_for_user(
    db: Session,
    publisher: User,
    post_in: PostCreate,
) -> Post:
    """
    Создать пост для конкретного пользователя.
    """
    car = await _ensure_car_can_be_listed(db, post_in.car, publisher)

    db_post = Post(car_id=car.id, publisher_id=publisher.id)

    db.add(db_post)
    db.commit()
    db.refresh(db_post)

    return db_post


async def list_posts_with_filters(
    db: Session,
    criteria: dict,
) -> List[Post]:
    """
    Вернуть посты, чьи машины подходят под фильтры.

    Сначала ищем id машин, потом посты с этими машинами:
    у поста нет собственных полей машины.
    """
    query = db.query(Post)

    if criteria:
        car_ids = find_car_ids(db, criteria)
        query = query.filter(Post.car_id.in_(car_ids))

    return query.order_by(Post.id).all()


async def get_post_populated(
    db: Session,
    post_id: int,
) -> Post:
    """
    Вернуть пост с машиной, автором, комментариями и ответами (с их авторами).
    """
    await get_post_by_id(db, post_id)

    post = (
        db.query(Post)
        .options(
            joinedload(Post.car),
            joinedload(Post.publisher),
            joinedload(Post.comments).joinedload(Comment.publisher),
            joinedload(Post.comments)
            .joinedload(Comment.replies)
            .joinedload(Comment.publisher),
        )
        .filter(Post.id == post_id)
        .first()
    )
    return post


async def update_post_for_user(
    db: Session,
    post_id: int,
    post_update: PostUpdate,
    current_user: User,
) -> Post:
    """
    Обновить пост (сменить машину). Только автор поста.
    """
    db_post = await get_post_by_id(db, post_id)
    ensure_post_publisher(db_post, current_user)

    car = await _ensure_car_can_be_listed(db, post_update.car, current_user, db_post)
    db_post.car_id = car.id

    db.commit()
    db.refresh(db_post)

    return db_post


async def delete_post_for_user(
    db: Session,
    post_id: int,
    current_user: User,
) -> PostResponse:
    """
    Удалить пост каскадом: комментарии (с ответами) -> лайки -> пост -> машина.

    Каждый шаг - отдельный коммит; упавший посередине каскад не откатывается.
    """
    db_post = await get_post_by_id(db, post_id)
    ensure_post_publisher(db_post, current_user)

    snapshot = PostResponse.model_validate(db_post)
    car_id = db_post.car_id

    for comment in list(db_post.comments):
        await delete_comment_cascade(db, db_post, comment)

    db.execute(liked_posts.delete().where(liked_posts.c.post_id == db_post.id))
    db.commit()

    db.delete(db_post)
    db.commit()

    car = db.get(Car, car_id)
    if car is not None:
        db.delete(car)
        db.commit()
        await invalidate_car_options()

    logger.info("Deleted post %s with %s comment(s) and car %s", snapshot.id, len(snapshot.comments), car_id)
    return snapshot
