"""
API endpoints для публикаций
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from car_market.schemas import (
    PostCreate,
    PostResponse,
    PostUpdate,
    PostPopulated,
)
from car_market.models import User
from car_market.utils.database import get_db
from car_market.dependencies import PathId, get_current_user
from car_market.services.search import parse_search_params
from car_market.services.comment_service import get_post_by_id
from car_market.services.post_services import (
    create_post_for_user,
    delete_post_for_user,
    get_post_populated,
    list_posts_with_filters,
    update_post_for_user,
)

router = APIRouter(prefix="/post", tags=["posts"])


# =========================
# СОЗДАНИЕ НОВОЙ ПУБЛИКАЦИИ
# =========================

@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post: PostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Создание публикации: автор - текущий пользователь, машина - его собственная.
    """
    return await create_post_for_user(db, current_user, post)


# ===============================
# СПИСОК ПУБЛИКАЦИЙ (С ПОИСКОМ)
# ===============================

@router.get("", response_model=list[PostResponse])
async def list_posts(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Список постов. Фильтры - по полям машины:

    - скаляр: ?hand=2
    - список: ?make=toyota&make=mazda (или make[]=...)
    - диапазон: ?year[min]=1999&price[max]=50000
    """
    criteria = parse_search_params(request.query_params.multi_items())
    return await list_posts_with_filters(db, criteria)


# ===================
# ПОЛУЧИТЬ ПУБЛИКАЦИЮ
# ===================

@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: PathId,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Пост со ссылками (id) на машину, автора и комментарии"""
    return await get_post_by_id(db, post_id)


@router.get("/{post_id}/populated", response_model=PostPopulated)
async def get_post_full(
    post_id: PathId,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Полный пост: машина, автор, комментарии и ответы с их авторами.
    """
    return await get_post_populated(db, post_id)


# =====================================
# ОБНОВЛЕНИЕ(РЕДАКТИРОВАНИЕ) ПУБЛИКАЦИИ
# =====================================

@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: PathId,
    post_update: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Обновление поста (смена машины). Только для автора.
    """
    return await update_post_for_user(db, post_id, post_update, current_user)


# ==================
# УДАЛИТЬ ПУБЛИКАЦИЮ
# ==================

@router.delete("/{post_id}", response_model=PostResponse)
async def delete_post(
    post_id: PathId,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Удаление поста вместе с комментариями, ответами и машиной.
    """
    return await delete_post_for_user(db, post_id, current_user)
