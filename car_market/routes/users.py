# car_market/routes/users.py

"""
API enpoints для пользователей: текущий пользователь и понравившиеся посты.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from car_market.schemas import LikedPostCreate, LikedPostsResponse, UserResponse
from car_market.models import User
from car_market.utils.database import get_db
from car_market.dependencies import PathId, get_current_user
from car_market.services.user_service import (
    add_liked_post,
    list_liked_posts,
    remove_liked_post,
)

router = APIRouter(
    prefix="/user",
    tags=["users"],
)

@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
def get_me(
        current_user: User = Depends(get_current_user),
):
    """
    Возвращает данные текущего пользователя:
    id, name, email, phone_number, img_url, created_at
    """
    return current_user


@router.get("/{user_id}/likedPosts", response_model=LikedPostsResponse)
async def get_liked_posts(
        user_id: PathId,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
):
    posts = await list_liked_posts(db, user_id)
    return {"liked_posts": posts}


@router.post("/{user_id}/likedPosts", status_code=status.HTTP_200_OK)
async def like_post(
        user_id: PathId,
        body: LikedPostCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
):
    await add_liked_post(db, user_id, body.post_id, current_user)
    return {"message": "Post liked"}


@router.delete("/{user_id}/likedPosts/{post_id}", status_code=status.HTTP_200_OK)
async def unlike_post(
        user_id: PathId,
        post_id: PathId,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
):
    await remove_liked_post(db, user_id, post_id, current_user)
    return {"message": "Post removed from liked"}
