# car_market/schemas/__init__.py

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Annotated, Optional, List

# Колонки Integer: на PostgreSQL это int4, больше в них не положить
MAX_DB_INT = 2**31 - 1
DbInt = Annotated[int, Field(ge=-MAX_DB_INT - 1, le=MAX_DB_INT)]


def _normalize_email(value: str) -> str:
    # t@test.com и T@Test.com - один и тот же пользователь
    return value.strip().lower()

# =======================
# СХЕМЫ ДЛЯ ПОЛЬЗОВАТЕЛЕЙ
# =======================

class UserBase(BaseModel):
    """
    Базовая схема пользователя
    """
    name: str
    email: EmailStr
    phone_number: Optional[str] = None
    img_url: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class UserCreate(UserBase):
    """
    Схема для создания пользователя (регистрация)
    """
    password: str = Field(min_length=1)


class UserUpdate(UserBase):
    """
    Полное обновление профиля: имя, e-mail и пароль обязательны
    """
    password: str = Field(min_length=1)


class UserLogin(BaseModel):
    """
    Схема для логина по e-mail
    """
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class GoogleSignIn(BaseModel):
    """ID-токен, полученный фронтендом от Google"""
    credential: str = Field(min_length=1)


class UserResponse(BaseModel):
    """
    Схема ответа с инфо о пользователе (без пароля и токенов)
    """
    id: int
    name: str
    email: str
    phone_number: Optional[str] = None
    img_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str = Field(
        validation_alias=AliasChoices("access_token", "accessToken"),
        serialization_alias="accessToken",
    )
    refresh_token: str = Field(
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
        serialization_alias="refreshToken",
    )


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenResponse


# ==================
# СХЕМЫ ДЛЯ МАШИН
# ==================

class CarBase(BaseModel):
    """Характеристики автомобиля"""
    make: str
    model: str
    year: DbInt
    price: DbInt
    hand: DbInt
    color: str
    mileage: DbInt
    city: str
    image_urls: List[str] = []


class CarCreate(CarBase):
    """Создание машины. Владелец берется из токена"""
    pass


class CarUpdate(BaseModel):
    """Частичное обновление машины"""
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[DbInt] = None
    price: Optional[DbInt] = None
    hand: Optional[DbInt] = None
    color: Optional[str] = None
    mileage: Optional[DbInt] = None
    city: Optional[str] = None
    image_urls: Optional[List[str]] = None


class CarResponse(CarBase):
    id: int
    owner: int = Field(validation_alias=AliasChoices("owner_id", "owner"))
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ====================
# СХЕМЫ ДЛЯ ПУБЛИКАЦИИ
# ====================

class PostCreate(BaseModel):
    """Создание поста: ссылка на машину"""
    car: DbInt


class PostUpdate(BaseModel):
    """Обновление поста (смена машины)"""
    car: DbInt


class PostResponse(BaseModel):
    """Пост со ссылками (id) на машину, автора и комментарии"""
    id: int
    car: int = Field(validation_alias=AliasChoices("car_id", "car"))
    publisher: int = Field(validation_alias=AliasChoices("publisher_id", "publisher"))
    comments: List[int] = Field(default=[], validation_alias=AliasChoices("comment_ids", "comments"))
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ======================
# СХЕМЫ ДЛЯ КОММЕНТАРИЕВ
# ======================

class CommentBase(BaseModel):
    """Базовая информация о комментарии"""
    text: str = Field(min_length=1)

class CommentCreate(CommentBase):
    """Создание комментария или ответа"""
    pass

class CommentUpdate(CommentBase):
    """Обновление текста комментария"""
    pass

class CommentResponse(BaseModel):
    id: int
    publisher: int = Field(validation_alias=AliasChoices("publisher_id", "publisher"))
    text: str
    replies: List[int] = Field(default=[], validation_alias=AliasChoices("reply_ids", "replies"))
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReplyPopulated(BaseModel):
    """Ответ с инфо об авторе"""
    id: int
    text: str
    publisher: UserResponse
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentPopulated(ReplyPopulated):
    """Комментарий с автором и ответами"""
    replies: List[ReplyPopulated] = []


class PostPopulated(BaseModel):
    """Пост с машиной, автором и всем деревом комментариев"""
    id: int
    car: CarResponse
    publisher: UserResponse
    comments: List[CommentPopulated] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ==========================
# ПОНРАВИВШИЕСЯ ПОСТЫ И ФАЙЛЫ
# ==========================

class LikedPostCreate(BaseModel):
    post_id: DbInt


class LikedPostsResponse(BaseModel):
    liked_posts: List[PostResponse]


class FileUploadResponse(BaseModel):
    url: str
