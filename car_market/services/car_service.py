# car_market/services/car_service.py

"""
Сервисный слой для машин.

Знает про модели, поиск и кэш, но не про HTTP-статусы/исключения.
"""

import logging
from typing import List, Literal

from sqlalchemy.orm import Session

from car_market.config import settings
from car_market.models import Car, Post, User
from car_market.schemas import CarCreate, CarUpdate, CarResponse
from car_market.services.cache import cache
from car_market.services.search import build_car_conditions
from car_market.utils.exceptions import Conflict, NotFound, Unauthorized

logger = logging.getLogger(__name__)

# Префикс кэша для списков цветов/городов
CAR_OPTIONS_CACHE_PREFIX = "cars:options:"
CAR_OPTION_FIELDS = {"color": Car.color, "city": Car.city}


async def invalidate_car_options() -> None:
    await cache.delete(*(f"{CAR_OPTIONS_CACHE_PREFIX}{field}" for field in CAR_OPTION_FIELDS))


async def get_car_by_id(db: Session, car_id: int) -> Car:
    car = db.get(Car, car_id)
    if car is None:
        raise NotFound("Car not found")
    return car


def ensure_owner(car: Car, user: User) -> None:
    if str(user.id) != str(car.owner_id):
        raise Unauthorized("Car does not belong to user")


async def create_car_for_user(
    db: Session,
    owner: User,
    car_in: CarCreate,
) -> Car:
    """
    Создать машину. Владелец - текущий пользователь.
    """
    db_car = Car(**car_in.model_dump(), owner_id=owner.id)

    db.add(db_car)
    db.commit()
    db.refresh(db_car)

    await invalidate_car_options()

    return db_car


def find_car_ids(db: Session, criteria: dict) -> List[int]:
    """
    Первый шаг поиска: id машин, подходящих под фильтры.
    """
    conditions = build_car_conditions(criteria)
    return [row.id for row in db.query(Car.id).filter(*conditions).all()]


async def list_cars(db: Session, criteria: dict) -> List[Car]:
    conditions = build_car_conditions(criteria)
    return db.query(Car).filter(*conditions).order_by(Car.id).all()


async def list_car_options(
    db: Session,
    field: Literal["color", "city"],
) -> List[str]:
    """
    Отсортированные уникальные значения поля (для фильтров на фронтенде).
    """
    cache_key = f"{CAR_OPTIONS_CACHE_PREFIX}{field}"
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    column = CAR_OPTION_FIELDS[field]
    values = [row[0] for row in db.query(column).distinct().order_by(column).all()]

    await cache.set(cache_key, values, ttl=settings.CAR_OPTIONS_CACHE_TTL)
    return values


async def update_car_for_user(
    db: Session,
    car_id: int,
    car_update: CarUpdate,
    current_user: User,
) -> Car:
    db_car = await get_car_by_id(db, car_id)
    ensure_owner(db_car, current_user)

    update_data = car_update.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(db_car, key, value)

    db.commit()
    db.refresh(db_car)

    await invalidate_car_options()

    return db_car


async def delete_car_for_user(
    db: Session,
    car_id: int,
    current_user: User,
) -> CarResponse:
    """
    Удалить машину. Машину, выставленную в посте, удалить нельзя:
    она уйдёт вместе с постом.
    """
    db_car = await get_car_by_id(db, car_id)
    ensure_owner(db_car, current_user)

    if db.query(Post).filter(Post.car_id == db_car.id).first() is not None:
        raise Conflict("Car is listed in a post, delete the post instead")

    snapshot = CarResponse.model_validate(db_car)
    db.delete(db_car)
    db.commit()

    await invalidate_car_options()

    return snapshot
