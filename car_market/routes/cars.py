# car_market/routes/cars.py

"""
API endpoints для машин.

Все endpoints требуют авторизации. Изменять и удалять машину может только владелец.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from car_market.schemas import CarCreate, CarResponse, CarUpdate
from car_market.models import User
from car_market.utils.database import get_db
from car_market.dependencies import PathId, get_current_user
from car_market.services.search import parse_search_params
from car_market.services.car_service import (
    create_car_for_user,
    delete_car_for_user,
    get_car_by_id,
    list_car_options,
    list_cars,
    update_car_for_user,
)

router = APIRouter(prefix="/car", tags=["cars"])


@router.get("", response_model=list[CarResponse])
async def get_cars(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Список машин. Поддерживает те же фильтры, что и поиск постов:
    ?make=toyota&make=mazda&year[min]=1999&hand=2
    """
    criteria = parse_search_params(request.query_params.multi_items())
    return await list_cars(db, criteria)


@router.get("/colors", response_model=list[str])
async def get_colors(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await list_car_options(db, "color")


@router.get("/cities", response_model=list[str])
async def get_cities(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await list_car_options(db, "city")


@router.get("/{car_id}", response_model=CarResponse)
async def get_car(
    car_id: PathId,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await get_car_by_id(db, car_id)


@router.post("", response_model=CarResponse, status_code=status.HTTP_201_CREATED)
async def create_car(
    car: CarCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Создание машины с привязкой к текущему пользователю.
    """
    return await create_car_for_user(db, current_user, car)


@router.put("/{car_id}", response_model=CarResponse)
async def update_car(
    car_id: PathId,
    car_update: CarUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return await update_car_for_user(db, car_id, car_update, current_user)


@router.delete("/{car_id}", response_model=CarResponse)
async def delete_car(
    car_id: PathId,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Удаление машины. Возвращает удалённую запись.
    """
    return await delete_car_for_user(db, car_id, current_user)
