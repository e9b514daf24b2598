# car_market/services/search.py

"""
Перевод поисковых фильтров в условия SQLAlchemy по полям машины.

Фильтр по полю может быть:
- скаляром:            {"hand": 2}                      -> hand = 2
- списком:             {"make": ["toyota", "mazda"]}    -> make IN (...)
- диапазоном min/max:  {"year": {"min": 1999}}          -> year >= 1999 (границы включительно)

Неизвестные поля игнорируются, а не считаются ошибкой.
"""

import re
from typing import Any, Iterable, Tuple

from car_market.models import Car
from car_market.schemas import MAX_DB_INT
from car_market.utils.exceptions import InvalidInput

# Поле фильтра -> (колонка, тип значения)
CAR_SEARCH_FIELDS = {
    "make": (Car.make, str),
    "model": (Car.model, str),
    "year": (Car.year, int),
    "price": (Car.price, int),
    "hand": (Car.hand, int),
    "color": (Car.color, str),
    "mileage": (Car.mileage, int),
    "city": (Car.city, str),
    "owner": (Car.owner_id, int),
}

RANGE_BOUNDS = ("min", "max")

# year[min]=1999, make[]=toyota
_BRACKET_KEY = re.compile(r"^(?P<field>\w+)\[(?P<bound>\w*)\]$")


def parse_search_params(items: Iterable[Tuple[str, str]]) -> dict:
    """
    Собрать фильтры из пар query-строки (request.query_params.multi_items()).

    make=toyota&make=mazda   -> {"make": ["toyota", "mazda"]}
    make[]=toyota            -> {"make": ["toyota"]}
    year[min]=1999           -> {"year": {"min": "1999"}}
    hand=2                   -> {"hand": "2"}
    """
    criteria: dict = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)

        if match is None:
            current = criteria.get(key)
            if current is None or isinstance(current, dict):
                criteria[key] = value
            elif isinstance(current, list):
                current.append(value)
            else:
                criteria[key] = [current, value]
            continue

        field, bound = match.group("field"), match.group("bound")
        if bound:
            current = criteria.get(field)
            if not isinstance(current, dict):
                current = criteria[field] = {}
            current[bound] = value
        else:
            current = criteria.get(field)
            if isinstance(current, list):
                current.append(value)
            elif current is None or isinstance(current, dict):
                criteria[field] = [value]
            else:
                criteria[field] = [current, value]

    return criteria


def _coerce(field: str, value_type: type, value: Any) -> Any:
    if value_type is int:
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise InvalidInput(f"Filter '{field}' expects a number, got {value!r}")
        if not -MAX_DB_INT - 1 <= number <= MAX_DB_INT:
            raise InvalidInput(f"Filter '{field}' is out of range: {value!r}")
        return number
    return str(value)


def build_car_conditions(criteria: dict) -> list:
    """
    Список условий для db.query(Car).filter(*conditions).
    """
    conditions = []

    for field, value in criteria.items():
        if field not in CAR_SEARCH_FIELDS:
            continue
        column, value_type = CAR_SEARCH_FIELDS[field]

        if isinstance(value, dict):
            # Прочие ключи диапазона (не min/max) молча пропускаем
            for bound in RANGE_BOUNDS:
                if value.get(bound) is None:
                    continue
                limit = _coerce(field, value_type, value[bound])
                conditions.append(column >= limit if bound == "min" else column <= limit)
        elif isinstance(value, (list, tuple, set)):
            conditions.append(column.in_([_coerce(field, value_type, item) for item in value]))
        else:
            conditions.append(column == _coerce(field, value_type, value))

    return conditions
