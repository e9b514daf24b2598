# car_market/utils/limiter.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from car_market.config import settings

# Лимиты считаются по IP клиента
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
)
