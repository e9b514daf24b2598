"""
Точка входа Car Market API.

Собираем FastAPI: таблицы и Redis поднимаются в lifespan,
ошибки приводятся к одному JSON-формату, роутеры вешаются под API_PREFIX.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from car_market.config import settings
from car_market.models import Base
from car_market.routes import auth, cars, posts, comments, users, files
from car_market.services.cache import cache
from car_market.utils.database import engine
from car_market.utils.exceptions import (
    AppError,
    app_error_handler,
    http_exception_handler,
    rate_limit_exceeded_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from car_market.utils.limiter import limiter

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    await cache.connect()
    logger.info("Car market API started (prefix %r)", settings.API_PREFIX)
    yield
    await cache.close()


app = FastAPI(
    title="Car Market API",
    description="Cars for sale, posts with threaded comments, JWT auth",
    version="1.0.0",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    lifespan=lifespan,
)


# ==============
# ОШИБКИ И ЛИМИТЫ
# ==============

EXCEPTION_HANDLERS = {
    AppError: app_error_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    RateLimitExceeded: rate_limit_exceeded_handler,
    Exception: unhandled_exception_handler,
}
for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Приложение живо; cache - отвечает ли Redis"""
    return {"status": "ok", "cache": await cache.ping()}


# ======
# ROUTES
# ======

for module in (auth, cars, posts, comments, users, files):
    app.include_router(module.router, prefix=settings.API_PREFIX)

# Загруженные картинки отдаём статикой
app.mount(
    f"{settings.API_PREFIX}{files.PUBLIC_URL_PREFIX}",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="public",
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
