# car_market/routes/files.py

"""
Загрузка картинок (машины, аватары). Файлы отдаются статикой из /public.
"""

import logging
import shutil
from pathlib import Path
from uuid import uuid4

from fastapi import APIRouter, Depends, Request, UploadFile, File, status

from car_market.config import settings
from car_market.dependencies import get_current_user
from car_market.models import User
from car_market.schemas import FileUploadResponse
from car_market.utils.exceptions import InvalidInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/file", tags=["files"])

PUBLIC_URL_PREFIX = "/public"


@router.post("", response_model=FileUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """
    Сохраняем файл под случайным именем (расширение сохраняется) и отдаём ссылку.
    """
    if not file.filename:
        raise InvalidInput("File name is missing")

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    stored_name = f"{uuid4().hex}{Path(file.filename).suffix.lower()}"
    with (upload_dir / stored_name).open("wb") as target:
        shutil.copyfileobj(file.file, target)

    logger.info("User %s uploaded %s as %s", current_user.id, file.filename, stored_name)

    base_url = str(request.base_url).rstrip("/")
    return {"url": f"{base_url}{settings.API_PREFIX}{PUBLIC_URL_PREFIX}/{stored_name}"}
