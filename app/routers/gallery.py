from pathlib import Path
from typing import List, Optional
from io import BytesIO
import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from app.storage.dynamodb import DynamoDBService
from app.storage.s3 import S3Service
from app.dependencies.dependencies import get_s3_service, get_dynamodb_service
from app.gallery.service import list_gallery, save_upload, remove_items, like_item
from app.gallery.models import LikeResponse
from app.exceptions import APIException

log = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(tags=["image-gallery-service"])

@router.get("/", response_class=HTMLResponse)
def gallery_page(
    request: Request,
    s3: S3Service = Depends(get_s3_service),
    db: DynamoDBService = Depends(get_dynamodb_service),
):
    """Renders the gallery, newest upload first."""
    entries = list_gallery(s3, db)
    return templates.TemplateResponse(request, "index.html", {"entries": entries})

@router.post("/upload")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    s3: S3Service = Depends(get_s3_service),
):
    """Stores the uploaded file under a fresh key. A request without a file is a no-op."""
    fileobj = BytesIO(await file.read()) if file is not None else None
    filename = file.filename if file is not None else None
    content_type = file.content_type if file is not None else None

    await run_in_threadpool(save_upload, s3, fileobj, filename, content_type)
    return RedirectResponse(url="/", status_code=303)

@router.post("/delete")
def delete_files(
    blob_names: Optional[List[str]] = Form(None),
    s3: S3Service = Depends(get_s3_service),
):
    """Deletes the selected items, stopping at the first one that fails."""
    remove_items(s3, blob_names)
    return RedirectResponse(url="/", status_code=303)

@router.post("/like/{key}", response_model=LikeResponse, response_model_exclude_none=True)
def like(
    key: str,
    db: DynamoDBService = Depends(get_dynamodb_service),
):
    """Adds one like and returns the new count for in-place display."""
    try:
        likes = like_item(db, key)
    except APIException as e:
        log.error(f"Like failed for {key}: {e.detail}")
        return JSONResponse(
            status_code=e.status_code,
            content=LikeResponse(success=False, message=e.detail).model_dump(exclude_none=True),
        )
    return LikeResponse(success=True, likes=likes)

@router.post("/like/", response_model=LikeResponse, response_model_exclude_none=True)
def like_without_key(
    db: DynamoDBService = Depends(get_dynamodb_service),
):
    """Answers a like with no key in the same shape as any other rejected like."""
    return like("", db)
