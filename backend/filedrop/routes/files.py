"""Files API routes."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from filedrop.config import Settings
from filedrop.dependencies import get_file_storage, get_settings
from filedrop.exceptions import FileStoreError, IndexPersistError, NotFoundError
from filedrop.schemas.file import FileRecord, FilesResponse
from filedrop.services.file_storage import (
    FileStorageService,
    iter_upload_chunks,
    normalize_expiration_hours,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])


@router.post("/upload", response_model=FileRecord)
async def upload_file(
    request: Request,
    storage: FileStorageService = Depends(get_file_storage),
    settings: Settings = Depends(get_settings),
):
    """Upload a multipart `file` field.

    `expirationHours` falls back to the default when missing or invalid.
    """
    async with request.form() as form:
        file = form.get("file")
        # A plain text field under "file" is as unreadable as a missing one.
        if not isinstance(file, StarletteUploadFile):
            raise HTTPException(status_code=400, detail="Failed to read file")

        ttl_hours = normalize_expiration_hours(
            form.get("expirationHours"), default=settings.DEFAULT_EXPIRATION_HOURS
        )
        name = file.filename or "unnamed"
        try:
            return await storage.save_file(
                name,
                iter_upload_chunks(file, settings.UPLOAD_CHUNK_SIZE),
                ttl_hours,
            )
        except FileStoreError as e:
            logger.error(f"Failed to save upload {name!r}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save file")


@router.get("/files", response_model=FilesResponse)
async def list_files(storage: FileStorageService = Depends(get_file_storage)):
    """List stored files, most recent first."""
    return FilesResponse(files=await storage.list_files())


@router.get("/download/{file_id}")
async def download_file(
    file_id: str,
    storage: FileStorageService = Depends(get_file_storage),
):
    """Download a file by ID."""
    try:
        record, path = await storage.get_file(file_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(
        path=path,
        filename=record.name,
        media_type="application/octet-stream",
    )


@router.delete("/delete/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    storage: FileStorageService = Depends(get_file_storage),
):
    """Delete a file and its record."""
    try:
        await storage.delete_file(file_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except IndexPersistError as e:
        logger.error(f"Failed to delete file {file_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete file")

    return Response(status_code=204)
