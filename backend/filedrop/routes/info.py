"""Server info and health routes."""
from fastapi import APIRouter, Depends

from filedrop.config import Settings
from filedrop.dependencies import get_file_storage, get_server_ip, get_settings
from filedrop.schemas.file import HealthResponse, InfoResponse
from filedrop.services.file_storage import FileStorageService

router = APIRouter(prefix="/api", tags=["info"])


@router.get("/info", response_model=InfoResponse)
async def get_info(
    local_ip: str = Depends(get_server_ip),
    settings: Settings = Depends(get_settings),
):
    """Address other devices on the network should use."""
    return InfoResponse(ip=local_ip, port=settings.API_PORT)


@router.get("/health", response_model=HealthResponse)
async def health_check(storage: FileStorageService = Depends(get_file_storage)):
    files = await storage.list_files()
    return HealthResponse(status="ok", files=len(files))
