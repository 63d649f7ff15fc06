"""FastAPI dependencies.

The file store and settings are built once per app (see main.lifespan) and
kept on `app.state`; routes receive them through Depends instead of importing
module globals.

Usage in routes:
    from filedrop.dependencies import get_file_storage

    @router.get("/items")
    async def list_items(storage: FileStorageService = Depends(get_file_storage)):
        return await storage.list_files()
"""
from fastapi import Request

from filedrop.config import Settings
from filedrop.services.file_storage import FileStorageService


def get_file_storage(request: Request) -> FileStorageService:
    return request.app.state.file_storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_server_ip(request: Request) -> str:
    return request.app.state.local_ip
