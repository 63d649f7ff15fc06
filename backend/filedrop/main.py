"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from filedrop import __version__
from filedrop.config import Settings, settings as default_settings
from filedrop.exceptions import FileStoreError
from filedrop.services.cleanup import ExpirySweeper
from filedrop.services.file_storage import FileStorageService
from filedrop.services.network import get_local_ip

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the file store and start the expiry sweeper; undo both on shutdown."""
    app_settings: Settings = app.state.settings

    # Construction errors (directory, corrupt index) abort startup
    storage = FileStorageService(app_settings.FILE_STORAGE_PATH)
    app.state.file_storage = storage
    app.state.local_ip = get_local_ip()

    if app_settings.CLEAR_ON_STARTUP:
        try:
            await storage.clear_all_files()
        except FileStoreError as e:
            logger.warning(f"Failed to clear files on startup: {e}")

    sweeper = ExpirySweeper(storage, app_settings.CLEANUP_INTERVAL_SECONDS)
    sweeper.start()
    app.state.expiry_sweeper = sweeper

    yield

    # Cleanup
    await sweeper.stop()
    if app_settings.CLEAR_ON_SHUTDOWN:
        try:
            await storage.clear_all_files()
        except FileStoreError as e:
            logger.warning(f"Failed to clear files on shutdown: {e}")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the app. Pass `app_settings` to avoid the env-derived defaults."""
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="File Drop API",
        version=__version__,
        description="Share files across the local network. Uploads expire automatically.",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # CORS
    origins = [o.strip() for o in app_settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from filedrop.routes.files import router as files_router
    from filedrop.routes.info import router as info_router
    app.include_router(files_router)
    app.include_router(info_router)

    # Static UI last so it never shadows /api
    static_dir = Path(app_settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info(f"Static directory {static_dir} not found, serving API only")

    return app


app = create_app()
