"""Periodic expiry sweep.

Runs as an asyncio task within the FastAPI process. The app lifespan starts it
after the file store is open and stops it (waiting for an in-flight sweep)
before the shutdown clear.
"""
import asyncio
import logging
from typing import Optional

from filedrop.services.file_storage import FileStorageService

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Calls `delete_expired_files` every `interval_seconds` until stopped."""

    def __init__(self, storage: FileStorageService, interval_seconds: float = 60.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.storage = storage
        self.interval_seconds = interval_seconds
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Expiry sweeper is already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")

    async def stop(self) -> None:
        """Signal the loop to exit and wait until it has."""
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None

    async def sweep_once(self) -> int:
        """One sweep. Errors are logged, never raised, so the loop survives them."""
        try:
            return await self.storage.delete_expired_files()
        except Exception as e:
            logger.error(f"Error cleaning up expired files: {e}")
            return 0

    async def _run(self) -> None:
        logger.info(f"Expiry sweeper started (interval={self.interval_seconds}s)")
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                await self.sweep_once()
        logger.info("Expiry sweeper stopped")
