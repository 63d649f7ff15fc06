"""File storage: uploaded blobs on local disk plus a JSON metadata index.

Each blob is stored as `<storage dir>/<id>` with no extension. The records
live in `metadata.json` in the same directory; that index is the source of
truth for listing and lookup, the directory listing is never consulted.

Mutations (save, delete, clear, expiry sweep) hold the write lock for their
whole duration, including streaming an upload to disk, so one slow upload
holds up every other mutation. Reads (list, get) share the read lock.
"""
import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Optional

import aiofiles
import aiofiles.os
from pydantic import TypeAdapter, ValidationError

from filedrop.exceptions import (
    BlobWriteError,
    DirectoryInitError,
    IndexCorruptError,
    IndexPersistError,
    NotFoundError,
)
from filedrop.schemas.file import FileRecord
from filedrop.services.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
DEFAULT_EXPIRATION_HOURS = 24
# About a century; keeps expires_at well inside datetime range.
MAX_EXPIRATION_HOURS = 24 * 365 * 100
DEFAULT_CHUNK_SIZE = 1024 * 1024

# Older index files may hold `null` instead of an empty list.
_index_adapter = TypeAdapter(Optional[list[FileRecord]])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_file_id() -> str:
    """16 bytes from the OS CSPRNG as 32 lowercase hex chars."""
    return secrets.token_hex(16)


def normalize_expiration_hours(raw, default: int = DEFAULT_EXPIRATION_HOURS) -> int:
    """Parse a client-supplied TTL in hours.

    Missing, non-integer, non-positive and over-limit values fall back
    to `default`.
    """
    if raw is None or isinstance(raw, bool):
        return default
    try:
        hours = int(str(raw).strip())
    except ValueError:
        return default
    return hours if 0 < hours <= MAX_EXPIRATION_HOURS else default


async def iter_upload_chunks(upload, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield the content of an UploadFile (anything with async `read(n)`)."""
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


class FileStorageService:
    """Owns the storage directory and the metadata index."""

    def __init__(self, directory: str | Path):
        self.base_path = Path(directory)
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryInitError(str(self.base_path), str(e)) from e

        self.metadata_path = self.base_path / METADATA_FILENAME
        self._files: list[FileRecord] = self._load_index()
        self._lock = ReadWriteLock()
        logger.info(f"Loaded {len(self._files)} file record(s) from {self.metadata_path}")

    def blob_path(self, file_id: str) -> Path:
        return self.base_path / file_id

    # ── Index I/O ────────────────────────────────────────────────────

    def _load_index(self) -> list[FileRecord]:
        try:
            raw = self.metadata_path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise IndexCorruptError(str(self.metadata_path), str(e)) from e

        try:
            return _index_adapter.validate_json(raw) or []
        except ValidationError as e:
            raise IndexCorruptError(str(self.metadata_path), str(e)) from e

    async def _write_index(self, records: list[FileRecord]) -> None:
        """Write to a temp file and move it into place."""
        data = _index_adapter.dump_json(records, by_alias=True, indent=2)
        tmp_path = self.metadata_path.with_name(METADATA_FILENAME + ".tmp")
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp_path, self.metadata_path)

    async def _persist(self) -> None:
        """Write the current index.

        A cancelled caller still waits for the write to finish before
        CancelledError is raised, so the file on disk and the temp file are
        settled by the time the caller rolls anything back.
        """
        write = asyncio.ensure_future(self._write_index(list(self._files)))
        cancelled = False
        while not write.done():
            try:
                await asyncio.wait({write})
            except asyncio.CancelledError:
                cancelled = True

        error = write.exception()
        if cancelled:
            if error is not None:
                logger.warning(f"Metadata write failed during cancellation: {error}")
            raise asyncio.CancelledError()
        if isinstance(error, OSError):
            raise IndexPersistError(f"Failed to write metadata: {error}") from error
        if error is not None:
            raise error

    async def _remove_blob(self, file_id: str) -> None:
        """Best-effort removal. A missing blob is not an error."""
        try:
            await aiofiles.os.remove(self.blob_path(file_id))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove blob {file_id}: {e}")

    def _find(self, file_id: str) -> Optional[FileRecord]:
        for record in self._files:
            if record.id == file_id:
                return record
        return None

    # ── Operations ───────────────────────────────────────────────────

    async def save_file(
        self,
        name: str,
        chunks: AsyncIterable[bytes],
        ttl_hours: int = DEFAULT_EXPIRATION_HOURS,
    ) -> FileRecord:
        """Stream `chunks` to a new blob and add its record to the index.

        Either both the blob and the record end up stored, or neither does.
        """
        if not 0 < ttl_hours <= MAX_EXPIRATION_HOURS:
            raise ValueError(f"ttl_hours must be between 1 and {MAX_EXPIRATION_HOURS}")

        async with self._lock.write():
            file_id = generate_file_id()
            path = self.blob_path(file_id)
            size = 0
            try:
                async with aiofiles.open(path, "wb") as f:
                    async for chunk in chunks:
                        await f.write(chunk)
                        size += len(chunk)
            except asyncio.CancelledError:
                logger.info(f"Upload of {name!r} cancelled after {size} bytes, removing {file_id}")
                await self._remove_blob(file_id)
                raise
            except Exception as e:
                await self._remove_blob(file_id)
                raise BlobWriteError(f"Failed to write file: {e}") from e

            try:
                now = _utcnow()
                record = FileRecord(
                    id=file_id,
                    name=name,
                    size=size,
                    uploaded_at=now,
                    expires_at=now + timedelta(hours=ttl_hours),
                )
            except Exception as e:
                await self._remove_blob(file_id)
                raise BlobWriteError(f"Failed to record file: {e}") from e

            self._files.append(record)
            try:
                await self._persist()
            except IndexPersistError:
                self._files.pop()
                await self._remove_blob(file_id)
                raise
            except asyncio.CancelledError:
                # The write may have landed with the record in it; write the index again.
                logger.info(f"Upload of {name!r} cancelled while saving metadata, removing {file_id}")
                self._files.pop()
                await self._remove_blob(file_id)
                try:
                    await self._persist()
                except IndexPersistError as e:
                    logger.warning(f"Metadata may still list cancelled upload {file_id}: {e}")
                raise

        logger.info(f"Saved file {file_id} ({name!r}, {size} bytes, expires {record.expires_at.isoformat()})")
        return record

    async def list_files(self) -> list[FileRecord]:
        """Snapshot of all records, most recent upload first."""
        async with self._lock.read():
            # Reversed first so that on equal timestamps the later upload still wins.
            return sorted(reversed(self._files), key=lambda r: r.uploaded_at, reverse=True)

    async def get_file(self, file_id: str) -> tuple[FileRecord, Path]:
        """Record and blob path for `file_id`. The blob is checked to exist."""
        async with self._lock.read():
            record = self._find(file_id)
            if record is None:
                raise NotFoundError(file_id)
            path = self.blob_path(file_id)
            if not await aiofiles.os.path.isfile(path):
                raise NotFoundError(file_id, "file not found on disk")
            return record, path

    async def delete_file(self, file_id: str) -> None:
        """Remove one blob and its record.

        If the index cannot be written afterwards the record stays removed
        in memory and IndexPersistError is raised; the file on disk is then
        stale until the next successful write.
        """
        async with self._lock.write():
            if self._find(file_id) is None:
                raise NotFoundError(file_id)

            await self._remove_blob(file_id)
            self._files = [r for r in self._files if r.id != file_id]

            try:
                await self._persist()
            except IndexPersistError as e:
                logger.warning(f"Removed file {file_id} but metadata is stale: {e}")
                raise

        logger.info(f"Deleted file {file_id}")

    async def clear_all_files(self) -> int:
        """Remove every stored file. Returns how many records were cleared."""
        async with self._lock.write():
            cleared = len(self._files)
            for record in self._files:
                await self._remove_blob(record.id)
            self._files = []
            await self._persist()

        if cleared:
            logger.info(f"Cleared {cleared} file(s)")
        return cleared

    async def delete_expired_files(self) -> int:
        """Remove records whose expiry is at or before now. Returns the count."""
        async with self._lock.write():
            now = _utcnow()
            active: list[FileRecord] = []
            expired = 0
            for record in self._files:
                if record.expires_at <= now:
                    await self._remove_blob(record.id)
                    expired += 1
                else:
                    active.append(record)

            self._files = active
            await self._persist()

        if expired:
            logger.info(f"Removed {expired} expired file(s)")
        return expired
