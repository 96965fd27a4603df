from __future__ import annotations

import asyncio
import os
import shutil
import stat as stat_mod
from collections.abc import AsyncIterable, AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal, Optional

import aiofiles
import aiofiles.os
from pydantic import BaseModel

from ..domain.errors import (
    InvalidTargetError,
    IsDirectoryError,
    NotFoundError,
    RootDeletionError,
    StorageIOError,
)
from ..domain.paths import ROOT, basename, to_absolute
from ..logging_conf import get_logger

__all__ = ["CHUNK_SIZE", "StorageItem", "StorageEngine"]

logger = get_logger("service.storage")

CHUNK_SIZE = 64 * 1024


class StorageItem(BaseModel):
    """A file or folder under the storage root, computed fresh on every call."""

    name: str
    kind: Literal["file", "folder"]
    path: str  # canonical path relative to the root
    size: Optional[int] = None  # files only
    last_modified: datetime


def _item_from_stat(path: str, st: os.stat_result) -> StorageItem:
    is_dir = stat_mod.S_ISDIR(st.st_mode)
    return StorageItem(
        name=basename(path),
        kind="folder" if is_dir else "file",
        path=path,
        size=None if is_dir else st.st_size,
        last_modified=datetime.fromtimestamp(st.st_mtime, UTC),
    )


def _join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


class StorageEngine:
    """Filesystem operations on canonical paths under a single root.

    Callers must have authorized the path already; nothing here re-checks scope.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def absolute(self, path: str) -> Path:
        return to_absolute(path, self.root)

    async def ensure_root(self) -> None:
        await aiofiles.os.makedirs(self.root, exist_ok=True)

    # ------------------------
    # Queries
    # ------------------------

    async def stat(self, path: str) -> Optional[StorageItem]:
        try:
            st = await aiofiles.os.stat(self.absolute(path))
        except (FileNotFoundError, NotADirectoryError):
            return None
        return _item_from_stat(path, st)

    async def list(self, path: str) -> list[StorageItem]:
        """List a directory: folders first, then files, each sorted by name.

        A missing directory is created and listed as empty.
        """
        target = self.absolute(path)
        try:
            await aiofiles.os.makedirs(target, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as e:
            raise InvalidTargetError(f"not a directory: {path or '/'}") from e
        except OSError as e:
            raise StorageIOError(f"cannot list {path or '/'}: {e.strerror}") from e

        items = await asyncio.to_thread(self._scan, target, path)
        items.sort(key=lambda it: (it.kind != "folder", it.name))
        return items

    @staticmethod
    def _scan(target: Path, path: str) -> list[StorageItem]:
        items: list[StorageItem] = []
        with os.scandir(target) as it:
            for entry in it:
                try:
                    st = entry.stat()
                except FileNotFoundError:
                    continue  # removed while listing
                items.append(_item_from_stat(_join(path, entry.name), st))
        return items

    # ------------------------
    # Read
    # ------------------------

    async def open_read(self, path: str) -> tuple[AsyncIterator[bytes], int]:
        """Return a chunk iterator over a file and its size.

        The file is opened when iteration starts and closed when it ends or
        the iterator is closed.
        """
        item = await self.stat(path)
        if item is None or item.kind != "file":
            raise NotFoundError(f"no such file: {path or '/'}")
        return self._iter_file(self.absolute(path)), item.size or 0

    @staticmethod
    async def _iter_file(target: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(target, "rb") as fh:
            while True:
                chunk = await fh.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    # ------------------------
    # Write
    # ------------------------

    async def write(self, path: str, chunks: AsyncIterable[bytes]) -> int:
        """Stream `chunks` into the file at `path`, creating parent directories.

        Returns the number of bytes written. A failure mid-stream leaves the
        partial file in place.
        """
        if path == ROOT:
            raise InvalidTargetError("the storage root is not a writable file")
        target = self.absolute(path)
        if await aiofiles.os.path.isdir(target):
            raise IsDirectoryError(f"cannot overwrite a directory: {path}")

        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as e:
            raise InvalidTargetError(f"a parent of {path} is a file") from e
        except OSError as e:
            raise StorageIOError(f"cannot create parent directories for {path}: {e.strerror}") from e

        size = 0
        try:
            async with aiofiles.open(target, "wb") as fh:
                async for chunk in chunks:
                    await fh.write(chunk)
                    size += len(chunk)
        except IsADirectoryError as e:
            raise IsDirectoryError(f"cannot overwrite a directory: {path}") from e
        except NotADirectoryError as e:
            raise InvalidTargetError(f"a parent of {path} is a file") from e
        except OSError as e:
            raise StorageIOError(f"write failed for {path}: {e.strerror}") from e

        logger.info("storage.write", extra={"event": "storage_write", "path": path, "size": size})
        return size

    # ------------------------
    # Delete
    # ------------------------

    async def delete(self, path: str) -> None:
        """Remove a file or folder, then prune ancestors left empty.

        Raises:
            RootDeletionError: for the storage root.
            NotFoundError: if nothing exists at `path`.
        """
        if path == ROOT:
            raise RootDeletionError("the storage root cannot be deleted")
        target = self.absolute(path)

        try:
            st = await aiofiles.os.stat(target)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"no such file or folder: {path}") from e

        try:
            if stat_mod.S_ISDIR(st.st_mode):
                await asyncio.to_thread(shutil.rmtree, target)
            else:
                await aiofiles.os.remove(target)
        except FileNotFoundError as e:
            raise NotFoundError(f"no such file or folder: {path}") from e
        except OSError as e:
            raise StorageIOError(f"delete failed for {path}: {e.strerror}") from e

        logger.info("storage.delete", extra={"event": "storage_delete", "path": path})
        await self._prune_empty_parents(target.parent)

    async def _prune_empty_parents(self, directory: Path) -> None:
        """Remove empty directories from `directory` upward, stopping below the root.

        Best effort: a non-empty or unremovable directory ends the walk, and a
        directory that is already gone is skipped.
        """
        current = directory
        while current != self.root and self.root in current.parents:
            try:
                await aiofiles.os.rmdir(current)
            except FileNotFoundError:
                pass
            except OSError:
                break
            else:
                logger.info(
                    "storage.prune",
                    extra={"event": "storage_prune", "dir": current.relative_to(self.root).as_posix()},
                )
            current = current.parent
