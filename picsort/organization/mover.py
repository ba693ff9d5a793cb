import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from .. import config
from ..exceptions import FileOperationError


class FileMover:
    def __init__(self, chunk_size: int = config.HASH_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def copy(self, src: Path, dest: Path, timestamp: Optional[datetime] = None) -> Path:
        """
        Copies src to dest, creating missing parent folders.

        dest is opened for exclusive creation, so an existing file is never
        overwritten, even by a concurrent copy planned onto the same name.
        Source timestamps and permission bits are carried over; when timestamp
        is given it replaces both access and modification time of the copy.
        """
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create {dest.parent}: {e}") from e

        try:
            fdst = open(dest, 'xb')
        except FileExistsError as e:
            raise FileOperationError(f"Destination already exists: {dest}") from e
        except OSError as e:
            raise FileOperationError(f"Cannot create {dest}: {e}") from e

        try:
            with fdst, open(src, 'rb') as fsrc:
                shutil.copyfileobj(fsrc, fdst, self.chunk_size)
            shutil.copystat(src, dest)
            if timestamp is not None:
                ts = timestamp.timestamp()
                os.utime(dest, (ts, ts))
        except OSError as e:
            self._discard(dest)
            raise FileOperationError(f"Failed to copy {src} -> {dest}: {e}") from e

        return dest

    def _discard(self, dest: Path):
        try:
            dest.unlink()
        except OSError as e:
            logging.warning(f"Could not remove partial copy {dest}: {e}")
