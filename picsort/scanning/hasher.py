import hashlib
from pathlib import Path

from .. import config
from ..exceptions import FileHashError


class FileHasher:
    def __init__(self, chunk_size: int = config.HASH_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def fingerprint(self, path: Path) -> str:
        """
        Computes the content fingerprint of a file.

        The whole file is streamed through MD5 in fixed-size chunks, so
        identical bytes always give the same 32-character hex digest no matter
        the name, location or timestamps of the file.
        """
        h = hashlib.md5(usedforsecurity=False)
        try:
            with open(path, 'rb') as f:
                while chunk := f.read(self.chunk_size):
                    h.update(chunk)
        except OSError as e:
            raise FileHashError(f"Cannot read {path}: {e}") from e
        return h.hexdigest()
