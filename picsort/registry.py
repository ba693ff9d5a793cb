"""
Fingerprint -> FileRecord map shared by every task of a run.
"""
import threading
from typing import Dict, List, Optional, Tuple

from .exceptions import RegistryClosedError
from .models import FileRecord, Registration


class DuplicateRegistry:
    """
    Keeps the first record accepted for each fingerprint.

    register_if_absent() is the only writer: the membership check and the
    insert run under one lock, so for any fingerprint exactly one caller is
    ever accepted. Entries are never replaced or removed until close().
    """

    def __init__(self):
        self._records: Dict[str, FileRecord] = {}
        self._lock = threading.Lock()
        self._closed = False

    def register_if_absent(self, fingerprint: str, record: FileRecord) -> Registration:
        with self._lock:
            if self._closed:
                raise RegistryClosedError("Duplicate registry is closed.")
            existing = self._records.get(fingerprint)
            if existing is not None:
                return Registration(accepted=False, record=existing)
            self._records[fingerprint] = record
            return Registration(accepted=True, record=record)

    def lookup(self, fingerprint: str) -> Optional[FileRecord]:
        # Single dict read; records are immutable once stored
        return self._records.get(fingerprint)

    def records(self) -> List[Tuple[str, FileRecord]]:
        with self._lock:
            return list(self._records.items())

    def close(self):
        with self._lock:
            self._records.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
