import threading
from datetime import datetime
from pathlib import Path
from typing import Set

from .. import config


def plan_destination(root: Path,
                     category: str,
                     resolved_date: datetime,
                     original_name: str,
                     keep_name: bool = False) -> Path:
    """
    Calculates where a file belongs: root/category/<year>/<month>/<name>.

    Year and month are plain decimals (2022/3, not 2022/03). Unless keep_name
    is set, the name is derived from the category and the resolved timestamp,
    e.g. 'image-20220301-101500.jpg'.
    """
    folder = Path(root) / category / str(resolved_date.year) / str(resolved_date.month)
    if keep_name:
        return folder / original_name

    new_name = config.DERIVED_NAME_PATTERN.format(
        category=category,
        stamp=resolved_date.strftime(config.DERIVED_STAMP_FORMAT),
        ext=Path(original_name).suffix.lower(),
    )
    return folder / new_name


def numbered_variant(path: Path, n: int) -> Path:
    """'image-20220301-101500.jpg' -> 'image-20220301-101500-2.jpg' for n=2."""
    return path.with_name(f"{path.stem}-{n}{path.suffix}")


class DestinationClaims:
    """
    Hands out destination paths that no other file of the run uses.

    A planned path already taken (claimed earlier in the run, or present on
    disk) is replaced by its first free numbered variant. A claim is held
    until released, so two different files never share a name.
    """

    def __init__(self):
        self._claimed: Set[Path] = set()
        self._lock = threading.Lock()

    def claim(self, planned: Path) -> Path:
        with self._lock:
            candidate = planned
            n = 0
            while candidate in self._claimed or candidate.exists():
                n += 1
                candidate = numbered_variant(planned, n)
            self._claimed.add(candidate)
            return candidate

    def release(self, path: Path):
        with self._lock:
            self._claimed.discard(path)
