import logging
import os
import stat
from pathlib import Path
from typing import Iterator, Optional, Set, Tuple

from .. import config


def walk_files(root: Path,
               recursive: bool = True,
               include_dirs: bool = False,
               skip_dirs: Optional[Set[Path]] = None) -> Iterator[Tuple[Path, os.stat_result]]:
    """
    Depth-first walker using os.scandir for speed.

    Yields (path, stat_result) pairs in a stable order. Symlinks are not
    followed. Directories are yielded only when include_dirs is set; anything
    listed in skip_dirs (or below it) is pruned.
    """
    skip_dirs = skip_dirs or set()
    stack = [Path(root)]
    while stack:
        current = stack.pop()
        if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
            continue

        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            logging.warning(f"Cannot list {current}: {e}")
            continue

        # Sort for stable traversal order
        entries.sort(key=lambda e: e.name.lower())

        dirs = []
        for entry in entries:
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError as e:
                logging.warning(f"Cannot stat {entry.path}: {e}")
                continue

            path = Path(entry.path)
            if stat.S_ISDIR(st.st_mode):
                if skip_dirs and path in skip_dirs:
                    continue
                if include_dirs:
                    yield path, st
                dirs.append(path)
            elif stat.S_ISREG(st.st_mode):
                yield path, st

        if recursive:
            # Reversed so we process A before Z
            for d in reversed(dirs):
                stack.append(d)


def media_category(path: Path) -> Optional[str]:
    """Returns 'image', 'video' or None for unsupported files."""
    if path.name.startswith("._"):
        # AppleDouble resource forks share the extension of the real file
        return None
    return config.EXT_TO_CATEGORY.get(path.suffix.lower())
