"""
Configuration constants and run settings for picsort.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from .exceptions import ConfigurationError

# --- File Type Definitions ---
JPEG_EXTS = {'.jpg', '.jpeg', '.jpe'}
RAW_EXTS = {'.cr2', '.cr3', '.nef', '.arw', '.orf', '.rw2', '.dng'}
OTHER_IMAGE_EXTS = {'.png', '.tif', '.tiff', '.heic', '.webp'}
IMAGE_EXTS = JPEG_EXTS | RAW_EXTS | OTHER_IMAGE_EXTS
VIDEO_EXTS = {'.mp4', '.mov', '.m4v', '.avi', '.mts', '.m2ts', '.3gp', '.mpg', '.mpeg'}

# Extension to media category; also the first segment under the destination root
IMAGE = 'image'
VIDEO = 'video'
EXT_TO_CATEGORY = {}
for ext in IMAGE_EXTS: EXT_TO_CATEGORY[ext] = IMAGE
for ext in VIDEO_EXTS: EXT_TO_CATEGORY[ext] = VIDEO

# --- Metadata Parsing ---
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]

# Oldest year accepted from a filename
MIN_YEAR = 1900

# --- Hashing & Performance ---
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading
DEFAULT_MIN_SIZE = 100 * 1024  # files smaller than this are ignored
DEFAULT_MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)

# --- Organization ---
DERIVED_NAME_PATTERN = "{category}-{stamp}{ext}"
DERIVED_STAMP_FORMAT = "%Y%m%d-%H%M%S"
LOG_FILENAME = "picsort.log"


@dataclass
class RunConfig:
    """
    Values consumed by a single run. Loading them (argparse, tests) is the
    caller's business.
    """
    sources: List[Path]
    dest_root: Path
    min_size: int = DEFAULT_MIN_SIZE
    dry_run: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    recursive: bool = True
    keep_names: bool = False
    report_csv: Optional[Path] = None
    skip_dirs: Set[Path] = field(default_factory=set)

    def validate(self):
        if not self.sources:
            raise ConfigurationError("At least one source directory is required.")
        for src in self.sources:
            if not Path(src).is_dir():
                raise ConfigurationError(f"Source is not a readable directory: {src}")
        if self.dest_root is None:
            raise ConfigurationError("A destination directory is required.")
        dest = Path(self.dest_root)
        if dest.exists() and not dest.is_dir():
            raise ConfigurationError(f"Destination exists but is not a directory: {dest}")
        if dest.is_dir() and not os.access(dest, os.R_OK | os.X_OK):
            raise ConfigurationError(f"Destination is not readable: {dest}")
        if self.min_size < 0:
            raise ConfigurationError(f"Minimum size must not be negative (got {self.min_size}).")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1 (got {self.max_workers}).")
