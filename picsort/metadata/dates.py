"""
Capture date resolution.

A file's date comes from the first strategy in a fixed-priority chain that
produces one:

  1. ExifDateStrategy          -- embedded EXIF date (images only)
  2. FilenameDateStrategy      -- a date spelled out in the file name
  3. ModificationTimeStrategy  -- filesystem mtime, always available
"""
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .. import config
from ..exceptions import DateUnresolvableError, MetadataExtractionError
from ..models import DateSource, ResolvedDate
from .extract import MetadataExtractor

# Separated dates first (07/14/2023, 14.07.2023), then plain digit runs
DIGIT_RUN = re.compile(r'\d{2}/\d{2}/\d{4}|\d{2}\.\d{2}\.\d{4}|\d+')


class DateStrategy:
    source: DateSource

    def attempt(self, path: Path, st: os.stat_result) -> Optional[datetime]:
        raise NotImplementedError


class ExifDateStrategy(DateStrategy):
    source = DateSource.EXIF_METADATA

    def __init__(self, extractor: Optional[MetadataExtractor] = None):
        self.extractor = extractor or MetadataExtractor()

    def attempt(self, path: Path, st: os.stat_result) -> Optional[datetime]:
        if config.EXT_TO_CATEGORY.get(path.suffix.lower()) != config.IMAGE:
            return None
        try:
            dt = self.extractor.get_creation_date(path)
        except (MetadataExtractionError, OSError) as e:
            logging.debug(f"EXIF date unavailable for {path}: {e}")
            return None
        if dt is None or dt == datetime.min:
            return None
        return dt


class FilenameDateStrategy(DateStrategy):
    source = DateSource.FILENAME_PATTERN

    def __init__(self, today: Callable[[], datetime] = datetime.now):
        self.today = today

    def attempt(self, path: Path, st: os.stat_result) -> Optional[datetime]:
        return parse_filename_date(path.name, max_year=self.today().year)


class ModificationTimeStrategy(DateStrategy):
    source = DateSource.FILE_MODIFICATION_TIME

    def attempt(self, path: Path, st: os.stat_result) -> Optional[datetime]:
        return datetime.fromtimestamp(st.st_mtime)


def parse_filename_date(name: str, max_year: int) -> Optional[datetime]:
    """
    Returns the first date spelled out in a file name.

    Recognised runs:
      - 8 digits             -> YYYYMMDD
      - 10 chars with '/'    -> MM/DD/YYYY
      - 10 chars with '.'    -> DD.MM.YYYY

    Runs that are not a real calendar date or fall outside
    [MIN_YEAR, max_year] are ignored.
    """
    for run in DIGIT_RUN.findall(name):
        fmt = None
        if len(run) == 8 and run.isdigit():
            fmt = "%Y%m%d"
        elif len(run) == 10 and '/' in run:
            fmt = "%m/%d/%Y"
        elif len(run) == 10 and '.' in run:
            fmt = "%d.%m.%Y"
        if fmt is None:
            continue

        try:
            dt = datetime.strptime(run, fmt)
        except ValueError:
            continue

        if config.MIN_YEAR <= dt.year <= max_year:
            logging.debug(f"{name}: date {dt:%Y-%m-%d} from '{run}'")
            return dt
    return None


def default_strategies(extractor: Optional[MetadataExtractor] = None) -> List[DateStrategy]:
    return [
        ExifDateStrategy(extractor),
        FilenameDateStrategy(),
        ModificationTimeStrategy(),
    ]


class DateResolver:
    def __init__(self, strategies: Optional[Sequence[DateStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def resolve(self, path: Path, st: os.stat_result) -> ResolvedDate:
        """Tries each strategy in order and tags the date with the one that produced it."""
        for strategy in self.strategies:
            dt = strategy.attempt(path, st)
            if dt is not None:
                return ResolvedDate(dt, strategy.source)
        raise DateUnresolvableError(f"No date strategy produced a date for {path}")
