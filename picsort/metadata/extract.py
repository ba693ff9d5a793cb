import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import exifread

from .. import config
from ..exceptions import MetadataExtractionError


class MetadataExtractor:
    """
    Reads the capture date embedded in image files using 'exifread'.
    """

    def get_creation_date(self, path: Path) -> Optional[datetime]:
        """
        Returns the EXIF creation date of an image, or None when the file
        carries no usable date.

        Raises:
            MetadataExtractionError: the file could not be opened or decoded.
        """
        try:
            with path.open('rb') as f:
                # details=False speeds up processing significantly
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            raise MetadataExtractionError(f"ExifRead failed for {path}: {e}") from e

        if not tags:
            logging.debug(f"No EXIF tags found for {path}")
            return None

        dt = self._parse_exif_date(tags)
        if dt is None:
            logging.debug(
                "EXIF tags present but no datetime found for %s (tags tried: %s)",
                path,
                ", ".join(config.DATE_TAGS),
            )
        return dt

    def _parse_exif_date(self, tags) -> Optional[datetime]:
        """Helper to parse standard EXIF date strings from exifread."""
        for tag in config.DATE_TAGS:
            if tag in tags:
                dt = parse_exif_datetime(str(tags[tag]))
                if dt:
                    return dt
        return None


def parse_exif_datetime(value: str) -> Optional[datetime]:
    # EXIF format is usually "YYYY:MM:DD HH:MM:SS"; cameras without a clock
    # write "0000:00:00 00:00:00", which fails here like any other junk.
    try:
        dt_str = value.strip().replace(':', '-', 2)
        return datetime.strptime(dt_str[:19], "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
