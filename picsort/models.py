from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional


class DateSource(Enum):
    EXIF_METADATA = "Exif"
    FILENAME_PATTERN = "Filename"
    FILE_MODIFICATION_TIME = "Last modified"


@dataclass(frozen=True)
class ResolvedDate:
    timestamp: datetime
    source: DateSource


@dataclass(frozen=True)
class FileRecord:
    """
    Canonical record kept by the registry for one fingerprint.
    """
    destination_path: Path
    resolved_date: datetime
    date_source: DateSource


@dataclass(frozen=True)
class Registration:
    accepted: bool
    record: FileRecord  # the candidate if accepted, else the existing winner


class Outcome(Enum):
    REGISTERED = "Registered"   # existing destination file
    COPIED = "Copied"
    PLANNED = "Planned (dry run)"
    DUPLICATE = "Duplicate"
    FAILED = "Failed"


@dataclass
class FileOutcome:
    source_path: Path
    status: Outcome
    fingerprint: Optional[str] = None
    destination_path: Optional[Path] = None
    resolved: Optional[ResolvedDate] = None
    duplicate_of: Optional[FileRecord] = None
    error: Optional[str] = None


@dataclass
class PhaseSummary:
    """
    Result of one walk-and-process pass over a root.
    """
    name: str
    root: Path
    outcomes: List[FileOutcome] = field(default_factory=list)
    skipped: int = 0

    def counts(self) -> Counter:
        return Counter(o.status for o in self.outcomes)

    def by_status(self, status: Outcome) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.status is status]
