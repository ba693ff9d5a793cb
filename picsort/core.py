import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from tqdm import tqdm

from .config import RunConfig
from .metadata.dates import DateResolver
from .models import DateSource, FileOutcome, FileRecord, Outcome, PhaseSummary
from .organization.mover import FileMover
from .organization.planner import DestinationClaims, plan_destination
from .registry import DuplicateRegistry
from .reporting import ReportGenerator
from .scanning.filesystem import media_category, walk_files
from .scanning.hasher import FileHasher

FileTask = Callable[[Path, os.stat_result], FileOutcome]


class Dispatcher:
    """
    Walks a root and runs one task per qualifying file on a thread pool.

    Every phase joins all of its tasks before returning, so a registry filled
    by prescan_destination() is complete before ingest_source() looks at it.
    """

    def __init__(self,
                 registry: DuplicateRegistry,
                 settings: RunConfig,
                 hasher: Optional[FileHasher] = None,
                 resolver: Optional[DateResolver] = None,
                 mover: Optional[FileMover] = None,
                 claims: Optional[DestinationClaims] = None):
        self.registry = registry
        self.settings = settings
        self.hasher = hasher or FileHasher()
        self.resolver = resolver or DateResolver()
        self.mover = mover or FileMover()
        self.claims = claims or DestinationClaims()

    def qualifies(self, path: Path, st: os.stat_result) -> bool:
        if media_category(path) is None:
            return False
        return st.st_size >= self.settings.min_size

    # --- Phases ---

    def prescan_destination(self) -> PhaseSummary:
        """
        Registers files already in the destination tree so that new files
        matching them are reported as duplicates. Nothing is copied.
        """
        dest_root = Path(self.settings.dest_root)
        if not dest_root.is_dir():
            logging.info(f"Destination {dest_root} does not exist yet; nothing to pre-scan.")
            return PhaseSummary("destination", dest_root)

        logging.info(f"Scanning destination: {dest_root}")
        return self._run_phase("destination", dest_root, self._register_existing,
                               skip_dirs=self.settings.skip_dirs)

    def ingest_source(self, src_root: Path) -> PhaseSummary:
        src_root = Path(src_root).resolve()
        logging.info(f"Scanning source: {src_root}")
        skip_dirs = {Path(d).resolve() for d in self.settings.skip_dirs}
        dest_root = Path(self.settings.dest_root).resolve()
        if dest_root != src_root:
            # Destination nested inside a source must not be re-ingested
            skip_dirs.add(dest_root)
        return self._run_phase("source", src_root, self._ingest_file, skip_dirs=skip_dirs)

    def _run_phase(self, name: str, root: Path, task: FileTask, skip_dirs=None) -> PhaseSummary:
        summary = PhaseSummary(name, root)
        max_workers = self.settings.max_workers
        # Bounds in-flight tasks so a huge tree is not queued all at once
        gate = threading.BoundedSemaphore(max_workers * 2)

        futures = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            with tqdm(desc=f"Scanning {name}", unit="file") as progress:

                def task_done(_future):
                    gate.release()
                    progress.update()

                for path, st in walk_files(root, recursive=self.settings.recursive, skip_dirs=skip_dirs):
                    if not self.qualifies(path, st):
                        summary.skipped += 1
                        continue

                    gate.acquire()
                    future = executor.submit(self._guarded, task, path, st)
                    future.add_done_callback(task_done)
                    futures.append(future)

                for future in as_completed(futures):
                    summary.outcomes.append(future.result())

        counts = summary.counts()
        logging.info(
            f"Finished {name} {root}: {len(summary.outcomes)} files, "
            + ", ".join(f"{status.value}={counts[status]}" for status in Outcome if counts[status])
        )
        return summary

    def _guarded(self, task: FileTask, path: Path, st: os.stat_result) -> FileOutcome:
        try:
            return task(path, st)
        except Exception as e:
            logging.error(f"Failed to process {path}: {e}")
            return FileOutcome(path, Outcome.FAILED, error=str(e))

    # --- Per-file tasks ---

    def _register_existing(self, path: Path, st: os.stat_result) -> FileOutcome:
        fingerprint = self.hasher.fingerprint(path)
        candidate = FileRecord(
            destination_path=path,
            resolved_date=datetime.fromtimestamp(st.st_mtime),
            date_source=DateSource.FILE_MODIFICATION_TIME,
        )
        registration = self.registry.register_if_absent(fingerprint, candidate)
        if not registration.accepted:
            logging.info(f"duplicate found in destination: {registration.record.destination_path} -> {path}")
            return FileOutcome(path, Outcome.DUPLICATE, fingerprint=fingerprint,
                               duplicate_of=registration.record)
        return FileOutcome(path, Outcome.REGISTERED, fingerprint=fingerprint, destination_path=path)

    def _ingest_file(self, path: Path, st: os.stat_result) -> FileOutcome:
        fingerprint = self.hasher.fingerprint(path)
        resolved = self.resolver.resolve(path, st)
        logging.debug(f"{path} [{resolved.timestamp}][{resolved.source.value}]")

        planned = plan_destination(
            self.settings.dest_root,
            media_category(path),
            resolved.timestamp,
            path.name,
            keep_name=self.settings.keep_names,
        )
        # Name clashes between different files get a numbered variant
        dest = self.claims.claim(planned)
        candidate = FileRecord(dest, resolved.timestamp, resolved.source)

        registration = self.registry.register_if_absent(fingerprint, candidate)
        if not registration.accepted:
            self.claims.release(dest)
            logging.info(f"duplicate found: {registration.record.destination_path} -> {path}")
            return FileOutcome(path, Outcome.DUPLICATE, fingerprint=fingerprint,
                               resolved=resolved, duplicate_of=registration.record)

        if self.settings.dry_run:
            logging.info(f"[DRY RUN] Copy {path} -> {dest}")
            return FileOutcome(path, Outcome.PLANNED, fingerprint=fingerprint,
                               destination_path=dest, resolved=resolved)

        timestamp = resolved.timestamp if resolved.source is DateSource.EXIF_METADATA else None
        self.mover.copy(path, dest, timestamp)
        logging.info(f"{path} -> {dest} [{resolved.timestamp}][{resolved.source.value}]")
        return FileOutcome(path, Outcome.COPIED, fingerprint=fingerprint,
                           destination_path=dest, resolved=resolved)


class PicsortApp:
    def __init__(self, settings: RunConfig):
        self.settings = settings

    def run(self) -> List[PhaseSummary]:
        """
        Executes a complete run.
        1. Validate settings (the only step allowed to abort the run)
        2. Pre-scan the destination into a fresh registry
        3. Ingest each source root in turn
        4. Report
        """
        self.settings.validate()

        summaries = []
        with DuplicateRegistry() as registry:
            dispatcher = Dispatcher(registry, self.settings)

            summaries.append(dispatcher.prescan_destination())
            for src_root in self.settings.sources:
                summaries.append(dispatcher.ingest_source(Path(src_root)))

            logging.info(f"Registry holds {len(registry)} unique files.")

        reporter = ReportGenerator()
        reporter.log_summary(summaries)
        if self.settings.report_csv:
            reporter.write_csv(summaries, self.settings.report_csv)

        return summaries
