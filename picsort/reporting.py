import csv
import logging
from pathlib import Path
from typing import Iterable, List

from .models import FileOutcome, Outcome, PhaseSummary


class ReportGenerator:
    headers = [
        "Phase",
        "Source Path",
        "Status",
        "Fingerprint",
        "Resolved Date",
        "Date Source",
        "Destination Path",
        "Duplicate Of",
        "Notes",
    ]

    def log_summary(self, summaries: Iterable[PhaseSummary]):
        totals = {status: 0 for status in Outcome}
        for summary in summaries:
            counts = summary.counts()
            for status in Outcome:
                totals[status] += counts[status]
            logging.info(
                f"{summary.name} {summary.root}: "
                f"{len(summary.outcomes)} processed, {summary.skipped} skipped"
            )
            for outcome in summary.by_status(Outcome.FAILED):
                logging.warning(f"  failed: {outcome.source_path}: {outcome.error}")

        logging.info(
            "Run complete. "
            + ", ".join(f"{status.value}: {count}" for status, count in totals.items())
        )

    def write_csv(self, summaries: Iterable[PhaseSummary], output_csv: Path):
        """
        Writes one row per processed file, phases in run order, files sorted by path.
        """
        output_csv = Path(output_csv)
        output_csv.parent.mkdir(parents=True, exist_ok=True)

        rows = 0
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(self.headers)
            for summary in summaries:
                for outcome in sorted(summary.outcomes, key=lambda o: str(o.source_path)):
                    writer.writerow(self._row(summary, outcome))
                    rows += 1

        logging.info(f"Report written: {output_csv} ({rows} rows)")

    def _row(self, summary: PhaseSummary, outcome: FileOutcome) -> List[str]:
        resolved_date = ""
        date_source = ""
        if outcome.resolved:
            resolved_date = outcome.resolved.timestamp.isoformat(sep=" ")
            date_source = outcome.resolved.source.value

        duplicate_of = ""
        notes = ""
        if outcome.duplicate_of:
            duplicate_of = str(outcome.duplicate_of.destination_path)
            notes = f"Duplicate of file dated {outcome.duplicate_of.resolved_date:%Y-%m-%d}"
        elif outcome.error:
            notes = outcome.error

        return [
            summary.name,
            str(outcome.source_path),
            outcome.status.value,
            outcome.fingerprint or "",
            resolved_date,
            date_source,
            str(outcome.destination_path) if outcome.destination_path else "",
            duplicate_of,
            notes,
        ]
