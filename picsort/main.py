import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import config
from .config import RunConfig
from .core import PicsortApp
from .exceptions import ConfigurationError


def setup_logging(log_dir: Optional[Path], verbose: bool):
    """Sets up logging to the console and, when given, a file in log_dir."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: list = [logging.StreamHandler(sys.stdout)]
    log_error = None
    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_dir / config.LOG_FILENAME, encoding="utf-8"))
        except OSError as e:
            log_error = e

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # exifread logs "File format not recognized" for every non-image it is handed
    logging.getLogger("exifread").setLevel(logging.ERROR)

    if log_error is not None:
        logging.warning(f"Logging to console only, cannot write log file in {log_dir}: {log_error}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="picsort",
        description="Sort photos and videos into DEST/<image|video>/<year>/<month>, skipping exact duplicates."
    )

    p.add_argument("-i", "--input", dest="inputs", type=Path, action="append", required=True,
                   help="Input directory to scan (repeatable)")
    p.add_argument("-o", "--output", type=Path, required=True, help="Destination library root")

    p.add_argument("--minsize", type=int, default=config.DEFAULT_MIN_SIZE,
                   help=f"Ignore files smaller than this many bytes (default: {config.DEFAULT_MIN_SIZE})")
    p.add_argument("--dry-run", action="store_true", help="Simulate actions without modifying disk")
    p.add_argument("--max-workers", type=int, default=config.DEFAULT_MAX_WORKERS,
                   help=f"Number of parallel file workers (default: {config.DEFAULT_MAX_WORKERS})")
    p.add_argument("--keep-names", action="store_true",
                   help="Keep original file names instead of deriving them from the capture date")
    p.add_argument("--no-recursive", dest="recursive", action="store_false",
                   help="Only scan the top level of each input directory")
    p.add_argument("--report-csv", type=Path, default=None, help="Write a per-file report CSV to this path")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    dest_root = args.output.resolve()
    settings = RunConfig(
        sources=[src.resolve() for src in args.inputs],
        dest_root=dest_root,
        min_size=args.minsize,
        dry_run=args.dry_run,
        max_workers=args.max_workers,
        recursive=args.recursive,
        keep_names=args.keep_names,
        report_csv=args.report_csv,
    )

    log_dir = None if args.dry_run or (dest_root.exists() and not dest_root.is_dir()) else dest_root
    setup_logging(log_dir, args.verbose)

    logging.info("=== picsort started ===")
    for src in settings.sources:
        logging.info(f"Source: {src}")
    logging.info(f"Dest:   {dest_root}")

    try:
        PicsortApp(settings).run()
    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(2)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during run.")
        sys.exit(1)

    logging.info("Done.")


if __name__ == "__main__":
    main()
