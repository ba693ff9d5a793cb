import os
from datetime import datetime
from pathlib import Path

import pytest

from picsort.config import RunConfig
from picsort.core import Dispatcher, PicsortApp
from picsort.exceptions import ConfigurationError
from picsort.models import DateSource, Outcome
from picsort.registry import DuplicateRegistry
from picsort.scanning.hasher import FileHasher

from conftest import write_jpeg


def copied_files(root: Path):
    return sorted(p for p in root.rglob("*") if p.is_file())


def test_end_to_end_duplicate_is_not_copied(settings, src, dest):
    photo = write_jpeg(src / "photo.jpg", datetime(2022, 3, 1, 10, 15, 0))
    (src / "photo_copy.jpg").write_bytes(photo.read_bytes())

    summaries = PicsortApp(settings).run()

    files = copied_files(dest)
    assert len(files) == 1
    assert files[0].parent == dest / "image" / "2022" / "3"
    # EXIF dates are stamped onto the copy
    assert files[0].stat().st_mtime == pytest.approx(datetime(2022, 3, 1, 10, 15, 0).timestamp())

    source_phase = summaries[-1]
    counts = source_phase.counts()
    assert counts[Outcome.COPIED] == 1
    assert counts[Outcome.DUPLICATE] == 1
    [dup] = source_phase.by_status(Outcome.DUPLICATE)
    assert dup.duplicate_of.destination_path == files[0]
    assert dup.duplicate_of.date_source is DateSource.EXIF_METADATA


def test_existing_destination_content_is_a_duplicate(settings, src, dest):
    existing = write_jpeg(dest / "image" / "2020" / "1" / "old.jpg", datetime(2020, 1, 5))
    (src / "again.jpg").write_bytes(existing.read_bytes())

    with DuplicateRegistry() as registry:
        dispatcher = Dispatcher(registry, settings)
        prescan = dispatcher.prescan_destination()
        ingest = dispatcher.ingest_source(src)

    assert prescan.counts()[Outcome.REGISTERED] == 1
    [outcome] = ingest.outcomes
    assert outcome.status is Outcome.DUPLICATE
    assert outcome.duplicate_of.destination_path == existing
    assert outcome.duplicate_of.date_source is DateSource.FILE_MODIFICATION_TIME
    assert copied_files(dest) == [existing]


def test_prescan_without_destination_is_empty(settings, dest):
    with DuplicateRegistry() as registry:
        summary = Dispatcher(registry, settings).prescan_destination()

    assert summary.outcomes == []
    assert not dest.exists()


def test_video_goes_to_video_tree_by_filename_date(settings, src, dest):
    (src / "IMG_20230714_120000.mp4").write_bytes(b"fake video")

    PicsortApp(settings).run()

    [copied] = copied_files(dest)
    assert copied.parent == dest / "video" / "2023" / "7"
    assert copied.name == "video-20230714-000000.mp4"


def test_keep_names_and_modification_time_fallback(settings, src, dest):
    clip = src / "snapshot.mp4"
    clip.write_bytes(b"fake video")
    mtime = datetime(2018, 9, 30, 7, 0, 0).timestamp()
    os.utime(clip, (mtime, mtime))
    settings.keep_names = True

    PicsortApp(settings).run()

    assert copied_files(dest) == [dest / "video" / "2018" / "9" / "snapshot.mp4"]


def test_dry_run_registers_but_does_not_copy(settings, src, dest):
    photo = write_jpeg(src / "a.jpg", datetime(2021, 6, 1))
    (src / "b.jpg").write_bytes(photo.read_bytes())
    settings.dry_run = True

    summaries = PicsortApp(settings).run()

    counts = summaries[-1].counts()
    assert counts[Outcome.PLANNED] == 1
    assert counts[Outcome.DUPLICATE] == 1
    assert not dest.exists()


def test_small_and_unsupported_files_are_skipped(settings, src, dest):
    (src / "tiny.jpg").write_bytes(b"x")
    (src / "notes.txt").write_bytes(b"y" * 100)
    write_jpeg(src / "big.jpg", datetime(2021, 6, 1))
    settings.min_size = 50

    summaries = PicsortApp(settings).run()

    assert summaries[-1].skipped == 2
    assert summaries[-1].counts()[Outcome.COPIED] == 1


def test_failure_is_isolated(settings, src, dest, monkeypatch):
    write_jpeg(src / "bad.jpg", datetime(2021, 6, 1), color="blue")
    write_jpeg(src / "good.jpg", datetime(2021, 6, 2), color="green")

    original = FileHasher.fingerprint

    def flaky(self, path):
        if path.name == "bad.jpg":
            raise OSError("simulated read error")
        return original(self, path)

    monkeypatch.setattr(FileHasher, "fingerprint", flaky)

    summaries = PicsortApp(settings).run()

    counts = summaries[-1].counts()
    assert counts[Outcome.FAILED] == 1
    assert counts[Outcome.COPIED] == 1
    [failed] = summaries[-1].by_status(Outcome.FAILED)
    assert failed.source_path.name == "bad.jpg"
    assert "simulated read error" in failed.error


def test_name_collision_gets_numbered_variant(settings, src, dest):
    when = datetime(2021, 6, 1, 12, 0, 0)
    write_jpeg(src / "one.jpg", when, color="red")
    write_jpeg(src / "two.jpg", when, color="blue")

    summaries = PicsortApp(settings).run()

    counts = summaries[-1].counts()
    assert counts[Outcome.COPIED] == 2
    assert counts[Outcome.FAILED] == 0
    assert [p.name for p in copied_files(dest)] == [
        "image-20210601-120000-1.jpg",
        "image-20210601-120000.jpg",
    ]
    for outcome in summaries[-1].outcomes:
        assert outcome.destination_path.read_bytes() == outcome.source_path.read_bytes()


def test_same_day_clips_are_all_kept(settings, src, dest):
    (src / "IMG_20230714_a.mp4").write_bytes(b"first clip")
    (src / "IMG_20230714_b.mp4").write_bytes(b"second clip")
    (src / "zz_copy_of_b.mp4").write_bytes(b"second clip")

    summaries = PicsortApp(settings).run()

    library = sorted(p.read_bytes() for p in copied_files(dest))
    assert library == [b"first clip", b"second clip"]

    counts = summaries[-1].counts()
    assert counts[Outcome.COPIED] == 2
    assert counts[Outcome.DUPLICATE] == 1
    [dup] = summaries[-1].by_status(Outcome.DUPLICATE)
    # the registry points at the file holding the duplicate's bytes
    assert dup.duplicate_of.destination_path.read_bytes() == dup.source_path.read_bytes()


def test_existing_file_on_planned_name_is_left_alone(settings, src, dest):
    occupied = dest / "video" / "2023" / "7" / "video-20230714-000000.mp4"
    occupied.parent.mkdir(parents=True)
    occupied.write_bytes(b"already here")
    (src / "IMG_20230714.mp4").write_bytes(b"new clip")

    summaries = PicsortApp(settings).run()

    [outcome] = summaries[-1].outcomes
    assert outcome.status is Outcome.COPIED
    assert outcome.destination_path == occupied.with_name("video-20230714-000000-1.mp4")
    assert occupied.read_bytes() == b"already here"
    assert outcome.destination_path.read_bytes() == b"new clip"


def test_relative_source_still_skips_nested_destination(tmp_path, monkeypatch):
    write_jpeg(tmp_path / "photos" / "a.jpg", datetime(2021, 6, 1))
    monkeypatch.chdir(tmp_path)
    settings = RunConfig(sources=[Path("photos")], dest_root=tmp_path / "photos" / "sorted",
                         min_size=0, max_workers=2)

    PicsortApp(settings).run()
    summaries = PicsortApp(settings).run()

    [outcome] = summaries[1].outcomes
    assert outcome.source_path.name == "a.jpg"
    assert outcome.status is Outcome.DUPLICATE


def test_destination_inside_source_is_not_reingested(tmp_path):
    src = tmp_path / "photos"
    dest = src / "sorted"
    write_jpeg(src / "a.jpg", datetime(2021, 6, 1))
    settings = RunConfig(sources=[src], dest_root=dest, min_size=0, max_workers=2)

    PicsortApp(settings).run()
    summaries = PicsortApp(settings).run()

    # second run: the sorted copy is registered first, the original is a duplicate
    assert summaries[0].counts()[Outcome.REGISTERED] == 1
    [outcome] = summaries[1].outcomes
    assert outcome.source_path == src / "a.jpg"
    assert outcome.status is Outcome.DUPLICATE


def test_multiple_sources_share_one_registry(tmp_path, dest):
    first = tmp_path / "card1"
    second = tmp_path / "card2"
    photo = write_jpeg(first / "a.jpg", datetime(2021, 6, 1))
    second.mkdir()
    (second / "a_again.jpg").write_bytes(photo.read_bytes())
    settings = RunConfig(sources=[first, second], dest_root=dest, min_size=0)

    summaries = PicsortApp(settings).run()

    assert [s.name for s in summaries] == ["destination", "source", "source"]
    assert summaries[1].counts()[Outcome.COPIED] == 1
    assert summaries[2].counts()[Outcome.DUPLICATE] == 1


def test_invalid_configuration_fails_before_processing(tmp_path, dest):
    settings = RunConfig(sources=[tmp_path / "missing"], dest_root=dest, min_size=0)

    with pytest.raises(ConfigurationError):
        PicsortApp(settings).run()


@pytest.mark.parametrize(
    "change",
    [
        {"sources": []},
        {"min_size": -1},
        {"max_workers": 0},
    ],
)
def test_config_validation(settings, change):
    for key, value in change.items():
        setattr(settings, key, value)

    with pytest.raises(ConfigurationError):
        settings.validate()


def test_destination_must_be_a_directory(settings, dest):
    dest.write_text("not a folder")

    with pytest.raises(ConfigurationError):
        settings.validate()
