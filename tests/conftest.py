import pytest
from PIL import Image

from picsort.config import RunConfig


def write_jpeg(path, exif_datetime=None, color="red"):
    """Writes a small real JPEG, optionally stamped with an EXIF DateTime tag."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (16, 16), color)
    if exif_datetime is None:
        img.save(path, "JPEG")
    else:
        exif = Image.Exif()
        exif[0x0132] = exif_datetime.strftime("%Y:%m:%d %H:%M:%S")  # 'Image DateTime'
        img.save(path, "JPEG", exif=exif)
    return path


@pytest.fixture
def src(tmp_path):
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def dest(tmp_path):
    return tmp_path / "library"


@pytest.fixture
def settings(src, dest):
    """RunConfig with the size filter disabled so tiny test files qualify."""
    return RunConfig(sources=[src], dest_root=dest, min_size=0, max_workers=4)
