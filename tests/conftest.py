import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import memory_sheet
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from memory_sheet.core.models import CropState, ProjectImage, SourceImage  # noqa: E402


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


# Common test fixtures
@pytest.fixture
def make_png():
    """Factory for solid-colour PNG bytes."""
    def _create(width: int = 400, height: int = 300, color="red") -> bytes:
        return encode(Image.new("RGB", (width, height), color=color))
    return _create


@pytest.fixture
def quadrant_png():
    """
    200x100 PNG with four coloured quadrants.

    Top-left red, top-right green, bottom-left blue, bottom-right yellow.
    """
    img = Image.new("RGB", (200, 100))
    img.paste((255, 0, 0), (0, 0, 100, 50))
    img.paste((0, 255, 0), (100, 0, 200, 50))
    img.paste((0, 0, 255), (0, 50, 100, 100))
    img.paste((255, 255, 0), (100, 50, 200, 100))
    return encode(img)


@pytest.fixture
def make_project_image(make_png):
    """Factory for ProjectImages with a given id, size and optional crop."""
    def _create(
        image_id: str,
        width: int = 400,
        height: int = 300,
        color="red",
        crop: CropState | None = None,
    ) -> ProjectImage:
        source = SourceImage.from_bytes(
            make_png(width, height, color), image_id=image_id, name=f"{image_id}.png"
        )
        return ProjectImage(source=source, crop=crop)
    return _create


@pytest.fixture
def sample_image_file(tmp_path: Path, make_png):
    """Write a PNG to disk and return its path."""
    path = tmp_path / "sample.png"
    path.write_bytes(make_png(120, 80, "blue"))
    return path
