"""
Tests for cli

Test Coverage:
- --list-templates output
- Argument errors (no images, unknown template, bad crops file)
- load_crops(): JSON parsing and validation
- build_project(): skipping unreadable files, applying crops by path or name
- main(): end-to-end export to a file
"""
import json

import pytest

from memory_sheet.cli import build_project, load_crops, main
from memory_sheet.core.models import CropRect
from memory_sheet.core.templates import TemplateId


@pytest.fixture
def image_files(tmp_path, make_png):
    paths = []
    for name, color in [("a.png", "red"), ("b.png", "green"), ("c.png", "blue")]:
        path = tmp_path / name
        path.write_bytes(make_png(60, 40, color))
        paths.append(path)
    return paths


def test_list_templates(capsys):
    assert main(["--list-templates"]) == 0
    out = capsys.readouterr().out
    assert "grid-4" in out
    assert "borderless-12" in out


def test_no_images_is_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 2


def test_unknown_template_is_usage_error(image_files):
    with pytest.raises(SystemExit) as exc_info:
        main([str(image_files[0]), "-t", "grid-5"])
    assert exc_info.value.code == 2


def test_export_writes_pdf(image_files, tmp_path):
    # Arrange
    output = tmp_path / "out" / "sheet.pdf"
    argv = [str(p) for p in image_files] + ["-o", str(output), "--dpi", "50", "-j", "1", "-q"]

    # Act
    code = main(argv)

    # Assert
    assert code == 0
    assert output.read_bytes().startswith(b"%PDF-")


def test_default_output_name(image_files, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    code = main([str(image_files[0]), "-n", "Road trip", "--dpi", "50", "-q"])
    assert code == 0
    assert (tmp_path / "Road_trip.pdf").exists()


def test_no_usable_images_returns_1(tmp_path):
    bad = tmp_path / "notes.png"
    bad.write_bytes(b"not really a png")
    assert main([str(bad), "-q"]) == 1


class TestLoadCrops:
    """Tests for load_crops()."""

    def test_valid_file(self, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text(json.dumps({
            "a.png": {"zoom": 1.5, "rotation": 90,
                      "cropAreaPixels": {"x": 0, "y": 0, "width": 40, "height": 40}},
        }))

        crops = load_crops(path)

        assert crops["a.png"].zoom == 1.5
        assert crops["a.png"].rotation_degrees == 90
        assert crops["a.png"].crop_rect == CropRect(0, 0, 40, 40)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text("{nope")
        with pytest.raises(ValueError, match="invalid JSON"):
            load_crops(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_crops(path)

    def test_bad_entry(self, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text(json.dumps({"a.png": {"zoom": 10}}))
        with pytest.raises(ValueError, match="a.png"):
            load_crops(path)

    def test_bad_crops_file_is_usage_error(self, image_files, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text("[]")
        with pytest.raises(SystemExit) as exc_info:
            main([str(image_files[0]), "--crops", str(path)])
        assert exc_info.value.code == 2


class TestBuildProject:
    """Tests for build_project()."""

    def test_skips_unreadable_files(self, image_files, tmp_path):
        missing = tmp_path / "missing.png"
        project = build_project([image_files[0], missing, image_files[1]], "x", "grid-4")
        assert [image.name for image in project.images] == ["a.png", "b.png"]

    def test_applies_crops_by_file_name(self, image_files, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text(json.dumps({"b.png": {"rotation": -45}}))

        project = build_project(image_files, "x", "grid-6", load_crops(path))

        assert project.template_id is TemplateId.GRID_6
        by_name = {image.name: image for image in project.images}
        assert by_name["b.png"].crop.rotation_degrees == -45
        assert by_name["a.png"].crop.rotation_degrees == 0

    def test_same_name_in_different_folders(self, tmp_path, make_png):
        """Crops keyed by path keep same-named files apart."""
        # Arrange
        first = tmp_path / "a" / "img.png"
        second = tmp_path / "b" / "img.png"
        for path in (first, second):
            path.parent.mkdir()
            path.write_bytes(make_png(60, 40))
        crops_path = tmp_path / "crops.json"
        crops_path.write_text(json.dumps({
            str(first): {"rotation": 30},
            str(second): {"rotation": -60},
        }))

        # Act
        project = build_project([first, second], "x", "grid-4", load_crops(crops_path))

        # Assert
        assert [image.crop.rotation_degrees for image in project.images] == [30, -60]

    def test_path_key_wins_over_file_name(self, image_files, tmp_path):
        path = tmp_path / "crops.json"
        path.write_text(json.dumps({
            "a.png": {"rotation": 10},
            str(image_files[0]): {"rotation": 20},
        }))

        project = build_project(image_files[:1], "x", "grid-4", load_crops(path))

        assert project.images[0].crop.rotation_degrees == 20


def test_non_finite_crop_rect_still_exports(image_files, tmp_path):
    """A NaN crop rect from JSON gives a blank card, not a crash."""
    crops_path = tmp_path / "crops.json"
    crops_path.write_text(json.dumps({
        "a.png": {"cropAreaPixels": {"x": float("nan"), "y": 0, "width": 40, "height": 40}},
    }))
    output = tmp_path / "sheet.pdf"

    code = main([
        str(image_files[0]), "--crops", str(crops_path),
        "-o", str(output), "--dpi", "50", "-j", "1", "-q",
    ])

    assert code == 0
    assert output.read_bytes().startswith(b"%PDF-")
