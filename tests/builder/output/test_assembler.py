"""
Tests for builder.output.assembler

Test Coverage:
- assemble_document(): page count, page size, metadata, determinism
- Checkpoints: called per page and cell, abort propagates
- Embedding failures
- _transform_y(): top-down millimetres to bottom-up points
"""
import io

import pytest
from PIL import Image

from memory_sheet.builder.images.rasterizer import RenderedTile
from memory_sheet.builder.layout import plan_pages
from memory_sheet.builder.output.assembler import _transform_y, assemble_document
from memory_sheet.core.errors import EmbeddingFailed, ExportCancelled
from memory_sheet.core.templates import get_template
from memory_sheet.core.units import mm_to_pt

A4_PT = (mm_to_pt(210), mm_to_pt(297))


def make_tile(image_id: str, color: str, size: int = 16) -> RenderedTile:
    buf = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buf, format="PNG")
    return RenderedTile(image_id=image_id, size_px=size, png=buf.getvalue())


@pytest.fixture
def tiles():
    return {
        "img1": make_tile("img1", "red"),
        "img2": make_tile("img2", "green"),
        "img3": make_tile("img3", "blue"),
    }


@pytest.fixture
def plan():
    return plan_pages(["img1", "img2", "img3"], get_template("grid-4"))


def tile_provider(tiles):
    return lambda cell: tiles[cell.image_id]


class TestAssembleDocument:
    """Tests for PDF assembly."""

    def test_returns_pdf_bytes(self, plan, tiles):
        pdf = assemble_document(plan, tile_provider(tiles))
        assert pdf.startswith(b"%PDF-")

    def test_one_pdf_page_per_plan_page(self, plan, tiles):
        pypdf = pytest.importorskip("pypdf")

        pdf = assemble_document(plan, tile_provider(tiles))

        reader = pypdf.PdfReader(io.BytesIO(pdf))
        assert len(reader.pages) == 2

    def test_pages_are_a4(self, plan, tiles):
        pypdf = pytest.importorskip("pypdf")

        reader = pypdf.PdfReader(io.BytesIO(assemble_document(plan, tile_provider(tiles))))

        for page in reader.pages:
            assert float(page.mediabox.width) == pytest.approx(A4_PT[0], abs=0.01)
            assert float(page.mediabox.height) == pytest.approx(A4_PT[1], abs=0.01)

    def test_title_and_creator_metadata(self, plan, tiles):
        pypdf = pytest.importorskip("pypdf")

        pdf = assemble_document(plan, tile_provider(tiles), title="Summer 2024")

        meta = pypdf.PdfReader(io.BytesIO(pdf)).metadata
        assert meta.title == "Summer 2024"
        assert meta.creator.startswith("memory_sheet")

    def test_invariant_output_is_reproducible(self, plan, tiles):
        first = assemble_document(plan, tile_provider(tiles), invariant=True)
        second = assemble_document(plan, tile_provider(tiles), invariant=True)
        assert first == second

    def test_provider_called_per_cell_in_plan_order(self, plan, tiles):
        # Arrange
        seen = []

        def provider(cell):
            seen.append((cell.image_id, cell.sequence_index))
            return tiles[cell.image_id]

        # Act
        assemble_document(plan, provider)

        # Assert
        assert [index for _, index in seen] == list(range(6))

    def test_checkpoint_called_for_pages_and_cells(self, plan, tiles):
        calls = []
        assemble_document(plan, tile_provider(tiles), checkpoint=lambda: calls.append(1))
        # 2 pages + 6 cells
        assert len(calls) == 8

    def test_checkpoint_abort_propagates(self, plan, tiles):
        def checkpoint():
            raise ExportCancelled("stop")

        with pytest.raises(ExportCancelled):
            assemble_document(plan, tile_provider(tiles), checkpoint=checkpoint)

    def test_bad_tile_raises_embedding_failed(self, plan, tiles):
        tiles["img2"] = RenderedTile(image_id="img2", size_px=16, png=b"not a png")

        with pytest.raises(EmbeddingFailed, match="img2"):
            assemble_document(plan, tile_provider(tiles))

    def test_borderless_template(self, tiles):
        pypdf = pytest.importorskip("pypdf")
        plan = plan_pages(["img1", "img2", "img3"], get_template("borderless-12"))

        pdf = assemble_document(plan, tile_provider(tiles))

        assert len(pypdf.PdfReader(io.BytesIO(pdf)).pages) == 1


class TestTransformY:
    """Tests for _transform_y()."""

    def test_top_edge_element(self):
        page_h = mm_to_pt(297)
        y = _transform_y(page_h, 0, 297)
        assert y == pytest.approx(0.0)

    def test_grid_4_first_row(self):
        page_h = mm_to_pt(297)
        y = _transform_y(page_h, 31.75, 93)
        assert y == pytest.approx(mm_to_pt(297 - 31.75 - 93))

    def test_element_at_bottom(self):
        page_h = mm_to_pt(297)
        assert _transform_y(page_h, 200, 97) == pytest.approx(0.0)
