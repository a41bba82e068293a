"""
Module: builder.output.assembler

Purpose:
    Assemble a PagePlan into a PDF using ReportLab.
    Each PageSlot becomes one PDF page; each cell's tile is embedded and
    drawn at the cell position converted to PDF points.

Key Functions:
    - assemble_document(): Main assembly function

Dependencies:
    - reportlab: PDF generation
    - builder.layout.models: PagePlan, CellAssignment
    - core.units: mm_to_pt

Used By:
    - builder.controller: Export pipeline
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Dict, Optional, Tuple

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from memory_sheet import __version__
from memory_sheet.core.errors import EmbeddingFailed
from memory_sheet.core.units import mm_to_pt
from memory_sheet.builder.images.rasterizer import RenderedTile
from memory_sheet.builder.layout.models import CellAssignment, PagePlan, PageSlot

logger = logging.getLogger(__name__)

TileProvider = Callable[[CellAssignment], RenderedTile]


def _get_creator() -> str:
    """Creator string with current version number."""
    return f"memory_sheet {__version__}"


def assemble_document(
    plan: PagePlan,
    tile_for: TileProvider,
    *,
    title: Optional[str] = None,
    invariant: bool = True,
    checkpoint: Optional[Callable[[], None]] = None,
) -> bytes:
    """
    Render a page plan to PDF bytes.

    Pages are written in plan order and cells in page order; nothing is
    returned until every page is complete.

    Args:
        plan: Page plan from the planner
        tile_for: Returns the rendered tile for a cell
        title: Document title metadata
        invariant: Produce reproducible bytes (fixed ids and dates)
        checkpoint: Called before every page and cell; may raise to abort

    Returns:
        PDF document bytes

    Raises:
        EmbeddingFailed: If a tile cannot be embedded or the PDF not written

    Example:
        >>> pdf = assemble_document(plan, tiles.__getitem__)
        >>> pdf[:5]
        b'%PDF-'
    """
    if plan.is_empty:
        logger.warning("Empty plan, creating empty PDF")

    template = plan.template
    page_width_pt = mm_to_pt(template.page_width_mm)
    page_height_pt = mm_to_pt(template.page_height_mm)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(page_width_pt, page_height_pt), invariant=int(invariant))
    c.setCreator(_get_creator())
    if title:
        c.setTitle(title)

    readers: Dict[int, Tuple[RenderedTile, ImageReader]] = {}
    for page in plan.pages:
        if checkpoint is not None:
            checkpoint()
        _render_page(c, page, tile_for, readers, page_height_pt, checkpoint)
        c.showPage()

    try:
        c.save()
    except Exception as e:
        raise EmbeddingFailed(f"Could not write PDF: {e}") from e

    data = buf.getvalue()
    logger.info(f"Assembled {plan.page_count} pages, {plan.cell_count} cards ({len(data)} bytes)")
    return data


def _render_page(
    c: canvas.Canvas,
    page: PageSlot,
    tile_for: TileProvider,
    readers: Dict[int, Tuple[RenderedTile, ImageReader]],
    page_height_pt: float,
    checkpoint: Optional[Callable[[], None]],
) -> None:
    """Draw every cell of one page."""
    for cell in page.cells:
        if checkpoint is not None:
            checkpoint()
        tile = tile_for(cell)
        _draw_tile(c, cell, tile, readers, page_height_pt)
    logger.debug(f"Page {page.index}: placed {page.cell_count} cards")


def _draw_tile(
    c: canvas.Canvas,
    cell: CellAssignment,
    tile: RenderedTile,
    readers: Dict[int, Tuple[RenderedTile, ImageReader]],
    page_height_pt: float,
) -> None:
    """
    Embed one tile and draw it at the cell position.

    Twins share the same RenderedTile object, so the reader is reused and
    the image is stored once in the PDF.
    """
    size_pt = mm_to_pt(cell.size_mm)
    x_pt = mm_to_pt(cell.x_mm)
    y_pt = _transform_y(page_height_pt, cell.y_mm, cell.size_mm)

    try:
        entry = readers.get(id(tile))
        if entry is None:
            # Keeping the tile referenced keeps its id unique for this export
            entry = (tile, ImageReader(io.BytesIO(tile.png)))
            readers[id(tile)] = entry
        reader = entry[1]
        c.drawImage(reader, x_pt, y_pt, width=size_pt, height=size_pt)
    except Exception as e:
        raise EmbeddingFailed(
            f"Could not embed tile for image {cell.image_id!r} "
            f"(page cell {cell.row},{cell.col}): {e}"
        ) from e


def _transform_y(page_height_pt: float, y_mm_top: float, height_mm: float) -> float:
    """
    Convert a top-down millimetre Y coordinate to bottom-up PDF points.

    Args:
        page_height_pt: Page height in points
        y_mm_top: Y position of the element's top edge from the page top
        height_mm: Element height

    Returns:
        Y position of the element's bottom edge from the page bottom
    """
    return page_height_pt - mm_to_pt(y_mm_top) - mm_to_pt(height_mm)
