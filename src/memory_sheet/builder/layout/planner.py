"""
Module: builder.layout.planner

Purpose:
    Decide how many pages an export has and which card goes into which
    cell. Works on image ids only, never on pixel data.

Key Functions:
    - plan_pages(): Main planning function
    - duplicate_entries(): Build the card sequence (each image twice)
    - page_count_for(): Number of pages for N images

Algorithm:
    1. Duplicate every image in place: [a, a, b, b, ...]
       Twins stay adjacent, so a pair lands on the same or the next page.
    2. Slice the sequence into chunks of rows * cols cards.
    3. Card i of a chunk goes to row i // cols, column i % cols.
    4. Card origin comes from the template geometry.

Dependencies:
    - builder.layout.models: CellAssignment, PageSlot, PagePlan
    - core.templates: LayoutTemplate

Used By:
    - builder.controller: Export pipeline
"""

from __future__ import annotations

import logging
import math
from typing import List, Sequence

from memory_sheet.core.templates import LayoutTemplate, TemplateKind

from .models import CellAssignment, PagePlan, PageSlot

logger = logging.getLogger(__name__)

COPIES_PER_IMAGE = 2


def duplicate_entries(image_ids: Sequence[str]) -> List[tuple[str, int]]:
    """
    Card sequence with every image placed twice, twins adjacent.

    Returns:
        List of (image_id, occurrence) pairs

    Example:
        >>> duplicate_entries(["a", "b"])
        [('a', 0), ('a', 1), ('b', 0), ('b', 1)]
    """
    return [
        (image_id, occurrence)
        for image_id in image_ids
        for occurrence in range(COPIES_PER_IMAGE)
    ]


def page_count_for(image_count: int, template: LayoutTemplate) -> int:
    """ceil(2N / cards per page); 0 for no images."""
    if image_count <= 0:
        return 0
    return math.ceil(COPIES_PER_IMAGE * image_count / template.cards_per_page)


def card_origin(template: LayoutTemplate, row: int, col: int) -> tuple[float, float]:
    """
    Top-left corner of the card in cell (row, col), in millimetres.

    Uniform templates centre the card inside a cell bounded by margins and
    gutters. Borderless templates butt cells together, centre the grid
    horizontally and start it below the top strip.
    """
    card = template.card_mm
    if template.kind is TemplateKind.BORDERLESS:
        left = (template.page_width_mm - template.grid_width_mm) / 2
        top = template.strip_width_mm
        return (left + col * card, top + row * card)

    cell_w = template.cell_width_mm
    cell_h = template.cell_height_mm
    x = (
        template.margin_mm
        + col * (cell_w + template.gutter_mm)
        + (cell_w - card) / 2
    )
    y = (
        template.strip_width_mm
        + template.margin_mm
        + row * (cell_h + template.gutter_mm)
        + (cell_h - card) / 2
    )
    return (x, y)


def plan_pages(image_ids: Sequence[str], template: LayoutTemplate) -> PagePlan:
    """
    Plan every page of an export.

    Args:
        image_ids: Images in project order (duplicates are not expected)
        template: Selected layout template

    Returns:
        PagePlan; empty when there are no images

    Example:
        >>> plan = plan_pages(["img1", "img2", "img3"], get_template("grid-4"))
        >>> [c.image_id for c in plan.pages[1].cells]
        ['img3', 'img3']
    """
    if not image_ids:
        logger.info("No images to plan")
        return PagePlan(template=template, pages=())

    entries = duplicate_entries(image_ids)
    per_page = template.cards_per_page
    size = template.card_mm
    pages: List[PageSlot] = []

    for page_index, start in enumerate(range(0, len(entries), per_page)):
        chunk = entries[start:start + per_page]
        cells = []
        for i, (image_id, occurrence) in enumerate(chunk):
            row, col = divmod(i, template.cols)
            x_mm, y_mm = card_origin(template, row, col)
            cells.append(CellAssignment(
                image_id=image_id,
                occurrence=occurrence,
                sequence_index=start + i,
                row=row,
                col=col,
                x_mm=x_mm,
                y_mm=y_mm,
                size_mm=size,
            ))
        pages.append(PageSlot(index=page_index, cells=tuple(cells)))

    logger.info(
        f"Planned {len(entries)} cards for {len(image_ids)} images "
        f"onto {len(pages)} pages ({template.template_id.value})"
    )
    return PagePlan(template=template, pages=tuple(pages))
