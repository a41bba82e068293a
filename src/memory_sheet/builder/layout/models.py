"""
Module: builder.layout.models

Purpose:
    Data models for the page plan.
    Immutable dataclasses describing which card goes into which cell.

Key Classes:
    - CellAssignment: One card placed in one grid cell
    - PageSlot: All cells of one page
    - PagePlan: Complete plan for an export

Dependencies:
    - dataclasses (std)
    - core.templates: LayoutTemplate

Used By:
    - builder.layout.planner: Creates PagePlans
    - builder.output.assembler: Places tiles
    - builder.controller: Export pipeline
"""

from __future__ import annotations

from dataclasses import dataclass

from memory_sheet.core.templates import LayoutTemplate


@dataclass(frozen=True)
class CellAssignment:
    """
    A card positioned on a page.

    Positions are physical (millimetres) measured from the page's top-left
    corner; the assembler converts them to the PDF's bottom-left origin.

    Attributes:
        image_id: Source image placed in this cell
        occurrence: 0 for the first copy of the image, 1 for its twin
        sequence_index: Position in the duplicated card sequence
        row: Grid row (0 is the top row)
        col: Grid column (0 is the left column)
        x_mm: Card left edge
        y_mm: Card top edge
        size_mm: Card edge length

    Example:
        >>> cell = CellAssignment("img1", 0, 0, 0, 0, x_mm=10, y_mm=10, size_mm=93)
        >>> cell.bottom_mm
        103
    """

    image_id: str
    occurrence: int
    sequence_index: int
    row: int
    col: int
    x_mm: float
    y_mm: float
    size_mm: float

    @property
    def right_mm(self) -> float:
        return self.x_mm + self.size_mm

    @property
    def bottom_mm(self) -> float:
        """Bottom Y coordinate (top + size)."""
        return self.y_mm + self.size_mm


@dataclass(frozen=True)
class PageSlot:
    """
    Cell assignments for a single page, in row-major order.

    Attributes:
        index: Page number (0-indexed)
        cells: CellAssignments on this page
    """

    index: int
    cells: tuple[CellAssignment, ...]

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def is_empty(self) -> bool:
        return len(self.cells) == 0


@dataclass(frozen=True)
class PagePlan:
    """
    Final plan for an export.

    Attributes:
        template: Template the plan was computed for
        pages: PageSlots in output order

    Example:
        >>> plan = plan_pages(["a", "b", "c"], get_template("grid-4"))
        >>> plan.page_count
        2
    """

    template: LayoutTemplate
    pages: tuple[PageSlot, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def cell_count(self) -> int:
        """Total number of placed cards across all pages."""
        return sum(page.cell_count for page in self.pages)

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def iter_cells(self):
        """Yield (page, cell) pairs in plan order."""
        for page in self.pages:
            for cell in page.cells:
                yield page, cell

    def placements_for(self, image_id: str) -> list[tuple[int, CellAssignment]]:
        """All (page index, cell) placements of one image."""
        return [
            (page.index, cell)
            for page, cell in self.iter_cells()
            if cell.image_id == image_id
        ]

    def image_page_map(self) -> dict[str, list[int]]:
        """Mapping of image id to the pages it appears on."""
        result: dict[str, list[int]] = {}
        for page, cell in self.iter_cells():
            pages = result.setdefault(cell.image_id, [])
            if page.index not in pages:
                pages.append(page.index)
        return result
