"""
Module: core.templates

Purpose:
    Layout templates for card sheets. Templates are a closed set: every
    variant has a TemplateId member and is registered once in TEMPLATES.

Key Classes:
    - TemplateId: Identifiers of the built-in templates
    - TemplateKind: Uniform (margins and gutters) or borderless
    - LayoutTemplate: Immutable page/grid/card configuration

Key Functions:
    - get_template(): Look up a template by id, id string or legacy number
    - list_templates(): All templates in display order

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.models.project: Selected template id
    - builder.layout.planner: Grid geometry
    - builder.controller: Export pipeline
    - cli: --template option
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# A4 portrait
A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0

DEFAULT_MARGIN_MM = 10.0
DEFAULT_GUTTER_MM = 4.0


class TemplateId(str, Enum):
    """Built-in template identifiers."""

    GRID_4 = "grid-4"
    GRID_6 = "grid-6"
    GRID_8 = "grid-8"
    BORDERLESS_12 = "borderless-12"


class TemplateKind(str, Enum):
    """How cards are positioned inside the grid."""

    UNIFORM = "uniform"  # margins + gutters, card centred in its cell
    BORDERLESS = "borderless"  # cell == card, edge to edge


class UnknownTemplateError(KeyError):
    """No template registered under the requested id."""
    pass


@dataclass(frozen=True)
class LayoutTemplate:
    """
    Page, grid and card configuration (immutable).

    Physical lengths are millimetres. For uniform templates the card size
    is derived from the cell size unless ``card_size_mm`` pins it; for
    borderless templates ``card_size_mm`` is required and the cell equals
    the card.

    Attributes:
        template_id: Registry key
        label: Human readable name
        kind: Uniform or borderless placement
        page_width_mm: Page width
        page_height_mm: Page height
        rows: Grid rows per page
        cols: Grid columns per page
        margin_mm: Uniform page margin (uniform templates)
        gutter_mm: Space between cells (uniform templates)
        strip_width_mm: Band at the top of the page kept free of cards
        card_size_mm: Fixed card edge, or None to derive it from the cell

    Example:
        >>> template = get_template(TemplateId.GRID_4)
        >>> template.cards_per_page
        4
        >>> template.card_mm
        93.0
    """

    template_id: TemplateId
    label: str
    kind: TemplateKind
    page_width_mm: float
    page_height_mm: float
    rows: int
    cols: int
    margin_mm: float = 0.0
    gutter_mm: float = 0.0
    strip_width_mm: float = 0.0
    card_size_mm: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate the grid fits on the page."""
        if self.page_width_mm <= 0 or self.page_height_mm <= 0:
            raise ValueError(
                f"Page size must be positive: {self.page_width_mm}x{self.page_height_mm}"
            )
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid must have at least one cell: {self.rows}x{self.cols}")
        if min(self.margin_mm, self.gutter_mm, self.strip_width_mm) < 0:
            raise ValueError("margin, gutter and strip width must be non-negative")

        if self.kind is TemplateKind.BORDERLESS:
            if self.card_size_mm is None or self.card_size_mm <= 0:
                raise ValueError("Borderless templates need a positive card_size_mm")
            if self.margin_mm or self.gutter_mm:
                raise ValueError("Borderless templates have no margin or gutter")
        if self.cell_width_mm <= 0 or self.cell_height_mm <= 0:
            raise ValueError("Margins and gutters exceed page size")
        if self.card_size_mm is not None and (
            self.card_size_mm > self.cell_width_mm + 1e-9
            or self.card_size_mm > self.cell_height_mm + 1e-9
        ):
            raise ValueError(f"Card of {self.card_size_mm}mm does not fit its cell")
        if self.grid_width_mm > self.page_width_mm + 1e-9:
            raise ValueError("Grid exceeds page width")
        if self.strip_width_mm + self.grid_height_mm > self.page_height_mm + 1e-9:
            raise ValueError("Grid exceeds page height")

    # ─────────────────────────────────────────────────────────────────────────
    # Derived geometry
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def cards_per_page(self) -> int:
        return self.rows * self.cols

    @property
    def cell_width_mm(self) -> float:
        if self.kind is TemplateKind.BORDERLESS:
            return self.card_size_mm
        available = self.page_width_mm - 2 * self.margin_mm - self.gutter_mm * (self.cols - 1)
        return available / self.cols

    @property
    def cell_height_mm(self) -> float:
        if self.kind is TemplateKind.BORDERLESS:
            return self.card_size_mm
        available = (
            self.page_height_mm
            - self.strip_width_mm
            - 2 * self.margin_mm
            - self.gutter_mm * (self.rows - 1)
        )
        return available / self.rows

    @property
    def card_mm(self) -> float:
        """Edge length of every card on this template."""
        if self.card_size_mm is not None:
            return self.card_size_mm
        return min(self.cell_width_mm, self.cell_height_mm)

    @property
    def grid_width_mm(self) -> float:
        """Width of all cells plus gutters."""
        return self.cols * self.cell_width_mm + (self.cols - 1) * self.gutter_mm

    @property
    def grid_height_mm(self) -> float:
        return self.rows * self.cell_height_mm + (self.rows - 1) * self.gutter_mm

    def describe(self) -> str:
        """One-line summary for listings."""
        return (
            f"{self.template_id.value}: {self.label} "
            f"({self.cols}x{self.rows}, {self.card_mm:.1f} mm cards, "
            f"{self.page_width_mm:g}x{self.page_height_mm:g} mm page)"
        )


TEMPLATES: dict[TemplateId, LayoutTemplate] = {
    TemplateId.GRID_4: LayoutTemplate(
        template_id=TemplateId.GRID_4,
        label="4 cards (2x2)",
        kind=TemplateKind.UNIFORM,
        page_width_mm=A4_WIDTH_MM,
        page_height_mm=A4_HEIGHT_MM,
        rows=2,
        cols=2,
        margin_mm=DEFAULT_MARGIN_MM,
        gutter_mm=DEFAULT_GUTTER_MM,
    ),
    TemplateId.GRID_6: LayoutTemplate(
        template_id=TemplateId.GRID_6,
        label="6 cards (2x3)",
        kind=TemplateKind.UNIFORM,
        page_width_mm=A4_WIDTH_MM,
        page_height_mm=A4_HEIGHT_MM,
        rows=3,
        cols=2,
        margin_mm=DEFAULT_MARGIN_MM,
        gutter_mm=DEFAULT_GUTTER_MM,
    ),
    TemplateId.GRID_8: LayoutTemplate(
        template_id=TemplateId.GRID_8,
        label="8 cards (2x4)",
        kind=TemplateKind.UNIFORM,
        page_width_mm=A4_WIDTH_MM,
        page_height_mm=A4_HEIGHT_MM,
        rows=4,
        cols=2,
        margin_mm=DEFAULT_MARGIN_MM,
        gutter_mm=DEFAULT_GUTTER_MM,
    ),
    TemplateId.BORDERLESS_12: LayoutTemplate(
        template_id=TemplateId.BORDERLESS_12,
        label="12 cards (3x4, borderless)",
        kind=TemplateKind.BORDERLESS,
        page_width_mm=A4_WIDTH_MM,
        page_height_mm=A4_HEIGHT_MM,
        rows=4,
        cols=3,
        strip_width_mm=17.0,
        card_size_mm=70.0,
    ),
}

DEFAULT_TEMPLATE_ID = TemplateId.GRID_4

# Project records store the cards-per-page number for the grid layouts
_LEGACY_IDS = {
    4: TemplateId.GRID_4,
    6: TemplateId.GRID_6,
    8: TemplateId.GRID_8,
}


def resolve_template_id(key: Union[TemplateId, str, int]) -> TemplateId:
    """
    Normalize a template key to a TemplateId.

    Args:
        key: TemplateId, its string value, or a legacy 4/6/8 number

    Raises:
        UnknownTemplateError: If no template matches
    """
    if isinstance(key, TemplateId):
        return key
    if isinstance(key, bool):
        raise UnknownTemplateError(f"Unknown template: {key!r}")
    if isinstance(key, int):
        if key in _LEGACY_IDS:
            return _LEGACY_IDS[key]
        raise UnknownTemplateError(f"Unknown template: {key!r}")
    text = str(key).strip().lower()
    if text.isdigit() and int(text) in _LEGACY_IDS:
        return _LEGACY_IDS[int(text)]
    try:
        return TemplateId(text)
    except ValueError:
        raise UnknownTemplateError(f"Unknown template: {key!r}") from None


def get_template(key: Union[TemplateId, str, int]) -> LayoutTemplate:
    """Look up a built-in template. Raises UnknownTemplateError."""
    return TEMPLATES[resolve_template_id(key)]


def list_templates() -> list[LayoutTemplate]:
    """All built-in templates in registry order."""
    return list(TEMPLATES.values())
