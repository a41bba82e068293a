"""
Module: core.units

Purpose:
    Conversions between physical lengths (millimetres), raster pixels at a
    fixed density and PDF points. Every place that turns a physical length
    into a raster size goes through mm_to_px so tiles in one layout are
    sized identically.

Key Functions:
    - mm_to_px(): Millimetres to whole pixels at a density
    - mm_to_pt(): Millimetres to PDF points (unrounded)
    - px_to_pt(): Pixels at a density to PDF points

Dependencies:
    - math (std)

Used By:
    - builder.layout.planner: Card sizes
    - builder.output.assembler: Page sizes and placement
    - builder.controller: Tile raster size
"""

from __future__ import annotations

import math

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72
RASTER_DPI = 300


def mm_to_px(length_mm: float, dpi: int = RASTER_DPI) -> int:
    """
    Convert a physical length to whole pixels.

    Rounds half up, so 0.5 px becomes 1 px regardless of parity.

    Args:
        length_mm: Length in millimetres
        dpi: Rasterization density in samples per inch

    Returns:
        Pixel count

    Example:
        >>> mm_to_px(25.4)
        300
        >>> mm_to_px(93)
        1098
    """
    return int(math.floor((length_mm / MM_PER_INCH) * dpi + 0.5))


def mm_to_pt(length_mm: float) -> float:
    """
    Convert a physical length to PDF points (1/72 inch).

    Example:
        >>> mm_to_pt(25.4)
        72.0
    """
    return (length_mm / MM_PER_INCH) * POINTS_PER_INCH


def px_to_pt(px: float, dpi: int = RASTER_DPI) -> float:
    """Convert pixels at ``dpi`` to PDF points."""
    return px * POINTS_PER_INCH / dpi
