"""
Module: builder.geometry.resolver

Purpose:
    Work out which region of a (rotated) source image becomes a card.
    Cropping happens on the rotated image, so the rasterizer first needs
    the bounding box of the rotated image and then the crop rectangle
    inside it.

Key Functions:
    - rotated_bounding_box(): Axis-aligned box of a rotated rectangle
    - default_crop_rect(): Largest centred square of the unrotated image
    - resolve_crop_geometry(): Full geometry for one image

Dependencies:
    - core.models.crop: CropRect, CropState

Used By:
    - builder.images.rasterizer: Tile rendering
    - builder.controller: Per-tile geometry
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from memory_sheet.core.models.crop import CropRect, CropState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Size of the canvas that holds the rotated image."""

    width: float
    height: float


@dataclass(frozen=True)
class CropGeometry:
    """
    Everything the rasterizer needs to sample one tile.

    Attributes:
        bounding_box: Canvas size after rotation
        crop_rect: Region of that canvas to sample
        rotation_degrees: Clockwise rotation about the image centre
    """

    bounding_box: BoundingBox
    crop_rect: CropRect
    rotation_degrees: float

    @property
    def is_empty(self) -> bool:
        return self.crop_rect.is_empty


def rotated_bounding_box(width: float, height: float, rotation_degrees: float) -> BoundingBox:
    """
    Bounding box of a ``width`` x ``height`` rectangle rotated about its centre.

    Example:
        >>> rotated_bounding_box(100, 200, 90)
        BoundingBox(width=200.0, height=100.0)  # within float rounding
    """
    theta = math.radians(rotation_degrees)
    cos_t = abs(math.cos(theta))
    sin_t = abs(math.sin(theta))
    return BoundingBox(
        width=cos_t * width + sin_t * height,
        height=sin_t * width + cos_t * height,
    )


def default_crop_rect(width: float, height: float) -> CropRect:
    """
    Largest square centred in the unrotated image.

    Degenerate sizes give a zero-area rect instead of failing.
    """
    size = max(0.0, float(min(width, height)))
    return CropRect(
        x=(width - size) / 2,
        y=(height - size) / 2,
        width=size,
        height=size,
    )


def resolve_crop_geometry(
    width: int,
    height: int,
    crop: Optional[CropState],
) -> CropGeometry:
    """
    Resolve the source region for one image.

    A crop state with a ``crop_rect`` is trusted as-is (it is already in
    rotated-canvas space). Without one the default centred square is used
    with no rotation, whatever the stored rotation says.

    Args:
        width: Natural image width in pixels
        height: Natural image height in pixels
        crop: Crop snapshot, or None

    Returns:
        CropGeometry for the rasterizer
    """
    if crop is None or crop.crop_rect is None:
        if crop is not None and crop.rotation_degrees:
            logger.debug("No crop rect reported; using default crop without rotation")
        return CropGeometry(
            bounding_box=BoundingBox(float(width), float(height)),
            crop_rect=default_crop_rect(width, height),
            rotation_degrees=0.0,
        )

    rotation = crop.rotation_degrees
    return CropGeometry(
        bounding_box=rotated_bounding_box(width, height, rotation),
        crop_rect=crop.crop_rect,
        rotation_degrees=rotation,
    )
