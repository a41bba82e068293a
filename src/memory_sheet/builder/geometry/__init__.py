"""
Module: builder.geometry

Purpose:
    Crop geometry for card tiles: rotation bounding boxes and the source
    rectangle each tile samples.
"""

from .resolver import (
    BoundingBox,
    CropGeometry,
    default_crop_rect,
    resolve_crop_geometry,
    rotated_bounding_box,
)

__all__ = [
    "BoundingBox",
    "CropGeometry",
    "default_crop_rect",
    "resolve_crop_geometry",
    "rotated_bounding_box",
]
