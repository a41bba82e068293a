"""
Module: core.errors

Purpose:
    Exception hierarchy for the export pipeline. Every error aborts the
    whole export; no partial document is ever returned.

Key Classes:
    - ExportError: Base class for all export failures
    - RenderingUnavailable: Raster canvas could not be allocated
    - ImageDecodeFailed: Source bytes are corrupt or unsupported
    - ImageEncodeFailed: Tile could not be encoded as PNG
    - EmbeddingFailed: PDF could not accept a tile
    - ExportCancelled: Caller cancelled the export

Used By:
    - core.models.images: Probing source images
    - builder.images.rasterizer: Tile rendering
    - builder.output.assembler: PDF embedding
    - builder.controller: Pipeline orchestration
"""

from __future__ import annotations


class ExportError(Exception):
    """Error during the export pipeline."""
    pass


class RenderingUnavailable(ExportError):
    """No drawing surface could be acquired for a tile."""
    pass


class ImageDecodeFailed(ExportError):
    """Source image bytes could not be decoded."""

    def __init__(self, image_id: str, reason: str) -> None:
        super().__init__(f"Could not decode image {image_id!r}: {reason}")
        self.image_id = image_id


class ImageEncodeFailed(ExportError):
    """Rendered tile could not be encoded."""
    pass


class EmbeddingFailed(ExportError):
    """Output document could not accept a raster."""
    pass


class ExportCancelled(ExportError):
    """Export was cancelled by the caller before completion."""
    pass
