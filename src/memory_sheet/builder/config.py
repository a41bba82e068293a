"""
Module: builder.config

Purpose:
    Configuration dataclass for the export pipeline. Immutable
    configuration with validation on construction.

Key Classes:
    - ExportConfig: Rasterization, concurrency and PDF settings

Dependencies:
    - PIL: Resampling filters

Used By:
    - builder.controller: Export pipeline
    - cli: Command line options
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageColor

from memory_sheet.core.units import RASTER_DPI

RESAMPLE_FILTERS = {
    "lanczos": Image.Resampling.LANCZOS,
    "bicubic": Image.Resampling.BICUBIC,
    "bilinear": Image.Resampling.BILINEAR,
}


@dataclass(frozen=True)
class ExportConfig:
    """
    Configuration for a sheet export (immutable).

    Attributes:
        dpi: Rasterization density for card tiles
        max_workers: Threads used to render tiles (1 renders sequentially)
        background: Colour behind transparent or uncovered tile areas
        resample: Resampling filter name (lanczos, bicubic, bilinear)
        invariant: Write reproducible PDF bytes (fixed metadata)
        cache_tiles: Render each (image, crop, size) once per export

    Example:
        >>> config = ExportConfig(max_workers=1)
        >>> config.resample_filter
        <Resampling.LANCZOS: 1>
    """

    dpi: int = RASTER_DPI
    max_workers: int = 4
    background: str = "white"
    resample: str = "lanczos"
    invariant: bool = True
    cache_tiles: bool = True

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.dpi <= 0:
            raise ValueError(f"dpi must be positive: {self.dpi}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
        if self.resample not in RESAMPLE_FILTERS:
            raise ValueError(
                f"resample must be one of {sorted(RESAMPLE_FILTERS)}: {self.resample!r}"
            )
        try:
            ImageColor.getrgb(self.background)
        except ValueError as e:
            raise ValueError(f"Invalid background colour: {self.background!r}") from e

    @property
    def resample_filter(self) -> Image.Resampling:
        return RESAMPLE_FILTERS[self.resample]

    @property
    def background_rgb(self) -> tuple[int, int, int]:
        return ImageColor.getrgb(self.background)[:3]
