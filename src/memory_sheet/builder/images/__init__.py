"""
Module: builder.images

Purpose:
    Tile rasterization for the export pipeline. Turns a source image and
    its crop geometry into a square PNG tile.

Key Functions:
    - render_tile(): Render a tile from resolved geometry
    - render_project_image(): Resolve geometry and render

Dependencies:
    - PIL: Image manipulation

Used By:
    - builder.controller: Export pipeline
"""

from .rasterizer import RenderedTile, render_project_image, render_tile

__all__ = [
    "RenderedTile",
    "render_project_image",
    "render_tile",
]
