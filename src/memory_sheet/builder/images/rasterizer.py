"""
Module: builder.images.rasterizer

Purpose:
    Render one card tile: rotate the source image about its centre onto a
    canvas the size of the rotated bounding box, sample the crop rectangle
    of that canvas, scale it to a square of the requested pixel size and
    flatten it onto an opaque background. Output is PNG so embedding is
    lossless and identical inputs give identical bytes.

Key Functions:
    - render_tile(): Render a tile from an image and resolved geometry
    - render_project_image(): Resolve geometry and render in one step
    - rotate_onto_canvas(): Rotation step (exposed for tests)
    - sample_crop(): Crop + scale step with clamping

Dependencies:
    - PIL: Decoding, affine rotation, resampling, PNG encoding
    - builder.geometry.resolver: CropGeometry

Used By:
    - builder.controller: Export pipeline
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field

from PIL import Image

from memory_sheet.core.errors import ImageEncodeFailed, RenderingUnavailable
from memory_sheet.core.models.crop import CropRect
from memory_sheet.core.models.images import ProjectImage, SourceImage
from memory_sheet.builder.geometry.resolver import CropGeometry, resolve_crop_geometry

logger = logging.getLogger(__name__)

# Largest canvas we agree to allocate (same order as browser canvas limits)
MAX_CANVAS_PIXELS = 268_435_456

# Canvas sizes are truncated like an integer canvas dimension; this absorbs
# float noise such as 199.99999999999997 for a 90 degree rotation.
_SIZE_EPSILON = 1e-6

WHITE = (255, 255, 255)


@dataclass(frozen=True)
class RenderedTile:
    """
    PNG raster for one card.

    Attributes:
        image_id: Source image identifier
        size_px: Edge length in pixels (tiles are square)
        png: Encoded PNG bytes
    """

    image_id: str
    size_px: int
    png: bytes = field(repr=False)


def render_tile(
    image: SourceImage,
    geometry: CropGeometry,
    output_size_px: int,
    *,
    background: tuple[int, int, int] = WHITE,
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> RenderedTile:
    """
    Render a square tile for ``image``.

    Args:
        image: Source image (decoded here)
        geometry: Resolved bounding box, crop rect and rotation
        output_size_px: Edge length of the output square
        background: Opaque colour for uncovered areas
        resample: Pillow resampling filter

    Returns:
        RenderedTile of exactly ``output_size_px`` x ``output_size_px``

    Raises:
        ImageDecodeFailed: If the source bytes cannot be decoded
        RenderingUnavailable: If the canvas cannot be allocated
        ImageEncodeFailed: If PNG encoding fails
    """
    if output_size_px < 1:
        raise ValueError(f"output_size_px must be positive: {output_size_px}")

    source = image.decode()
    try:
        canvas = rotate_onto_canvas(
            source, geometry.bounding_box.width, geometry.bounding_box.height,
            geometry.rotation_degrees, resample=resample,
        )
        tile = sample_crop(canvas, geometry.crop_rect, output_size_px, resample=resample)
        flat = _flatten(tile, background)
    except MemoryError as e:
        raise RenderingUnavailable(
            f"Out of memory rendering image {image.id!r}"
        ) from e
    finally:
        source.close()

    png = _encode_png(flat, image.id)
    logger.debug(
        f"Rendered {image.id} at {output_size_px}px "
        f"(rotation {geometry.rotation_degrees:g}, {len(png)} bytes)"
    )
    return RenderedTile(image_id=image.id, size_px=output_size_px, png=png)


def render_project_image(
    image: ProjectImage,
    output_size_px: int,
    *,
    background: tuple[int, int, int] = WHITE,
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> RenderedTile:
    """Resolve crop geometry for a project image and render it."""
    geometry = resolve_crop_geometry(image.source.width, image.source.height, image.crop)
    return render_tile(
        image.source, geometry, output_size_px,
        background=background, resample=resample,
    )


def rotate_onto_canvas(
    source: Image.Image,
    canvas_width: float,
    canvas_height: float,
    rotation_degrees: float,
    *,
    resample: Image.Resampling = Image.Resampling.BICUBIC,
) -> Image.Image:
    """
    Draw ``source`` rotated clockwise about its centre onto a transparent canvas.

    The canvas centre coincides with the image centre, so with the
    bounding box of the rotation the whole image is visible.

    Args:
        source: Decoded source image
        canvas_width: Canvas width (fractional part is dropped)
        canvas_height: Canvas height (fractional part is dropped)
        rotation_degrees: Clockwise rotation in degrees

    Returns:
        RGBA canvas

    Raises:
        RenderingUnavailable: If the canvas would be too large
    """
    width = max(0, int(math.floor(canvas_width + _SIZE_EPSILON)))
    height = max(0, int(math.floor(canvas_height + _SIZE_EPSILON)))
    if width * height > MAX_CANVAS_PIXELS:
        raise RenderingUnavailable(
            f"Canvas of {width}x{height} exceeds {MAX_CANVAS_PIXELS} pixels"
        )

    rgba = source if source.mode == "RGBA" else source.convert("RGBA")
    if width == 0 or height == 0:
        return Image.new("RGBA", (width, height))

    if rotation_degrees == 0 and (width, height) == rgba.size:
        return rgba.copy()

    theta = math.radians(rotation_degrees)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    # Inverse mapping canvas -> source for a clockwise rotation in y-down space
    cx_out, cy_out = canvas_width / 2, canvas_height / 2
    cx_in, cy_in = rgba.width / 2, rgba.height / 2
    matrix = (
        cos_t, sin_t, cx_in - cos_t * cx_out - sin_t * cy_out,
        -sin_t, cos_t, cy_in + sin_t * cx_out - cos_t * cy_out,
    )
    # transform() only supports nearest/bilinear/bicubic
    if resample not in (Image.Resampling.NEAREST, Image.Resampling.BILINEAR):
        resample = Image.Resampling.BICUBIC
    return rgba.transform(
        (width, height),
        Image.Transform.AFFINE,
        matrix,
        resample=resample,
        fillcolor=(0, 0, 0, 0),
    )


def sample_crop(
    canvas: Image.Image,
    crop_rect: CropRect,
    output_size_px: int,
    *,
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> Image.Image:
    """
    Scale the ``crop_rect`` region of ``canvas`` to a square.

    The rect is clamped to the canvas: parts outside it stay transparent
    and an empty intersection gives a fully transparent square.

    Returns:
        RGBA image of ``output_size_px`` x ``output_size_px``
    """
    out = Image.new("RGBA", (output_size_px, output_size_px), (0, 0, 0, 0))
    if crop_rect.is_empty or canvas.width == 0 or canvas.height == 0:
        return out

    left = max(crop_rect.x, 0.0)
    top = max(crop_rect.y, 0.0)
    right = min(crop_rect.right, float(canvas.width))
    bottom = min(crop_rect.bottom, float(canvas.height))
    if right <= left or bottom <= top:
        logger.warning(f"Crop rect {crop_rect} lies outside the {canvas.size} canvas")
        return out

    if (left, top, right, bottom) != (crop_rect.x, crop_rect.y, crop_rect.right, crop_rect.bottom):
        logger.debug(f"Crop rect {crop_rect} clamped to the {canvas.size} canvas")

    scale_x = output_size_px / crop_rect.width
    scale_y = output_size_px / crop_rect.height
    dest_left = int(round((left - crop_rect.x) * scale_x))
    dest_top = int(round((top - crop_rect.y) * scale_y))
    dest_right = int(round((right - crop_rect.x) * scale_x))
    dest_bottom = int(round((bottom - crop_rect.y) * scale_y))
    dest_w = min(dest_right, output_size_px) - dest_left
    dest_h = min(dest_bottom, output_size_px) - dest_top
    if dest_w <= 0 or dest_h <= 0:
        return out

    region = canvas.resize((dest_w, dest_h), resample=resample, box=(left, top, right, bottom))
    out.paste(region, (dest_left, dest_top))
    return out


def _flatten(tile: Image.Image, background: tuple[int, int, int]) -> Image.Image:
    flat = Image.new("RGB", tile.size, background)
    flat.paste(tile, (0, 0), tile)
    return flat


def _encode_png(img: Image.Image, image_id: str) -> bytes:
    buf = io.BytesIO()
    try:
        img.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise ImageEncodeFailed(f"Could not encode tile for image {image_id!r}: {e}") from e
    return buf.getvalue()
