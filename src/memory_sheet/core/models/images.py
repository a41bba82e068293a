"""
Module: images

Purpose:
    Source image records. A SourceImage owns its encoded bytes and knows
    its natural pixel size; a ProjectImage pairs it with the crop state the
    user set for it.

Key Classes:
    - SourceImage: Immutable encoded image plus natural dimensions
    - ProjectImage: SourceImage with its own optional CropState

Key Functions:
    - is_supported_media_type(): Filter for accepted uploads
    - decode_image(): Decode bytes into an orientation-corrected PIL image

Dependencies:
    - PIL: Probing and decoding
    - core.models.crop: CropState

Used By:
    - core.models.project: Project image list
    - builder.images.rasterizer: Tile rendering
    - cli: Loading files from disk
"""

from __future__ import annotations

import io
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from memory_sheet.core.errors import ImageDecodeFailed

from .crop import CropState

logger = logging.getLogger(__name__)

ACCEPTED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/webp")


def is_supported_media_type(media_type: str) -> bool:
    """Check if a media type is one the builder accepts."""
    return media_type in ACCEPTED_MEDIA_TYPES


def decode_image(data: bytes, image_id: str = "<bytes>") -> Image.Image:
    """
    Decode encoded image bytes.

    EXIF orientation is applied so the result has the natural (displayed)
    orientation of the photo.

    Args:
        data: Encoded image bytes
        image_id: Identifier used in error messages

    Returns:
        Fully loaded PIL Image

    Raises:
        ImageDecodeFailed: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeFailed(image_id, str(e) or type(e).__name__) from e


@dataclass(frozen=True)
class SourceImage:
    """
    Encoded source image (immutable).

    Attributes:
        id: Stable identifier
        data: Encoded bytes (JPEG, PNG or WebP)
        width: Natural width in pixels (after EXIF orientation)
        height: Natural height in pixels (after EXIF orientation)
        name: Original file name
        media_type: MIME type such as "image/png"

    Example:
        >>> image = SourceImage.from_bytes(png_bytes, name="cat.png")
        >>> image.size
        (400, 300)
    """

    id: str
    data: bytes = field(repr=False)
    width: int
    height: int
    name: str = ""
    media_type: str = ""

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Image size must be non-negative: {self.width}x{self.height}")

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        return (self.width, self.height)

    @property
    def byte_size(self) -> int:
        return len(self.data)

    def decode(self) -> Image.Image:
        """Decode to a PIL image. Raises ImageDecodeFailed."""
        return decode_image(self.data, self.id)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        *,
        image_id: Optional[str] = None,
        name: str = "",
        media_type: Optional[str] = None,
    ) -> SourceImage:
        """
        Create a SourceImage by probing encoded bytes.

        Args:
            data: Encoded image bytes
            image_id: Identifier (random UUID if omitted)
            name: Original file name
            media_type: MIME type (detected from the data if omitted)

        Returns:
            SourceImage with natural dimensions filled in

        Raises:
            ImageDecodeFailed: If the bytes are not a readable image
        """
        image_id = image_id or str(uuid.uuid4())
        img = decode_image(data, image_id)
        width, height = img.size
        img.close()
        logger.debug(f"Probed image {image_id}: {width}x{height}")
        return cls(
            id=image_id,
            data=bytes(data),
            width=width,
            height=height,
            name=name,
            media_type=media_type or _detect_media_type(data),
        )

    @classmethod
    def from_path(cls, path: Path, *, image_id: Optional[str] = None) -> SourceImage:
        """Read and probe an image file."""
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        source = cls.from_bytes(path.read_bytes(), image_id=image_id, name=path.name)
        if not source.media_type and guessed:
            source = replace(source, media_type=guessed)
        return source


@dataclass(frozen=True)
class ProjectImage:
    """
    A source image together with the crop the user chose for it.

    Attributes:
        source: The encoded image
        crop: Crop snapshot, or None for the default centred crop
    """

    source: SourceImage
    crop: Optional[CropState] = None

    @property
    def id(self) -> str:
        return self.source.id

    @property
    def name(self) -> str:
        return self.source.name

    def with_crop_patch(self, patch: Mapping[str, Any]) -> ProjectImage:
        """
        Apply a crop widget patch.

        The patch is merged over the current state (or the defaults when
        no state exists yet) and a new ProjectImage is returned.
        """
        base = self.crop if self.crop is not None else CropState.default()
        return replace(self, crop=base.merged(patch))

    def with_crop(self, crop: Optional[CropState]) -> ProjectImage:
        return replace(self, crop=crop)


def _detect_media_type(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as probe:
            return Image.MIME.get(probe.format or "", "")
    except (UnidentifiedImageError, OSError):
        return ""
