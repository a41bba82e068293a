"""
Module: crop

Purpose:
    Provides the CropRect and CropState value types. A CropState is the
    immutable snapshot of what the interactive crop widget reported for one
    image: pan offsets, zoom, rotation and, once a gesture has completed,
    the resolved crop rectangle in rotated-image pixel space.

Key Functions:
    - CropState.build(): Fully populated state from optional fields
    - CropState.merged(patch): New state with a widget patch applied
    - CropState.to_dict() / from_dict(): Project store format

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.images.ProjectImage
    - core.models.project.Project.update_crop
    - builder.geometry.resolver
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

MIN_ZOOM = 1.0
MAX_ZOOM = 3.0
MIN_ROTATION = -180.0
MAX_ROTATION = 180.0

# Project store key -> field name
_STORE_KEYS = {
    "x": "offset_x",
    "y": "offset_y",
    "zoom": "zoom",
    "rotation": "rotation_degrees",
    "cropAreaPixels": "crop_rect",
}
_FIELDS = frozenset(_STORE_KEYS.values())


@dataclass(frozen=True, slots=True)
class CropRect:
    """
    Axis-aligned region of the rotated source canvas, in pixels.

    Coordinates are floats and are not validated: rectangles reported by
    the crop widget are trusted and clamped only when sampled.

    Attributes:
        x: Left edge
        y: Top edge
        width: Region width
        height: Region height
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        """True when the rect covers no area or has a non-finite component."""
        if not all(math.isfinite(v) for v in (self.x, self.y, self.width, self.height)):
            return True
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CropRect:
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True, slots=True)
class CropState:
    """
    Per-image crop snapshot (immutable).

    Absence of ``crop_rect`` means the default centred square crop is used
    at export time.

    Attributes:
        offset_x: Horizontal pan reported by the widget
        offset_y: Vertical pan reported by the widget
        zoom: Zoom factor in [MIN_ZOOM, MAX_ZOOM]
        rotation_degrees: Clockwise rotation in [-180, 180]
        crop_rect: Resolved crop region, or None for the default crop

    Example:
        >>> state = CropState.build(zoom=1.5)
        >>> state.merged({"rotation": 90}).rotation_degrees
        90.0
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0
    rotation_degrees: float = 0.0
    crop_rect: Optional[CropRect] = None

    def __post_init__(self) -> None:
        """Validate state on construction."""
        if not math.isfinite(self.zoom) or not MIN_ZOOM <= self.zoom <= MAX_ZOOM:
            raise ValueError(
                f"zoom must be in [{MIN_ZOOM}, {MAX_ZOOM}]: {self.zoom}"
            )
        if (
            not math.isfinite(self.rotation_degrees)
            or not MIN_ROTATION <= self.rotation_degrees <= MAX_ROTATION
        ):
            raise ValueError(
                f"rotation_degrees must be in [{MIN_ROTATION}, {MAX_ROTATION}]: "
                f"{self.rotation_degrees}"
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def build(
        cls,
        *,
        offset_x: Optional[float] = None,
        offset_y: Optional[float] = None,
        zoom: Optional[float] = None,
        rotation_degrees: Optional[float] = None,
        crop_rect: Optional[CropRect | Mapping[str, Any]] = None,
    ) -> CropState:
        """
        Build a fully populated state, filling missing fields with defaults.

        Args:
            offset_x: Horizontal pan (default 0)
            offset_y: Vertical pan (default 0)
            zoom: Zoom factor (default 1)
            rotation_degrees: Rotation (default 0)
            crop_rect: CropRect or dict with x/y/width/height

        Returns:
            CropState with every field set
        """
        return cls._from_fields({
            "offset_x": offset_x,
            "offset_y": offset_y,
            "zoom": zoom,
            "rotation_degrees": rotation_degrees,
            "crop_rect": crop_rect,
        })

    @classmethod
    def default(cls) -> CropState:
        return cls()

    def merged(self, patch: Optional[Mapping[str, Any]] = None, **changes: Any) -> CropState:
        """
        Return a new state with a partial update applied.

        Accepts both field names (``zoom``, ``rotation_degrees``,
        ``crop_rect``...) and the store keys the crop widget reports
        (``x``, ``y``, ``rotation``, ``cropAreaPixels``). Keys with a
        value of None are ignored, except the crop rect: None there resets
        it to the default crop. This state is never modified.

        Args:
            patch: Mapping of keys to new values
            **changes: Same, as keyword arguments

        Returns:
            New CropState

        Raises:
            KeyError: If a key is not a crop field
            ValueError: If the merged zoom or rotation is out of range
        """
        updates = {}
        for key, value in {**(patch or {}), **changes}.items():
            name = _normalize_key(key)
            if value is None and name != "crop_rect":
                continue
            updates[name] = value
        if not updates:
            return self
        current = {
            "offset_x": self.offset_x,
            "offset_y": self.offset_y,
            "zoom": self.zoom,
            "rotation_degrees": self.rotation_degrees,
            "crop_rect": self.crop_rect,
        }
        current.update(updates)
        return self._from_fields(current)

    def without_crop_rect(self) -> CropState:
        """Drop the resolved rect, e.g. after the source image changed."""
        return replace(self, crop_rect=None)

    @classmethod
    def _from_fields(cls, fields: Mapping[str, Any]) -> CropState:
        rect = fields.get("crop_rect")
        if rect is not None and not isinstance(rect, CropRect):
            rect = CropRect.from_dict(rect)
        defaults = cls()
        return cls(
            offset_x=_float_or(fields.get("offset_x"), defaults.offset_x),
            offset_y=_float_or(fields.get("offset_y"), defaults.offset_y),
            zoom=_float_or(fields.get("zoom"), defaults.zoom),
            rotation_degrees=_float_or(
                fields.get("rotation_degrees"), defaults.rotation_degrees
            ),
            crop_rect=rect,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """
        Serialize to the project store format.

        Returns:
            Dict with x, y, zoom, rotation and optionally cropAreaPixels
        """
        d: dict[str, Any] = {
            "x": self.offset_x,
            "y": self.offset_y,
            "zoom": self.zoom,
            "rotation": self.rotation_degrees,
        }
        if self.crop_rect is not None:
            d["cropAreaPixels"] = self.crop_rect.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> CropState:
        """
        Deserialize from the project store format.

        Missing keys take their defaults; ``None`` gives the default state.
        """
        if not data:
            return cls()
        return cls.default().merged(data)


def _normalize_key(key: str) -> str:
    if key in _FIELDS:
        return key
    try:
        return _STORE_KEYS[key]
    except KeyError:
        raise KeyError(f"Unknown crop field: {key!r}") from None


def _float_or(value: Any, fallback: float) -> float:
    return fallback if value is None else float(value)
