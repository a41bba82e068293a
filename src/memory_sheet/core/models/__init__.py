"""
Core Models Package

Immutable data models shared by the builder and the command line. Edits
always return new instances, so the export pipeline works on snapshots
and never on live state.
"""

from .crop import CropRect, CropState, MIN_ZOOM, MAX_ZOOM
from .images import (
    ACCEPTED_MEDIA_TYPES,
    ProjectImage,
    SourceImage,
    decode_image,
    is_supported_media_type,
)
from .project import Project

__all__ = [
    "CropRect",
    "CropState",
    "MIN_ZOOM",
    "MAX_ZOOM",
    "ACCEPTED_MEDIA_TYPES",
    "ProjectImage",
    "SourceImage",
    "decode_image",
    "is_supported_media_type",
    "Project",
]
