"""
Module: project

Purpose:
    The Project record the store loads and saves: a named, ordered list of
    images with their crop states and the selected layout template. All
    edits return a new Project; the export pipeline only ever sees a
    snapshot.

Key Classes:
    - Project: Immutable project record

Dependencies:
    - core.models.images: ProjectImage, SourceImage
    - core.templates: TemplateId

Used By:
    - builder.controller.export_project
    - cli
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Union

from memory_sheet.core.templates import (
    DEFAULT_TEMPLATE_ID,
    LayoutTemplate,
    TemplateId,
    get_template,
    resolve_template_id,
)

from .crop import CropState
from .images import ProjectImage, SourceImage, is_supported_media_type

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "New project"

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class Project:
    """
    Project record (immutable).

    Attributes:
        id: Stable identifier
        name: Display name, also used for export file names
        created_at: ISO-8601 creation timestamp
        note: Free-form note
        template_id: Selected layout template
        images: Ordered images with their crop states

    Example:
        >>> project = Project.create("Summer 2024").add_images([img_a, img_b])
        >>> project.export_filename()
        'Summer_2024.pdf'
    """

    id: str
    name: str = DEFAULT_PROJECT_NAME
    created_at: str = ""
    note: str = ""
    template_id: TemplateId = DEFAULT_TEMPLATE_ID
    images: tuple[ProjectImage, ...] = field(default_factory=tuple)

    @classmethod
    def create(cls, name: str = DEFAULT_PROJECT_NAME) -> Project:
        """Create an empty project with a fresh id and timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    @property
    def template(self) -> LayoutTemplate:
        return get_template(self.template_id)

    @property
    def image_count(self) -> int:
        return len(self.images)

    def get_image(self, image_id: str) -> ProjectImage:
        """Raises KeyError if no image has that id."""
        for image in self.images:
            if image.id == image_id:
                return image
        raise KeyError(f"No image with id {image_id!r}")

    # ─────────────────────────────────────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────────────────────────────────────

    def add_images(self, sources: Iterable[SourceImage]) -> Project:
        """
        Append images, skipping unsupported media types.

        Every added image starts with the default crop state.

        Args:
            sources: Source images to add, in order

        Returns:
            New Project (unchanged when nothing was accepted)
        """
        added = []
        for source in sources:
            if not is_supported_media_type(source.media_type):
                logger.warning(
                    f"Skipping {source.name or source.id}: unsupported type {source.media_type!r}"
                )
                continue
            added.append(ProjectImage(source=source, crop=CropState.default()))
        if not added:
            return self
        return replace(self, images=self.images + tuple(added))

    def remove_image(self, image_id: str) -> Project:
        return replace(
            self,
            images=tuple(image for image in self.images if image.id != image_id),
        )

    def update_crop(self, image_id: str, patch: Mapping[str, Any]) -> Project:
        """
        Merge a crop widget patch into one image's crop state.

        Args:
            image_id: Image to update
            patch: Partial crop fields (store keys or field names)

        Returns:
            New Project

        Raises:
            KeyError: If no image has that id
        """
        self.get_image(image_id)
        return replace(
            self,
            images=tuple(
                image.with_crop_patch(patch) if image.id == image_id else image
                for image in self.images
            ),
        )

    def with_template(self, key: Union[TemplateId, str, int]) -> Project:
        return replace(self, template_id=resolve_template_id(key))

    def renamed(self, name: str) -> Project:
        return replace(self, name=name)

    def with_note(self, note: str) -> Project:
        return replace(self, note=note)

    # ─────────────────────────────────────────────────────────────────────────
    # Export helpers
    # ─────────────────────────────────────────────────────────────────────────

    def export_filename(self, extension: str = ".pdf") -> str:
        """
        File name for a download of this project.

        Runs of whitespace in the name become a single underscore.

        Example:
            >>> Project(id="p", name="My  memory game").export_filename()
            'My_memory_game.pdf'
        """
        stem = _WHITESPACE_RUN.sub("_", self.name) or "project"
        return f"{stem}{extension}"
