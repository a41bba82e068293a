"""
Module: builder.controller

Purpose:
    Orchestrate the complete export pipeline.
    Plan → Rasterize (parallel) → Assemble (sequential, plan order)

Key Functions:
    - export_sheet(): Export an image list with a template
    - export_project(): Export a Project snapshot

Key Classes:
    - ExportResult: Complete export result

Dependencies:
    - builder.layout: Page planning
    - builder.images: Tile rasterization
    - builder.output: PDF assembly

Used By:
    - cli: Command line export
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from memory_sheet.core.errors import ExportCancelled
from memory_sheet.core.models.images import ProjectImage
from memory_sheet.core.models.project import Project
from memory_sheet.core.templates import LayoutTemplate
from memory_sheet.core.units import mm_to_px

from .config import ExportConfig
from .images.rasterizer import RenderedTile, render_project_image
from .layout import CellAssignment, PagePlan, plan_pages
from .output.assembler import assemble_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """
    Complete export result (immutable).

    Attributes:
        document: PDF bytes, or None when there was nothing to export
        plan: Page plan the document was built from
        tile_size_px: Edge length of every tile
        tiles_rendered: Number of rasterizer calls
        filename: Suggested download name (set by export_project)
        elapsed_seconds: Wall time of the export

    Example:
        >>> result = export_project(project)
        >>> result.write_to(Path("out") / result.filename)
    """

    document: Optional[bytes]
    plan: PagePlan
    tile_size_px: int = 0
    tiles_rendered: int = 0
    filename: Optional[str] = None
    elapsed_seconds: float = 0.0

    @property
    def page_count(self) -> int:
        return self.plan.page_count

    @property
    def is_empty(self) -> bool:
        return self.document is None

    def write_to(self, path: Path) -> Path:
        """
        Write the document to ``path``, creating parent directories.

        Raises:
            ValueError: If the export produced no document
        """
        if self.document is None:
            raise ValueError("Nothing to write: export produced no document")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.document)
        logger.info(f"Wrote {len(self.document)} bytes to {path}")
        return path


def export_sheet(
    images: Sequence[ProjectImage],
    template: LayoutTemplate,
    config: Optional[ExportConfig] = None,
    *,
    title: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ExportResult:
    """
    Export a card sheet from start to finish.

    Pipeline:
    1. Plan pages (each image twice, row-major cells)
    2. Render the distinct tiles, in parallel when configured
    3. Assemble the PDF sequentially in plan order

    The image list is snapshotted at call time. With no images the
    rasterizer is never invoked and the result has no document.

    Args:
        images: Images in project order, each with its crop state
        template: Selected layout template
        config: Export configuration (defaults if None)
        title: PDF title metadata
        cancel_event: When set, the export stops before the next tile or page

    Returns:
        ExportResult with the PDF bytes and plan

    Raises:
        ExportCancelled: If cancel_event was set during the export
        ImageDecodeFailed, RenderingUnavailable, ImageEncodeFailed,
        EmbeddingFailed: If any tile fails; nothing partial is returned
        ValueError: If two images share an id
    """
    config = config or ExportConfig()
    snapshot = tuple(images)
    start_time = time.perf_counter()

    by_id: Dict[str, ProjectImage] = {}
    for image in snapshot:
        if image.id in by_id:
            raise ValueError(f"Duplicate image id in export: {image.id!r}")
        by_id[image.id] = image

    plan = plan_pages([image.id for image in snapshot], template)
    if plan.is_empty:
        logger.warning("Export requested with no images; nothing to render")
        return ExportResult(document=None, plan=plan)

    checkpoint = _make_checkpoint(cancel_event)
    size_px = mm_to_px(template.card_mm, config.dpi)
    logger.info(
        f"Exporting {len(snapshot)} images on {plan.page_count} pages "
        f"({size_px}px tiles at {config.dpi} DPI)"
    )

    jobs, key_for = _collect_jobs(plan, by_id, size_px, config.cache_tiles)
    checkpoint()
    tiles = _render_tiles(jobs, size_px, config, checkpoint)

    document = assemble_document(
        plan,
        lambda cell: tiles[key_for(cell)],
        title=title,
        invariant=config.invariant,
        checkpoint=checkpoint,
    )

    elapsed = time.perf_counter() - start_time
    logger.info(f"Export completed in {elapsed:.2f}s")
    return ExportResult(
        document=document,
        plan=plan,
        tile_size_px=size_px,
        tiles_rendered=len(tiles),
        elapsed_seconds=elapsed,
    )


def export_project(
    project: Project,
    config: Optional[ExportConfig] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> ExportResult:
    """
    Export a project snapshot with its selected template.

    The result's filename is derived from the project name.
    """
    result = export_sheet(
        project.images,
        project.template,
        config,
        title=project.name,
        cancel_event=cancel_event,
    )
    return replace(result, filename=project.export_filename(".pdf"))


def _make_checkpoint(cancel_event: Optional[threading.Event]) -> Callable[[], None]:
    def checkpoint() -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ExportCancelled("Export cancelled")
    return checkpoint


def _collect_jobs(
    plan: PagePlan,
    by_id: Dict[str, ProjectImage],
    size_px: int,
    cache_tiles: bool,
) -> Tuple[List[Tuple[Hashable, ProjectImage]], Callable[[CellAssignment], Hashable]]:
    """
    Work out which tiles to render and how cells map onto them.

    With caching, twins (same image, crop and size) share one tile.
    Without it every cell gets its own render.
    """
    if cache_tiles:
        def key_for(cell: CellAssignment) -> Hashable:
            image = by_id[cell.image_id]
            return (image.id, image.crop, size_px)
    else:
        def key_for(cell: CellAssignment) -> Hashable:
            return cell.sequence_index

    jobs: List[Tuple[Hashable, ProjectImage]] = []
    seen = set()
    for _, cell in plan.iter_cells():
        key = key_for(cell)
        if key in seen:
            continue
        seen.add(key)
        jobs.append((key, by_id[cell.image_id]))
    return jobs, key_for


def _render_tiles(
    jobs: List[Tuple[Hashable, ProjectImage]],
    size_px: int,
    config: ExportConfig,
    checkpoint: Callable[[], None],
) -> Dict[Hashable, RenderedTile]:
    """
    Render every job, on a thread pool when more than one worker is allowed.

    Tiles share no mutable state, so they can be rendered in any order;
    the caller assembles them in plan order afterwards.
    """
    background = config.background_rgb
    resample = config.resample_filter

    def render(image: ProjectImage) -> RenderedTile:
        checkpoint()
        return render_project_image(image, size_px, background=background, resample=resample)

    tiles: Dict[Hashable, RenderedTile] = {}
    workers = min(config.max_workers, len(jobs))
    if workers <= 1:
        for key, image in jobs:
            tiles[key] = render(image)
        logger.info(f"Rendered {len(tiles)} tiles")
        return tiles

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tile") as pool:
        futures: List[Tuple[Hashable, Future]] = [
            (key, pool.submit(render, image)) for key, image in jobs
        ]
        try:
            for key, future in futures:
                tiles[key] = future.result()
        except BaseException:
            for _, future in futures:
                future.cancel()
            raise

    logger.info(f"Rendered {len(tiles)} tiles on {workers} threads")
    return tiles
