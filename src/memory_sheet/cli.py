"""
Command line interface for building memory card sheets.

Usage:
    memory-sheet photos/*.jpg -t grid-6 -n "Summer 2024"
    memory-sheet a.png b.png --crops crops.json -o out/sheet.pdf
    memory-sheet --list-templates
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from memory_sheet import __version__
from memory_sheet.builder import ExportConfig, export_project
from memory_sheet.builder.config import RESAMPLE_FILTERS
from memory_sheet.core.errors import ExportError
from memory_sheet.core.models import CropState, Project, SourceImage
from memory_sheet.core.templates import (
    DEFAULT_TEMPLATE_ID,
    UnknownTemplateError,
    list_templates,
    resolve_template_id,
)

logger = logging.getLogger("memory_sheet")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memory-sheet",
        description="Lay out photos as printable memory card pairs (PDF).",
    )
    parser.add_argument("images", nargs="*", type=Path, help="Image files (JPEG, PNG, WebP)")
    parser.add_argument(
        "-t", "--template",
        default=DEFAULT_TEMPLATE_ID.value,
        help=f"Layout template id (default: {DEFAULT_TEMPLATE_ID.value})",
    )
    parser.add_argument("-o", "--output", type=Path, help="Output PDF path")
    parser.add_argument("-n", "--name", default="memory", help="Project name")
    parser.add_argument(
        "--crops",
        type=Path,
        help="JSON file mapping image paths (or file names) to crop states",
    )
    parser.add_argument("-j", "--jobs", type=int, default=4, help="Tile rendering threads")
    parser.add_argument("--dpi", type=int, default=300, help="Tile density (default: 300)")
    parser.add_argument(
        "--resample",
        choices=sorted(RESAMPLE_FILTERS),
        default="lanczos",
        help="Resampling filter for tiles",
    )
    parser.add_argument("--list-templates", action="store_true", help="List templates and exit")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")


def load_crops(path: Path) -> Dict[str, CropState]:
    """
    Read crop states keyed by image path or bare file name.

    Raises:
        ValueError: If the file is not a JSON object of crop dicts
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object keyed by image path or file name")
    crops = {}
    for name, entry in data.items():
        try:
            crops[name] = CropState.from_dict(entry)
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"{path}: bad crop for {name!r} ({e})") from e
    return crops


def build_project(
    paths: Sequence[Path],
    name: str,
    template: str,
    crops: Optional[Dict[str, CropState]] = None,
) -> Project:
    """
    Build a Project from image files.

    Unreadable and unsupported files are skipped with a warning. Crops
    are looked up by the path as given, then by bare file name.
    """
    project = Project.create(name).with_template(template)
    sources: List[SourceImage] = []
    paths_by_id: Dict[str, Path] = {}
    for path in paths:
        try:
            source = SourceImage.from_path(path)
        except (OSError, ExportError) as e:
            logger.warning(f"Skipping {path}: {e}")
            continue
        sources.append(source)
        paths_by_id[source.id] = Path(path)
    project = project.add_images(sources)

    for image in project.images:
        crop = _crop_for(crops or {}, paths_by_id[image.id], image.name)
        if crop is not None:
            project = project.update_crop(image.id, crop.to_dict())
    return project


def _crop_for(
    crops: Dict[str, CropState], path: Path, name: str
) -> Optional[CropState]:
    for key in (str(path), path.as_posix(), name):
        if key in crops:
            return crops[key]
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    if args.list_templates:
        for template in list_templates():
            print(template.describe())
        return 0

    if not args.images:
        parser.error("no images given")
    try:
        template_id = resolve_template_id(args.template)
    except UnknownTemplateError:
        parser.error(f"unknown template {args.template!r}")
    try:
        config = ExportConfig(dpi=args.dpi, max_workers=args.jobs, resample=args.resample)
        crops = load_crops(args.crops) if args.crops else None
    except (OSError, ValueError) as e:
        parser.error(str(e))

    project = build_project(args.images, args.name, template_id, crops)
    if not project.images:
        logger.error("No usable images")
        return 1

    try:
        result = export_project(project, config)
    except KeyboardInterrupt:
        logger.error("Export interrupted")
        return 130
    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return 1

    output = args.output or Path(result.filename)
    try:
        result.write_to(output)
    except OSError as e:
        logger.error(f"Could not write {output}: {e}")
        return 1
    logger.info(f"{result.page_count} pages, {project.image_count} pairs -> {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
