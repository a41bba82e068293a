"""
Module: builder

Purpose:
    Export pipeline for memory card sheets. Plans pages from a template,
    renders each photo as a cropped square tile and assembles the tiles
    into a PDF.

Key Functions:
    - export_sheet(): Export an image list with a template
    - export_project(): Export a Project snapshot
    - plan_pages(): Pure page planning

Key Classes:
    - ExportConfig: Configuration for exporting
    - ExportResult: Document bytes plus the plan

Dependencies:
    - PIL: Tile rendering
    - reportlab: PDF generation
    - memory_sheet.core: Models, templates, units

Used By:
    - memory_sheet.cli: Command line interface
"""

from .config import ExportConfig
from .layout import plan_pages, PagePlan
from .controller import export_project, export_sheet, ExportResult

__all__ = [
    # Config
    "ExportConfig",
    # Layout
    "plan_pages",
    "PagePlan",
    # Controller
    "export_project",
    "export_sheet",
    "ExportResult",
]
