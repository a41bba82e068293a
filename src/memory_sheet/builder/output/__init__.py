"""
Module: builder.output

Purpose:
    PDF assembly for card sheets.
    Converts a PagePlan plus rendered tiles to PDF bytes using ReportLab.

Key Functions:
    - assemble_document(): Render plan to PDF bytes

Dependencies:
    - reportlab: PDF generation

Used By:
    - builder.controller: Pipeline orchestration
"""

from .assembler import assemble_document

__all__ = [
    "assemble_document",
]
