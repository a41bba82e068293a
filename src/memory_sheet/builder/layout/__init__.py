"""
Module: builder.layout

Purpose:
    Page planning for card sheets.
    Converts an ordered image list and a template into positioned cells.

Key Functions:
    - plan_pages(): Main entry point for planning

Key Classes:
    - CellAssignment: Card placed in a cell
    - PageSlot: One page of cells
    - PagePlan: Whole export plan

Used By:
    - builder.controller: Export pipeline
"""

from .models import CellAssignment, PageSlot, PagePlan
from .planner import card_origin, duplicate_entries, page_count_for, plan_pages

__all__ = [
    # Models
    "CellAssignment",
    "PageSlot",
    "PagePlan",
    # Functions
    "card_origin",
    "duplicate_entries",
    "page_count_for",
    "plan_pages",
]
