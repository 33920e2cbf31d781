"""Presentation tables and file exports for the reefer portal."""

from .export import export_filename, export_vessel_events, write_rankings_brief
from .tables import format_percent, ranking_table, view_subtitle

__all__ = [
    "export_filename",
    "export_vessel_events",
    "format_percent",
    "ranking_table",
    "view_subtitle",
    "write_rankings_brief",
]
