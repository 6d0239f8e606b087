"""Disk usage as a drill-down sunburst chart."""

__version__ = "0.1.0"
