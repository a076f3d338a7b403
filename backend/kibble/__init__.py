"""Kibble: Kanban boards with consistent task ordering and lifecycle."""

__version__ = "1.0.0"
