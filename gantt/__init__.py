"""Gantt board: hierarchical task ordering and fixed-grid timeline layout."""
