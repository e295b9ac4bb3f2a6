"""Scheduling services: slot grid, overlap checks, layout, colors and the view state."""
