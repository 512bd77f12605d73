"""Data models: tiles, grid, units, match state."""
