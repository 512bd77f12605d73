"""Neo-Tactics: turn-based tactical simulation engine."""
