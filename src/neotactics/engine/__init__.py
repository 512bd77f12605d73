"""Engine services: pathfinding, combat, turns, AI, commands."""
