"""Game constants — floating-text colors, map limits.

Tunable numbers (costs, income, chances) live in ``GameConfig``; the
values here are fixed rules of the game.
"""

# -- Floating text colors ------------------------------------------------

COLOR_DAMAGE: str = "#ef4444"
"""Damage numbers and rejected commands."""

COLOR_SUCCESS: str = "#10b981"
"""Construction finished, debris fields, repairs."""

COLOR_WARNING: str = "#fbbf24"
"""Reactive fire and construction starts."""

COLOR_INCOME_PLAYER: str = "#4ade80"
COLOR_INCOME_ENEMY: str = "#f87171"

COLOR_REPAIR: str = "#00ffff"
COLOR_DRILL: str = "#a855f7"

# -- Map -----------------------------------------------------------------

MIN_MAP_SIZE: int = 6
"""Smallest board where the corner start zones do not overlap."""

RECOGNIZED_MAP_SIZES: tuple[int, ...] = (10, 15, 20)

SPAWN_SEARCH_RADII: tuple[int, ...] = (1, 2)
"""Chebyshev rings searched around a base for a free spawn tile."""

ENEMY_BASE_PLACEMENT_ATTEMPTS: int = 100
