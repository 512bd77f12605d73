"""Unit stat loader — parses units.yaml.

The file maps archetype keys to partial stat blocks; any field left out
keeps the built-in value from ``DEFAULT_UNIT_STATS``::

    tank:
      hp: 300
      attack: 50
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any

import yaml

from neotactics.models.unit import DEFAULT_UNIT_STATS, Archetype, UnitStats

log = logging.getLogger(__name__)

DEFAULT_UNITS_PATH = "config/units.yaml"


def load_unit_types(path: str | Path = DEFAULT_UNITS_PATH) -> dict[Archetype, UnitStats]:
    """Load archetype stat blocks, overlaying YAML values on the defaults.

    Args:
        path: Path to the units YAML file.

    Returns:
        A stat block for every archetype.

    Raises:
        ValueError: On an unknown archetype or stat name.
    """
    path = Path(path)
    if not path.exists():
        log.warning("Unit config not found at %s, using built-in stats", path)
        return dict(DEFAULT_UNIT_STATS)

    with path.open() as f:
        data = yaml.safe_load(f) or {}

    types = apply_overrides(DEFAULT_UNIT_STATS, data)
    log.info("Loaded %d unit overrides from %s", len(data), path)
    return types


def apply_overrides(
    base: dict[Archetype, UnitStats],
    overrides: dict[str, dict[str, Any]],
) -> dict[Archetype, UnitStats]:
    """Return a copy of ``base`` with per-field overrides applied."""
    result = dict(base)
    valid_fields = {f.name for f in dataclasses.fields(UnitStats)}
    for key, values in overrides.items():
        try:
            archetype = Archetype(key)
        except ValueError:
            raise ValueError(f"unknown archetype {key!r} in unit config") from None
        values = values or {}
        unknown = set(values) - valid_fields
        if unknown:
            raise ValueError(f"unknown stat(s) {sorted(unknown)} for archetype {key!r}")
        result[archetype] = dataclasses.replace(result[archetype], **values)
    return result
