"""Neo-Tactics entry point.

Loads configuration, builds the game session, starts the first match
and serves the REST/WebSocket bridge for a local renderer:

1. Load configuration (game.yaml, units.yaml)
2. Create the game session (engine services + event bus)
3. Start a match
4. Serve the bridge with uvicorn

Usage:
    python -m neotactics.main --size 15 --seed 7
    # or via entry point:
    neotactics
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import uvicorn

from neotactics.engine.game_session import GameSession
from neotactics.loaders.game_config_loader import GameConfig, load_game_config
from neotactics.loaders.unit_loader import load_unit_types
from neotactics.models.unit import DEFAULT_UNIT_STATS, Archetype, UnitStats
from neotactics.network.rest_api import create_app

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Container for all loaded configuration
# ---------------------------------------------------------------------------


@dataclass
class Configuration:
    """Holds all data loaded from config files."""

    game: GameConfig = field(default_factory=GameConfig)
    unit_types: dict[Archetype, UnitStats] = field(default_factory=lambda: dict(DEFAULT_UNIT_STATS))


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_dir: str = "config") -> Configuration:
    """Load game tunables and unit stats from YAML files.

    Args:
        config_dir: Directory holding ``game.yaml`` and ``units.yaml``.

    Returns:
        Populated :class:`Configuration`.
    """
    log.info("Loading configuration …")
    game_cfg = load_game_config(os.path.join(config_dir, "game.yaml"))
    log.info("  game_config:  map %dx%d", game_cfg.map_size, game_cfg.map_size)
    unit_types = load_unit_types(os.path.join(config_dir, "units.yaml"))
    log.info("  unit_types:   %d archetypes", len(unit_types))
    return Configuration(game=game_cfg, unit_types=unit_types)


# ===================================================================
# 2. Create the session
# ===================================================================


def create_session(config: Configuration) -> GameSession:
    """Instantiate the engine services around a shared event bus."""
    log.info("Creating game session …")
    session = GameSession(config.game, config.unit_types)
    log.info("  all services created")
    return session


# ===================================================================
# 3. Serve
# ===================================================================


async def serve(session: GameSession, host: str, port: int) -> None:
    """Run the bridge until uvicorn is told to stop (Ctrl+C)."""
    app = create_app(session)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info", access_log=False))
    log.info("Bridge listening on http://%s:%d (events on /ws)", host, port)
    await server.serve()
    log.info("  goodbye")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Neo-Tactics simulation server")
    parser.add_argument("--config-dir", default="config", help="Directory with game.yaml / units.yaml")
    parser.add_argument("--host", default=None, help="Bind address (default: from game.yaml)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: from game.yaml)")
    parser.add_argument("--size", type=int, default=None, help="Map size (10, 15, 20, ...)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the first match")
    parser.add_argument("--debug", action="store_true", help="Verbose engine logging")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the simulation server."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== Neo-Tactics starting ===")

    config = load_configuration(args.config_dir)
    session = create_session(config)
    session.new_match(size=args.size, seed=args.seed)

    host = args.host or config.game.rest_host
    port = args.port or config.game.rest_port
    asyncio.run(serve(session, host, port))


if __name__ == "__main__":
    main()
