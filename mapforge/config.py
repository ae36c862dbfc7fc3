"""Runtime settings and logging setup.

Settings come from ``MAPFORGE_*`` environment variables and are read once at
import into ``SETTINGS``; CLI flags override them per run. Malformed numeric
values fall back to the defaults with a warning.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PALETTE_PATH = Path(__file__).resolve().parent / "data" / "colours.csv"

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    map_width: int
    map_height: int
    palette_path: Path
    dither: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            map_width=_env_int("MAPFORGE_MAP_WIDTH", 128),
            map_height=_env_int("MAPFORGE_MAP_HEIGHT", 128),
            palette_path=Path(os.getenv("MAPFORGE_PALETTE", str(DEFAULT_PALETTE_PATH))),
            dither=os.getenv("MAPFORGE_DITHER", "floyd").lower(),
            log_level=os.getenv("MAPFORGE_LOG_LEVEL", "INFO").upper(),
        )


SETTINGS = Settings.from_env()


def configure_logging(level: str | None = None) -> logging.Logger:
    logging.basicConfig(
        level=level or SETTINGS.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return logging.getLogger("mapforge")
