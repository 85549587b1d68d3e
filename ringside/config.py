"""
ringside/config.py - Local configuration management

Reads config from a platform-appropriate config directory:
  - macOS/Linux: ~/.ringside/config.toml
  - Windows: %APPDATA%\\ringside\\config.toml

Example:
    [server]
    host = "0.0.0.0"
    port = 3000
    db = "~/torneio/ringside.db"

    [match]
    round_seconds = 60
    default_phase = "preliminar"
    tick_interval = 1.0

    [bracket.progression]
    preliminar = "semi"
    quartas = "semi"
    semi = "final"
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .bracket import DEFAULT_PROGRESSION
from .match import DEFAULT_PHASE, DEFAULT_ROUND_SECONDS

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "ringside"
    return Path.home() / ".ringside"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_DB_PATH = "ringside.db"


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    db_path: str = DEFAULT_DB_PATH


@dataclass
class MatchConfig:
    """Clock and phase defaults for every match."""

    round_seconds: int = DEFAULT_ROUND_SECONDS
    default_phase: str = DEFAULT_PHASE
    tick_interval: float = 1.0


@dataclass
class RingsideConfig:
    """Top-level configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    match: MatchConfig = field(default_factory=MatchConfig)
    progression: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PROGRESSION))


# ============================================================================
# Parsing
# ============================================================================


def _expand(path: str) -> str:
    """Expand ~ in a path string. ':memory:' passes through."""
    if path == ":memory:":
        return path
    return str(Path(path).expanduser())


def _section(raw: dict, name: str) -> dict:
    data = raw.get(name, {})
    return data if isinstance(data, dict) else {}


def load_config(path: Path | None = None) -> RingsideConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.ringside/config.toml)

    Returns:
        RingsideConfig. Missing file or bad TOML returns the defaults.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        return RingsideConfig()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return RingsideConfig()

    server_data = _section(raw, "server")
    server = ServerConfig(
        host=server_data.get("host", DEFAULT_HOST),
        port=int(server_data.get("port", DEFAULT_PORT)),
        db_path=_expand(server_data.get("db", DEFAULT_DB_PATH)),
    )

    match_data = _section(raw, "match")
    match = MatchConfig(
        round_seconds=int(match_data.get("round_seconds", DEFAULT_ROUND_SECONDS)),
        default_phase=match_data.get("default_phase", DEFAULT_PHASE),
        tick_interval=float(match_data.get("tick_interval", 1.0)),
    )

    # [bracket.progression] replaces the default table wholesale
    progression = dict(DEFAULT_PROGRESSION)
    table = _section(_section(raw, "bracket"), "progression")
    if table:
        progression = {str(k): str(v) for k, v in table.items()}

    return RingsideConfig(server=server, match=match, progression=progression)
