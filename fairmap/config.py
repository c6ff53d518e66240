"""Centralised settings for the fairmap service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("FAIRMAP_WORKSPACE", Path.home() / ".fairmap_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "fairmap.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("FAIRMAP_LOG_LEVEL", "INFO")
    )

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    host: str = field(
        default_factory=lambda: os.environ.get("FAIRMAP_HOST", "127.0.0.1")
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("FAIRMAP_PORT", "6767"))
    )
    session_secret: str = field(
        default_factory=lambda: os.environ.get("FAIRMAP_SESSION_SECRET", "change-me")
    )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    bbox_lat_ext: float = field(
        default_factory=lambda: float(os.environ.get("BBOX_LAT_EXT", "0.02"))
    )
    bbox_lng_ext: float = field(
        default_factory=lambda: float(os.environ.get("BBOX_LNG_EXT", "0.04"))
    )
    max_invisible_results: int = field(
        default_factory=lambda: int(os.environ.get("MAX_INVISIBLE_RESULTS", "5"))
    )
    hashtag_pattern: str = field(
        default_factory=lambda: os.environ.get(
            "HASHTAG_PATTERN", r"#(?P<tag>\w+(?:-\w+)*)"
        )
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)

    def configure_logging(self) -> None:
        """Install the root log handler at the configured level."""
        logging.basicConfig(
            level=getattr(logging, self.log_level.upper(), logging.INFO),
            format=LOG_FORMAT,
        )


# Module-level singleton, import this everywhere:
#   from fairmap.config import settings
settings = Settings()
