"""
Configuration - Environment-driven settings and logging setup.

Environment variables:
    KLONDIKE_ENV                      development | production
    KLONDIKE_DATA_DIR                 Where profile stores live (~/.klondike)
    KLONDIKE_AUTOSAVE_SECONDS         Autosave interval for the tick (30)
    KLONDIKE_SNAPSHOT_MAX_AGE_HOURS   Saved games older than this are discarded (24)
    KLONDIKE_LOG_LEVEL                Root log level (INFO)
    ALLOWED_ORIGINS                   Comma-separated CORS origins (*)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    env: str = "development"
    data_dir: Path = field(default_factory=lambda: Path.home() / ".klondike")
    autosave_seconds: float = 30.0
    snapshot_max_age_hours: float = 24.0
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """
        Read settings from the environment.

        Raises ValueError for malformed numbers.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        data_dir = env.get("KLONDIKE_DATA_DIR")
        origins = env.get("ALLOWED_ORIGINS")

        return cls(
            env=env.get("KLONDIKE_ENV", defaults.env),
            data_dir=Path(data_dir).expanduser() if data_dir else defaults.data_dir,
            autosave_seconds=float(env.get("KLONDIKE_AUTOSAVE_SECONDS", defaults.autosave_seconds)),
            snapshot_max_age_hours=float(
                env.get("KLONDIKE_SNAPSHOT_MAX_AGE_HOURS", defaults.snapshot_max_age_hours)
            ),
            log_level=env.get("KLONDIKE_LOG_LEVEL", defaults.log_level).upper(),
            allowed_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins else defaults.allowed_origins
            ),
        )


def configure_logging(level: str | int = "INFO"):
    """Send log records to stderr at the given level."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("klondike").setLevel(level)
