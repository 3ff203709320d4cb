"""
Centralized settings and path configuration for the event pricing tool.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


DEFAULT_TIERS = ('early-bird', 'regular', 'onsite')
DEFAULT_AUDIENCES = ('individual', 'member', 'student')


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Event store for the pricing-rules API
    data_dir: Path

    # Backend consumed by the pricing service and scripts
    api_base_url: str = "http://localhost:8000"
    request_timeout: float = 10.0

    log_level: str = "INFO"

    # Dimensions used when an event has no rules yet
    default_tiers: tuple = DEFAULT_TIERS
    default_audiences: tuple = DEFAULT_AUDIENCES

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_dir = os.environ.get('EVENT_PRICING_DATA_DIR')

        return cls(
            project_root=root,
            data_dir=Path(data_dir) if data_dir else root / 'data' / 'events',
            api_base_url=os.environ.get('EVENT_PRICING_API_URL', 'http://localhost:8000').rstrip('/'),
            request_timeout=float(os.environ.get('EVENT_PRICING_TIMEOUT', '10')),
            log_level=os.environ.get('EVENT_PRICING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
