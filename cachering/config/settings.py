"""
cachering Configuration Settings

This module contains the tunables shared by the ring and the fixture tool.
Every cooperating implementation must use the same POINTS_PER_SERVER and
HASH_STRATEGY to produce identical key assignments.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Ring configuration settings."""

    # Continuum settings
    POINTS_PER_SERVER: int = int(os.environ.get("CACHERING_POINTS_PER_SERVER", "40"))
    HASH_STRATEGY: str = os.environ.get("CACHERING_HASH_STRATEGY", "ketama")

    # Server entry settings
    DEFAULT_WEIGHT: int = 1
    MIN_PORT: int = 1
    MAX_PORT: int = 65535

    # Logging settings
    DEBUG: bool = os.environ.get("CACHERING_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("CACHERING_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
