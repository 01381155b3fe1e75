"""
kvfile Configuration Settings

This module contains the configuration defaults for kvfile caches.
Every value can be overridden through the environment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Cache configuration settings."""

    # TTL settings (seconds, inf means no expiration)
    DEFAULT_TTL: float = float(os.environ.get("KVFILE_DEFAULT_TTL", "inf"))

    # Write-back settings
    FLUSH_DELAY: float = float(os.environ.get("KVFILE_FLUSH_DELAY", "0"))  # 0 = next loop tick
    FLUSH_AT_EXIT: bool = os.environ.get("KVFILE_FLUSH_AT_EXIT", "true").lower() == "true"

    # Snapshot file settings
    ENCODING: str = os.environ.get("KVFILE_ENCODING", "utf-8")

    # Logging settings
    DEBUG: bool = os.environ.get("KVFILE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("KVFILE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
