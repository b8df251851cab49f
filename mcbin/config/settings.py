"""
mcbin Configuration Settings

This module contains all configuration constants for the client, the
interactive CLI and the stub server used in tests.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Client and stub server configuration settings."""

    # Client connection settings
    HOST: str = os.environ.get("MCBIN_HOST", "localhost")
    PORT: int = int(os.environ.get("MCBIN_PORT", "11211"))
    CONNECT_TIMEOUT: float = float(os.environ.get("MCBIN_CONNECT_TIMEOUT", "5.0"))
    ENCODING: str = os.environ.get("MCBIN_ENCODING", "utf-8")

    # Protocol limits
    MAX_KEY_LENGTH: int = 0xFFFF
    MAX_EXTRAS_LENGTH: int = 0xFF
    MAX_BODY_LENGTH: int = 0xFFFFFFFF

    # Stub server settings
    SERVER_HOST: str = os.environ.get("MCBIN_SERVER_HOST", "127.0.0.1")
    SERVER_PORT: int = int(os.environ.get("MCBIN_SERVER_PORT", "11211"))
    READ_BUFFER_SIZE: int = 65536

    # Logging settings
    DEBUG: bool = os.environ.get("MCBIN_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("MCBIN_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
