"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_env(name: str, default: str) -> List[str]:
    """Read a comma-separated environment variable as a list."""
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "info").lower())

    # Coordinator classification
    operator_email_domains: List[str] = field(
        default_factory=lambda: _split_env("OPERATOR_EMAIL_DOMAINS", "peak1031.com")
    )

    # CORS (web only)
    allowed_origins: List[str] = field(
        default_factory=lambda: _split_env("ALLOWED_ORIGINS", "")
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "operator_email_domains": list(self.operator_email_domains),
            "allowed_origins": list(self.allowed_origins),
        }
