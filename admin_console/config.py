"""
Console configuration.

Loaded from environment variables (and a local .env file) with
sensible defaults. The console has no persisted settings.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_USERS_URL = (
    "https://geektrust.s3-ap-southeast-1.amazonaws.com/adminui-problem/members.json"
)


def _env_number(name, cast, default):
    """Positive number from the environment, default when unset or invalid."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        value = None
    if value is None or value <= 0:
        logger.warning(f"Invalid {name} '{raw}', using {default}")
        return default
    return value


@dataclass
class ConsoleConfig:
    """
    Runtime settings for the console.

    Environment variables:
    - USERS_URL: JSON document holding the user array
    - USERS_FETCH_TIMEOUT: Seconds before the fetch gives up (unset = wait)
    - FLASK_SECRET_KEY: Session signing key (random per process if unset)
    - LOG_LEVEL: Root log level (default INFO)
    - WORKSPACE_TTL_SECONDS: Idle lifetime of a session workspace (default 3600)
    - MAX_WORKSPACES: Most workspaces kept in memory (default 1000)
    """
    users_url: str = DEFAULT_USERS_URL
    fetch_timeout: Optional[float] = None
    secret_key: Optional[str] = None
    log_level: str = "INFO"
    workspace_ttl: float = 3600.0
    max_workspaces: int = 1000

    @classmethod
    def from_env(cls) -> "ConsoleConfig":
        load_dotenv()

        timeout_str = os.getenv("USERS_FETCH_TIMEOUT", "").strip()
        fetch_timeout = None
        if timeout_str:
            try:
                fetch_timeout = float(timeout_str)
            except ValueError:
                logger.warning(f"Invalid USERS_FETCH_TIMEOUT '{timeout_str}', fetching without timeout")

        return cls(
            users_url=os.getenv("USERS_URL") or DEFAULT_USERS_URL,
            fetch_timeout=fetch_timeout,
            secret_key=os.getenv("FLASK_SECRET_KEY") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            workspace_ttl=_env_number("WORKSPACE_TTL_SECONDS", float, 3600.0),
            max_workspaces=_env_number("MAX_WORKSPACES", int, 1000),
        )

    def resolve_secret_key(self) -> str:
        """
        Return the session key, generating one for local development.

        Raises:
            RuntimeError: If FLASK_SECRET_KEY is unset in production
        """
        if self.secret_key:
            return self.secret_key
        if os.getenv("FLASK_ENV") == "production":
            raise RuntimeError(
                "CRITICAL: FLASK_SECRET_KEY not set. "
                "Sessions (and their workspaces) would be lost on every restart."
            )
        logger.warning("FLASK_SECRET_KEY not set. Generating random key (sessions will not persist between restarts)")
        return os.urandom(24).hex()
