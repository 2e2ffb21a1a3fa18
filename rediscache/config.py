"""Configuration for the Redis cache layer.

Timeouts and TTL are expressed in seconds. Any option left at its zero value
is replaced by a fixed default when a Cache handle is built, so callers only
need to set the options they care about.
"""

import os
import logging
from dataclasses import dataclass, replace

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ============================================================================
# Defaults
# ============================================================================

DEFAULT_TTL = 600  # 10 minutes
DEFAULT_KEY_PREFIX = "app"
DEFAULT_READ_TIMEOUT = 0.3
DEFAULT_WRITE_TIMEOUT = 0.5
DEFAULT_PIPELINE_TIMEOUT = 1.0


def _env_number(env_var: str, cast=float):
    """Get a number from the environment or 0 (meaning "use the default")."""
    raw = os.getenv(env_var)
    if raw is None or raw == "":
        return cast(0)
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Invalid {env_var}={raw!r}, using default")
        return cast(0)


@dataclass(frozen=True)
class CacheOptions:
    """TTL, key namespace and per-operation time ceilings.

    Attributes:
        ttl: Expiry applied to every written key (seconds)
        key_prefix: Namespace prepended to every key built by the handle
        read_timeout: Ceiling for single key/field reads (seconds)
        write_timeout: Ceiling for single key writes (seconds)
        pipeline_timeout: Ceiling for multi-command rebuilds (seconds)
    """

    ttl: int = 0
    key_prefix: str = ""
    read_timeout: float = 0
    write_timeout: float = 0
    pipeline_timeout: float = 0

    def with_defaults(self) -> "CacheOptions":
        """Return a copy with every unset (zero or negative) option defaulted."""
        return replace(
            self,
            ttl=self.ttl if self.ttl > 0 else DEFAULT_TTL,
            key_prefix=self.key_prefix or DEFAULT_KEY_PREFIX,
            read_timeout=self.read_timeout if self.read_timeout > 0 else DEFAULT_READ_TIMEOUT,
            write_timeout=self.write_timeout if self.write_timeout > 0 else DEFAULT_WRITE_TIMEOUT,
            pipeline_timeout=(
                self.pipeline_timeout if self.pipeline_timeout > 0 else DEFAULT_PIPELINE_TIMEOUT
            ),
        )

    @classmethod
    def from_env(cls) -> "CacheOptions":
        """Load options from CACHE_* environment variables.

        Environment Variables:
            CACHE_TTL: Key expiry in seconds (default: 600)
            CACHE_KEY_PREFIX: Key namespace (default: app)
            CACHE_READ_TIMEOUT: Read ceiling in seconds (default: 0.3)
            CACHE_WRITE_TIMEOUT: Write ceiling in seconds (default: 0.5)
            CACHE_PIPELINE_TIMEOUT: Rebuild ceiling in seconds (default: 1.0)

        Returns:
            CacheOptions with unset values left at zero; defaults are
            applied by with_defaults()
        """
        return cls(
            ttl=_env_number("CACHE_TTL", int),
            key_prefix=os.getenv("CACHE_KEY_PREFIX", ""),
            read_timeout=_env_number("CACHE_READ_TIMEOUT"),
            write_timeout=_env_number("CACHE_WRITE_TIMEOUT"),
            pipeline_timeout=_env_number("CACHE_PIPELINE_TIMEOUT"),
        )
