from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the settlement report enricher.

The loader in settlement_enricher.config.loader builds these from YAML and the
environment. The core pipeline only ever sees the resulting frozen objects,
never os.environ.
"""

__all__ = [
    "StoreConfig",
    "EnricherConfig",
    "DEFAULT_REDIS_URL",
    "DEFAULT_KEY_PREFIX",
]

DEFAULT_REDIS_URL = "redis://localhost:6379"
DEFAULT_KEY_PREFIX = "transferModel"


@dataclass(frozen=True)
class StoreConfig:
    """Redis connection settings.

    connect_timeout bounds the initial connect; socket_timeout (optional)
    bounds each individual GET.
    """
    url: str = DEFAULT_REDIS_URL
    connect_timeout: float = 10.0  # seconds
    socket_timeout: float | None = None


@dataclass(frozen=True)
class EnricherConfig:
    """Root configuration object for one enrichment run."""
    store: StoreConfig = field(default_factory=StoreConfig)
    key_prefix: str = DEFAULT_KEY_PREFIX  # keys are <prefix>_in_<id> / <prefix>_out_<id>
    output_directory: str = "./output"
    error_log_directory: str = "./logs"
    progress_interval: int = 10  # report every Nth row (and the last one)
