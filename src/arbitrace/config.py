"""
Runtime configuration for arbitrace.

Values resolve as: explicit overrides (CLI) > environment variables > defaults.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Optional

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_EXPLORER_API_URL = "https://api.arbiscan.io/api"
DEFAULT_SIGNATURE_API_URL = "https://www.4byte.directory/api/v1/signatures/"
DEFAULT_CACHE_DIR = ".arbitrace_cache"

# The contract metadata service allows 5 requests per second
MIN_BATCH_PAUSE = 1.1
MAX_BATCH_SIZE = 5

ENV_PREFIX = "ARBITRACE_"


@dataclass(frozen=True)
class TracerConfig:
    """Configuration shared by the fetcher, the resolvers and the cache store."""

    rpc_url: str = DEFAULT_RPC_URL
    explorer_api_url: str = DEFAULT_EXPLORER_API_URL
    explorer_api_key: str = ""
    signature_api_url: str = DEFAULT_SIGNATURE_API_URL
    cache_dir: str = DEFAULT_CACHE_DIR
    rpc_timeout: int = 30
    http_timeout: int = 10
    batch_size: int = MAX_BATCH_SIZE
    batch_pause: float = MIN_BATCH_PAUSE
    concurrent_traces: bool = False

    def __post_init__(self):
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        if self.batch_pause < MIN_BATCH_PAUSE:
            raise ValueError(f"batch_pause must be at least {MIN_BATCH_PAUSE} seconds")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "TracerConfig":
        """Build a config from ARBITRACE_* environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.type in (int, "int"):
                values[f.name] = int(raw)
            elif f.type in (float, "float"):
                values[f.name] = float(raw)
            elif f.type in (bool, "bool"):
                values[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[f.name] = raw
        return cls(**values)

    def with_overrides(self, **overrides) -> "TracerConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)
