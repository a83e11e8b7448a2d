"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .polling import PollConfig
from .resilience import RetryConfig

API_KEY_ENV = "HONEYCOMB_API_KEY"
DEFAULT_API_URL = "https://api.honeycomb.io/1/"

# Config file search paths (in order of precedence, last wins)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".honeycomb" / "client.yaml",  # User-level defaults
    Path(".honeycomb.yaml"),  # Project-level overrides
]


@dataclass
class ClientConfig:
    """
    Configuration for the honeycomb client.

    Precedence (lowest to highest):
    1. Defaults
    2. ~/.honeycomb/client.yaml
    3. .honeycomb.yaml (project root)
    4. Environment variables (HONEYCOMB_*)
    5. Constructor arguments

    The API key is read once, when the config is built. The client never
    looks at the environment itself.
    """
    api_key: str | None = field(
        default_factory=lambda: os.environ.get(API_KEY_ENV)
    )
    api_url: str = field(
        default_factory=lambda: os.environ.get("HONEYCOMB_API_URL", DEFAULT_API_URL)
    )

    # Request timeout (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("HONEYCOMB_TIMEOUT", "30"))
    )

    # Rate-limit retries for calls that start server-side work
    retry_budget: int = field(
        default_factory=lambda: int(os.environ.get("HONEYCOMB_RETRY_BUDGET", "12"))
    )
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("HONEYCOMB_RATE_LIMIT_DELAY", "5"))
    )
    rate_limit_status: int = 429

    # Query result polling
    poll_budget: int = field(
        default_factory=lambda: int(os.environ.get("HONEYCOMB_POLL_BUDGET", "50"))
    )
    poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("HONEYCOMB_POLL_INTERVAL", "0.1"))
    )

    # In-flight cap for bounded fan-out
    concurrency_limit: int = field(
        default_factory=lambda: int(os.environ.get("HONEYCOMB_CONCURRENCY", "3"))
    )

    # Query defaults
    query_time_range: int = 604800  # 7 days, in seconds
    query_result_limit: int = 10000

    def require_api_key(self) -> str:
        """Return the API key or fail if none was configured."""
        if not self.api_key:
            raise ConfigError(f"Environment variable {API_KEY_ENV} not found")
        return self.api_key

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.retry_budget,
            delay_seconds=self.rate_limit_delay,
            rate_limit_status=self.rate_limit_status,
        )

    def poll_config(self) -> PollConfig:
        return PollConfig(
            max_polls=self.poll_budget,
            interval_seconds=self.poll_interval,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        """Create config from dictionary. Environment variables win over file values."""
        env = os.environ
        return cls(
            api_key=env.get(API_KEY_ENV, data.get("api_key")),
            api_url=env.get("HONEYCOMB_API_URL", data.get("api_url", DEFAULT_API_URL)),
            timeout=float(env.get("HONEYCOMB_TIMEOUT", data.get("timeout", 30))),
            retry_budget=int(env.get("HONEYCOMB_RETRY_BUDGET", data.get("retry_budget", 12))),
            rate_limit_delay=float(env.get("HONEYCOMB_RATE_LIMIT_DELAY", data.get("rate_limit_delay", 5))),
            rate_limit_status=int(data.get("rate_limit_status", 429)),
            poll_budget=int(env.get("HONEYCOMB_POLL_BUDGET", data.get("poll_budget", 50))),
            poll_interval=float(env.get("HONEYCOMB_POLL_INTERVAL", data.get("poll_interval", 0.1))),
            concurrency_limit=int(env.get("HONEYCOMB_CONCURRENCY", data.get("concurrency_limit", 3))),
            query_time_range=int(data.get("query_time_range", 604800)),
            query_result_limit=int(data.get("query_result_limit", 10000)),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> ClientConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, config_file: str | Path | None = None) -> ClientConfig:
        """
        Load config with auto-discovery.

        Search order (last wins):
        1. ~/.honeycomb/client.yaml
        2. .honeycomb.yaml
        3. Explicit config_file argument
        4. Environment variables always override file values
        """
        import yaml

        merged: dict[str, Any] = {}

        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                with open(path, "r") as f:
                    data = yaml.safe_load(f) or {}
                merged.update(data)

        if config_file:
            with open(config_file, "r") as f:
                data = yaml.safe_load(f) or {}
            merged.update(data)

        return cls.from_dict(merged)
