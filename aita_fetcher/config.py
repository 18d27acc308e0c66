"""Configuration handling for the AITA fetcher."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from aita_fetcher.models.item import TimeWindow

VALID_WINDOWS = tuple(window.value for window in TimeWindow)
MAX_REQUEST_TIMEOUT_SEC = 10


@dataclass
class AuthConfig:
    """OAuth password-grant configuration."""

    token_url: str = "https://www.reddit.com/api/v1/access_token"
    max_attempts: int = 5
    backoff_base: float = 2.0
    max_jitter_sec: float = 1.0
    request_timeout_sec: float = 10


@dataclass
class RateLimitConfig:
    """Rate limiting configuration."""

    min_interval_sec: float = 1.1  # Reddit allows 1 request/sec
    burst: int = 1
    min_remaining_calls: int = 5
    sleep_buffer_sec: float = 1


@dataclass
class FetchConfig:
    """Listing and comment retrieval configuration."""

    api_base_url: str = "https://oauth.reddit.com"
    overfetch: int = 5
    comment_limit: int = 100
    comment_timeout_sec: float = 5.0
    request_timeout_sec: float = 10
    meta_markers: List[str] = field(default_factory=lambda: ["open forum", "monthly discussion"])
    default_collection: str = "AmItheAsshole"
    default_window: str = "all"
    default_limit: int = 1


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


def _apply_section(target: Any, values: Dict[str, Any]) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    for key, value in values.items():
        if hasattr(target, key):
            setattr(target, key, value)


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    # Reddit API credentials from environment
    client_id: str = ""
    client_secret: str = ""
    username: str = ""
    password: str = ""
    user_agent: str = "aita_fetcher/0.1"

    auth: AuthConfig = field(default_factory=AuthConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from YAML file and environment variables.

        Args:
            config_path: Path to YAML configuration file (may not exist)
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()
        config.client_id = os.getenv("REDDIT_CLIENT_ID", "")
        config.client_secret = os.getenv("REDDIT_CLIENT_SECRET", "")
        config.username = os.getenv("REDDIT_USERNAME", "")
        config.password = os.getenv("REDDIT_PASSWORD", "")
        config.user_agent = os.getenv("REDDIT_USER_AGENT", config.user_agent)

        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file)

            if yaml_config:
                sections = {
                    "auth": config.auth,
                    "rate_limit": config.rate_limit,
                    "fetch": config.fetch,
                    "monitoring": config.monitoring,
                }
                for key, value in yaml_config.items():
                    if key in sections:
                        if isinstance(value, dict):
                            _apply_section(sections[key], value)
                    elif hasattr(config, key):
                        setattr(config, key, value)

        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.client_id:
            errors.append("Missing REDDIT_CLIENT_ID in environment")
        if not self.client_secret:
            errors.append("Missing REDDIT_CLIENT_SECRET in environment")
        if not self.username:
            errors.append("Missing REDDIT_USERNAME in environment")
        if not self.password:
            errors.append("Missing REDDIT_PASSWORD in environment")
        if not self.user_agent:
            errors.append("Missing REDDIT_USER_AGENT in environment")

        if self.auth.max_attempts < 1:
            errors.append("auth.max_attempts must be at least 1")
        for name, timeout in (
            ("auth.request_timeout_sec", self.auth.request_timeout_sec),
            ("fetch.request_timeout_sec", self.fetch.request_timeout_sec),
        ):
            if timeout <= 0 or timeout > MAX_REQUEST_TIMEOUT_SEC:
                errors.append(f"{name} must be between 0 and {MAX_REQUEST_TIMEOUT_SEC} seconds")

        if self.rate_limit.min_interval_sec <= 0:
            errors.append("rate_limit.min_interval_sec must be greater than 0")
        if self.rate_limit.burst < 1:
            errors.append("rate_limit.burst must be at least 1")

        if self.fetch.overfetch < 0:
            errors.append("fetch.overfetch must not be negative")
        if self.fetch.comment_limit <= 0:
            errors.append("fetch.comment_limit must be greater than 0")
        if self.fetch.comment_timeout_sec <= 0:
            errors.append("fetch.comment_timeout_sec must be greater than 0")
        if self.fetch.default_limit <= 0:
            errors.append("fetch.default_limit must be greater than 0")
        if self.fetch.default_window not in VALID_WINDOWS:
            errors.append(f"fetch.default_window must be one of {', '.join(VALID_WINDOWS)}")

        return errors
