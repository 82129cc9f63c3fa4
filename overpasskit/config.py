"""
Configuration settings for overpasskit
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse
from typing import Dict, Optional
import os

from dotenv import dotenv_values
from loguru import logger


class Endpoint(str, Enum):
    """Known public Overpass API instances"""
    OVERPASS_API = "https://overpass-api.de/api/interpreter"
    MIATARU = "https://overpass.miataru.com/api/interpreter"
    KUMI_SYSTEMS = "https://overpass.kumi.systems/api/interpreter"


class OutputFormat(str, Enum):
    """Output formats understood by the [out:...] directive"""
    JSON = "json"
    XML = "xml"
    CSV = "csv"


@dataclass
class APIConfig:
    """Overpass endpoint and request settings"""
    # Any http(s) URL is accepted, the Endpoint values are just the known mirrors
    overpass_url: str = Endpoint.OVERPASS_API.value

    # Seconds the server may spend on a query ([timeout:N] directive)
    server_timeout: int = 20
    # Seconds the client waits; must exceed server_timeout
    client_timeout: float = 22.0

    output_format: str = OutputFormat.JSON.value

    # Concurrent connections to one endpoint
    max_connections: int = 4

    # User agent for API requests
    user_agent: str = "overpasskit/1.0 (+https://wiki.openstreetmap.org/wiki/Overpass_API)"


@dataclass
class CacheConfig:
    """Response cache settings"""
    ttl_seconds: float = 300.0
    max_entries: int = 50
    sweep_interval_seconds: float = 300.0
    enable_sweeper: bool = False


@dataclass
class ClientConfig:
    """Top-level configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    # JSON key-value store holding favorite locations
    favorites_path: str = os.path.join(os.path.expanduser("~"), ".overpasskit", "store.json")

    # Most recent searches kept by SearchSession
    search_history_limit: int = 50


# Global config instance
config = ClientConfig()


def get_config() -> ClientConfig:
    """Get global configuration"""
    return config


def read_environment(env_file: Optional[str] = None) -> Dict[str, str]:
    """
    Process environment layered over the first .env file found

    Variables already set in the process win over the file, and the
    process environment itself is left untouched.
    """
    if env_file:
        env_paths = [Path(env_file)]
    else:
        env_paths = [
            Path.cwd() / ".env",  # Current working directory
            Path.home() / ".env",  # Home directory
        ]
    for env_path in env_paths:
        if env_path.is_file():
            logger.debug(f"Loaded .env file from {env_path}")
            values = {k: v for k, v in dotenv_values(env_path).items() if v is not None}
            return {**values, **os.environ}
    return dict(os.environ)


def load_config_from_env(base: Optional[ClientConfig] = None, env_file: Optional[str] = None) -> ClientConfig:
    """
    Apply OVERPASSKIT_* environment overrides to a configuration.

    Recognized variables: OVERPASSKIT_ENDPOINT, OVERPASSKIT_USER_AGENT,
    OVERPASSKIT_SERVER_TIMEOUT, OVERPASSKIT_CLIENT_TIMEOUT,
    OVERPASSKIT_MAX_CONNECTIONS, OVERPASSKIT_CACHE_TTL,
    OVERPASSKIT_CACHE_MAX_ENTRIES, OVERPASSKIT_FAVORITES_PATH.
    They may also come from a .env file (env_file, or .env in the current
    or home directory). Values that fail to convert raise ValueError.
    """
    cfg = base if base is not None else ClientConfig()
    env = read_environment(env_file)

    if env.get("OVERPASSKIT_ENDPOINT"):
        cfg.api.overpass_url = env["OVERPASSKIT_ENDPOINT"].strip()
    if env.get("OVERPASSKIT_USER_AGENT"):
        cfg.api.user_agent = env["OVERPASSKIT_USER_AGENT"].strip()
    if env.get("OVERPASSKIT_SERVER_TIMEOUT"):
        cfg.api.server_timeout = int(env["OVERPASSKIT_SERVER_TIMEOUT"])
    if env.get("OVERPASSKIT_CLIENT_TIMEOUT"):
        cfg.api.client_timeout = float(env["OVERPASSKIT_CLIENT_TIMEOUT"])
    if env.get("OVERPASSKIT_MAX_CONNECTIONS"):
        cfg.api.max_connections = int(env["OVERPASSKIT_MAX_CONNECTIONS"])
    if env.get("OVERPASSKIT_CACHE_TTL"):
        cfg.cache.ttl_seconds = float(env["OVERPASSKIT_CACHE_TTL"])
    if env.get("OVERPASSKIT_CACHE_MAX_ENTRIES"):
        cfg.cache.max_entries = int(env["OVERPASSKIT_CACHE_MAX_ENTRIES"])
    if env.get("OVERPASSKIT_FAVORITES_PATH"):
        cfg.favorites_path = env["OVERPASSKIT_FAVORITES_PATH"]

    return cfg


def is_valid_endpoint(url: str) -> bool:
    """True for syntactically valid http(s) URLs"""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_config(config: ClientConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = []

    if config.api is None:
        errors.append("api configuration is required but not set")
    else:
        if not is_valid_endpoint(config.api.overpass_url):
            errors.append(f"api.overpass_url must be an http(s) URL, got {config.api.overpass_url!r}")
        if config.api.server_timeout <= 0:
            errors.append(f"api.server_timeout must be positive, got {config.api.server_timeout}")
        if config.api.client_timeout <= config.api.server_timeout:
            errors.append(
                f"api.client_timeout ({config.api.client_timeout}) must exceed "
                f"api.server_timeout ({config.api.server_timeout})"
            )
        if config.api.output_format not in [f.value for f in OutputFormat]:
            errors.append(f"api.output_format must be one of json, xml, csv, got {config.api.output_format!r}")
        if config.api.max_connections < 1:
            errors.append(f"api.max_connections must be at least 1, got {config.api.max_connections}")
        if not config.api.user_agent:
            errors.append("api.user_agent is required but not set")

    if config.cache is None:
        errors.append("cache configuration is required but not set")
    else:
        if config.cache.ttl_seconds <= 0:
            errors.append(f"cache.ttl_seconds must be positive, got {config.cache.ttl_seconds}")
        if config.cache.max_entries < 1:
            errors.append(f"cache.max_entries must be at least 1, got {config.cache.max_entries}")
        if config.cache.sweep_interval_seconds <= 0:
            errors.append(f"cache.sweep_interval_seconds must be positive, got {config.cache.sweep_interval_seconds}")

    if config.search_history_limit < 0:
        errors.append(f"search_history_limit must not be negative, got {config.search_history_limit}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
