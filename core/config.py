"""Configuration models and loading."""

import json
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, Field, ValidationError

from core.exceptions import ConfigurationError
from core.request_types import RouteTarget

CONFIG_DIR = Path.home() / ".config" / "segment-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

MIRROR_HOST_ENV = "SEGMENT_MIRROR_HOST_ENV"
SEGMENT_CDN_HOST = "http://cdn.segment.com"
SEGMENT_TRACKING_API_HOST = "http://api.segment.io"


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False


class UpstreamSettings(BaseModel):
    cdn_url: str = SEGMENT_CDN_HOST
    tracking_api_url: str = SEGMENT_TRACKING_API_HOST


class MirrorSettings(BaseModel):
    url: str | None = None
    # Send the mirror copy from a background task instead of before the forward
    detached: bool = False


class LimitSettings(BaseModel):
    upstream_timeout: float = 300.0
    max_connections: int = 100
    max_keepalive_connections: int = 20
    keep_alive_timeout: int = 5


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstreams: UpstreamSettings = Field(default_factory=UpstreamSettings)
    mirror: MirrorSettings = Field(default_factory=MirrorSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)


@dataclass(frozen=True)
class Targets:
    """Resolved destinations, fixed for the lifetime of the process."""

    cdn: RouteTarget
    tracking_api: RouteTarget
    mirror_url: str | None = None


def parse_target(url: str) -> RouteTarget:
    """Parse an upstream URL, raising ConfigurationError if it is unusable."""
    try:
        httpx.URL(url)
        parts = urlsplit(url)
    except (httpx.InvalidURL, ValueError) as e:
        raise ConfigurationError(f"Failed to parse url {url}: {e}") from e

    if parts.scheme not in ("http", "https"):
        raise ConfigurationError(f"Failed to parse url {url}: scheme must be http or https")
    if not parts.netloc:
        raise ConfigurationError(f"Failed to parse url {url}: missing host")

    return RouteTarget(
        scheme=parts.scheme,
        host=parts.netloc,
        path=parts.path,
        raw_query=parts.query,
    )


def resolve_targets(config: Config) -> Targets:
    """Validate every configured URL and build the route targets."""
    mirror_url = config.mirror.url or None
    if mirror_url:
        parse_target(mirror_url)
    return Targets(
        cdn=parse_target(config.upstreams.cdn_url),
        tracking_api=parse_target(config.upstreams.tracking_api_url),
        mirror_url=mirror_url,
    )


def load_config(
    config_file: Path = CONFIG_FILE,
    env: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from JSON file, creating default if needed.

    The mirror host from the environment overrides the file.
    """
    config = _read_config_file(config_file)
    env = os.environ if env is None else env

    mirror_host = env.get(MIRROR_HOST_ENV, "")
    if mirror_host:
        config.mirror.url = mirror_host

    resolve_targets(config)
    return config


def apply_cli_overrides(config: Config, argv: Sequence[str]) -> Config:
    """Apply --port and --debug from the command line."""
    args = list(argv)
    while args:
        arg = args.pop(0)
        if arg == "--debug":
            config.proxy.debug = True
        elif arg == "--port" or arg.startswith("--port="):
            value = arg.partition("=")[2] if "=" in arg else (args.pop(0) if args else "")
            config.proxy.port = _parse_port(value)
        else:
            raise ConfigurationError(f"Unknown argument: {arg}")
    return config


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid port: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"Invalid port: {value!r}")
    return port


def _read_config_file(config_file: Path) -> Config:
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
