"""
Server configuration.

Configuration can be provided directly, from a YAML file, or via
environment variables. Environment variables win over the file.

Environment Variables:
    NOTED_BACKEND: Storage backend, "local" or "redis" (default: local)
    NOTED_DATA_DIR: Root directory for local stores (default: ~/.noted/data)
    NOTED_REDIS_URL: Redis URL for the redis backend
    NOTED_DEV: "true" to run in development mode (dev: / dev/ key prefixes)
    NOTED_HOST: Bind address (default: 127.0.0.1)
    NOTED_PORT: Listen port (default: 9339)
    NOTED_IDENTITY_HEADER: Trusted header carrying the user's email
    NOTED_USER_HEADER: Trusted header carrying the user's display name
    NOTED_DEV_IDENTITY: Fixed identity used instead of headers (dev only)
    NOTED_ANALYTICS_URL: Endpoint receiving analytics events
    NOTED_ANALYTICS_TOKEN: Bearer token for the analytics endpoint
    NOTED_MAX_BODY_BYTES: Largest accepted request body (default: 32 MiB)
    NOTED_LOG_LEVEL: Logging level name (default: INFO)
    NOTED_JSON_LOGS: "false" for plain-text logs (default: true)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ValidationError

DEFAULT_DATA_DIR = Path.home() / ".noted" / "data"
DEFAULT_PORT = 9339


class BackendType(Enum):
    """Storage backend for user stores."""

    LOCAL = "local"  # File-backed append-only store
    REDIS = "redis"  # Sharded log on a remote key-value store


@dataclass
class ServerConfig:
    """Configuration for the notes server.

    Attributes:
        backend: Which storage backend to use
        data_dir: Root directory for local user stores
        redis_url: Connection URL for the redis backend
        dev: Development mode; prefixes remote keys so dev and prod can share a database
        host: Bind address
        port: Listen port
        identity_header: Header set by the authenticating proxy with the user's email
        user_header: Header with the user's display name
        dev_identity: Fixed identity for local development
        analytics_url: Where analytics events are POSTed (logged only if unset)
        analytics_token: Bearer token for analytics_url
        max_body_bytes: Largest accepted request body (content uploads)
        log_level: Logging level name
        json_logs: Emit structured JSON logs
    """

    backend: BackendType = BackendType.LOCAL
    data_dir: Path = DEFAULT_DATA_DIR
    redis_url: str | None = None
    dev: bool = False

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT

    identity_header: str = "X-Forwarded-Email"
    user_header: str = "X-Forwarded-User"
    dev_identity: str | None = None

    analytics_url: str | None = None
    analytics_token: str | None = None

    max_body_bytes: int = 32 * 1024 * 1024

    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.backend, BackendType):
            self.backend = parse_backend(str(self.backend))
        self.data_dir = Path(self.data_dir).expanduser()
        self.port = _parse_port(str(self.port))

    @property
    def key_prefix(self) -> str:
        """Prefix for remote log keys."""
        return "dev:" if self.dev else ""

    @property
    def content_prefix(self) -> str:
        """Prefix for remote content keys."""
        return "dev/" if self.dev else ""

    def validate(self) -> ServerConfig:
        """Check the configuration is usable.

        Raises:
            ValidationError: If required settings are missing
        """
        if self.backend == BackendType.REDIS and not self.redis_url:
            raise ValidationError("redis_url", "required for the redis backend")
        if not 0 < self.port < 65536:
            raise ValidationError("port", "must be between 1 and 65535", str(self.port))
        if self.dev_identity and not self.dev:
            raise ValidationError("dev_identity", "only allowed in development mode")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValidationError("log_level", "unknown logging level", self.log_level)
        return self

    @classmethod
    def from_environment(cls, base: ServerConfig | None = None) -> ServerConfig:
        """Create configuration from environment variables.

        Args:
            base: Values to start from (e.g. loaded from a file)

        Returns:
            ServerConfig with environment overrides applied
        """
        values = _as_dict(base or cls())
        env = os.environ

        if "NOTED_BACKEND" in env:
            values["backend"] = parse_backend(env["NOTED_BACKEND"])
        if "NOTED_DATA_DIR" in env:
            values["data_dir"] = Path(env["NOTED_DATA_DIR"])
        if "NOTED_REDIS_URL" in env:
            values["redis_url"] = env["NOTED_REDIS_URL"].strip() or None
        if "NOTED_DEV" in env:
            values["dev"] = env["NOTED_DEV"].lower() == "true"
        if "NOTED_HOST" in env:
            values["host"] = env["NOTED_HOST"]
        if "NOTED_PORT" in env:
            values["port"] = _parse_port(env["NOTED_PORT"])
        if "NOTED_IDENTITY_HEADER" in env:
            values["identity_header"] = env["NOTED_IDENTITY_HEADER"]
        if "NOTED_USER_HEADER" in env:
            values["user_header"] = env["NOTED_USER_HEADER"]
        if "NOTED_DEV_IDENTITY" in env:
            values["dev_identity"] = env["NOTED_DEV_IDENTITY"] or None
        if "NOTED_ANALYTICS_URL" in env:
            values["analytics_url"] = env["NOTED_ANALYTICS_URL"] or None
        if "NOTED_ANALYTICS_TOKEN" in env:
            values["analytics_token"] = env["NOTED_ANALYTICS_TOKEN"] or None
        if "NOTED_MAX_BODY_BYTES" in env:
            values["max_body_bytes"] = _parse_int("max_body_bytes", env["NOTED_MAX_BODY_BYTES"])
        if "NOTED_LOG_LEVEL" in env:
            values["log_level"] = env["NOTED_LOG_LEVEL"].upper()
        if "NOTED_JSON_LOGS" in env:
            values["json_logs"] = env["NOTED_JSON_LOGS"].lower() != "false"

        return cls(**values)

    @classmethod
    def from_file(cls, path: Path) -> ServerConfig:
        """Load configuration from a YAML file.

        ```yaml
        server:
          backend: local
          data_dir: /var/lib/noted
          port: 9339
          dev: false
        ```

        Raises:
            ValidationError: If the file is not valid YAML or has unknown keys
        """
        path = Path(path)
        try:
            content = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValidationError("config", f"cannot load {path}: {e}") from e

        section = content.get("server", content) if isinstance(content, dict) else None
        if not isinstance(section, dict):
            raise ValidationError("config", f"{path} must contain a mapping")

        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValidationError("config", f"unknown settings: {', '.join(sorted(unknown))}")
        return cls(**section)

    @classmethod
    def load(cls, path: Path | None = None) -> ServerConfig:
        """File (if given), then environment overrides."""
        base = cls.from_file(path) if path else None
        return cls.from_environment(base)


def parse_backend(value: str) -> BackendType:
    try:
        return BackendType(value.strip().lower())
    except ValueError:
        raise ValidationError("backend", "must be 'local' or 'redis'", value) from None


def _parse_port(value: str) -> int:
    return _parse_int("port", value)


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValidationError(name, "must be an integer", value) from None


def _as_dict(config: ServerConfig) -> dict[str, Any]:
    return {f.name: getattr(config, f.name) for f in fields(config)}
