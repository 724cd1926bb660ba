from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class GPSConfig(BaseModel):
    """gpsd connection and device feed configuration."""

    enabled: bool = Field(True)
    host: str = Field("localhost")
    port: int = Field(2947, ge=1, le=65535)
    timeout: float = Field(10.0, ge=1.0)
    reconnect_delay: float = Field(5.0, ge=1.0)
    mock_mode: bool = Field(False)  # Simulated walk instead of gpsd
    mock_lat: float = Field(41.0082, ge=-90, le=90)
    mock_lon: float = Field(28.9784, ge=-180, le=180)
    stale_after_secs: float | None = Field(None, gt=0)  # None = never stale


class RelayConfig(BaseModel):
    publish_interval_secs: float = Field(5.0, gt=0, le=3600)
    module_id: str = Field("module", min_length=1)
    send_timeout_secs: float = Field(2.0, gt=0, le=60)


class WebConfig(BaseModel):
    bind_host: str = Field("0.0.0.0")
    bind_port: int = Field(8080, ge=1, le=65535)
    ws_path: str = Field("/ws")
    title: str = Field("Real-Time Location Sharing")

    @field_validator("bind_host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        if not value or any(c.isspace() for c in value):
            raise ValueError("bind_host must be a valid hostname or IP")
        return value

    @field_validator("ws_path")
    @classmethod
    def _validate_ws_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("ws_path must start with '/'")
        return value


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    format: str = Field("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    file: Path | None = Field(None)

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"invalid log level: {value}")
        return level

    @field_validator("file")
    @classmethod
    def _expand_file(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None


class RelayAppConfig(BaseModel):
    gps: GPSConfig = Field(default_factory=GPSConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Path) -> RelayAppConfig:
    with Path(path).expanduser().open("r", encoding="utf-8") as fp:
        raw = yaml.safe_load(fp) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config root must be a mapping, got {type(raw).__name__}")
    try:
        return RelayAppConfig.model_validate(raw)
    except ValidationError as exc:  # pragma: no cover - formatting
        raise ValueError(str(exc)) from exc


def resolve_config_path(cli_path: Path | None) -> Path:
    """Resolve config path by priority: CLI, env, /etc/gpsrelay, repo configs."""
    candidates: list[Path] = []
    if cli_path:
        p = Path(cli_path).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    env = os.environ.get("GPSRELAY_CONFIG")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    for p in [Path("/etc/gpsrelay/gpsrelay.yml"), Path("configs/gpsrelay.yml")]:
        if p.exists():
            return p.resolve()
        candidates.append(p)
    # First candidate even if missing, so the caller reports a consistent error
    return candidates[0]
