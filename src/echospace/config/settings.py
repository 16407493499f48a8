# src/echospace/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/echospace/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `ECHOSPACE_LOG_LEVEL`, `ECHOSPACE_CATALOG_PATH`)
- an external YAML file via `ECHOSPACE_CONFIG_PATH`

Design rule:
- Radii, cone angles and screen constants live in YAML, not hard-coded in the engine.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from echospace.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `echospace.config`."""
    text = resources.files("echospace.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "Echo Space"
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    # None means the sample catalog packaged with `echospace.catalog`.
    path: str | None = None


class StorageSettings(BaseModel):
    seed_sample_data: bool = True
    index_cell_size_deg: float = Field(0.01, gt=0)


class ProximitySettings(BaseModel):
    ar_radius_m: float = Field(100, ge=0)
    nearby_radius_m: float = Field(500, ge=0)


class ArSettings(BaseModel):
    cone_half_angle_deg: float = Field(60, ge=0, le=180)
    center_x: float = 50
    percent_per_degree: float = 2
    min_screen_x: float = 10
    max_screen_x: float = 90
    horizon_y: float = 60
    meters_per_percent: float = Field(2, gt=0)

    @model_validator(mode="after")
    def _validate_band(self) -> "ArSettings":
        if self.max_screen_x < self.min_screen_x:
            raise ValueError("ar.max_screen_x must be >= ar.min_screen_x")
        return self


class SensorSettings(BaseModel):
    location_max_age_seconds: float = Field(30, gt=0)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    ar: ArSettings = Field(default_factory=ArSettings)
    sensors: SensorSettings = Field(default_factory=SensorSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("ECHOSPACE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("ECHOSPACE_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("ECHOSPACE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
