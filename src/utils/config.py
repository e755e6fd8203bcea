from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import os
import yaml


DEFAULT_IMAGE_BASE_URL = "https://source.unsplash.com/600x400/"


@dataclass(frozen=True)
class APIConfig:
    base_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class ImageConfig:
    # NOTE: verify=False only builds image URLs; the browser/client falls back to the placeholder itself.
    base_url: str = DEFAULT_IMAGE_BASE_URL
    verify: bool = False
    timeout_seconds: float = 5.0


@dataclass(frozen=True)
class SessionConfig:
    discard_stale_responses: bool = True


def _project_root() -> Path:
    # Resolve from this file: .../src/utils/config.py -> project root is 3 parents up.
    return Path(__file__).resolve().parents[2]


def _config_path(path: str | None) -> Path:
    return Path(path or os.getenv("TRAVEL_EXPLORER_API_CONFIG") or (_project_root() / "config" / "api.yaml"))


def load_api_config(path: str | None = None) -> APIConfig:
    """
    Load the country lookup config from YAML.

    Precedence:
    - explicit `path`
    - env `TRAVEL_EXPLORER_API_CONFIG`
    - project default `config/api.yaml`
    """
    cfg_path = _config_path(path)
    cfg = load_yaml(cfg_path)
    api = cfg.get("api") or {}

    base_url = api.get("base_url")
    timeout_seconds = api.get("timeout_seconds")

    missing: list[str] = []
    if not base_url:
        missing.append("api.base_url")
    if timeout_seconds is None:
        missing.append("api.timeout_seconds")
    if missing:
        raise ValueError(f"Missing {', '.join(missing)} in {cfg_path}")

    return APIConfig(
        base_url=str(base_url),
        timeout_seconds=float(timeout_seconds),
    )


def load_image_config(path: str | None = None) -> ImageConfig:
    """
    Load image lookup settings. The `images` section is optional; absent keys keep their defaults.
    """
    cfg_path = _config_path(path)
    images = load_yaml(cfg_path).get("images") or {}

    return ImageConfig(
        base_url=str(images.get("base_url") or DEFAULT_IMAGE_BASE_URL),
        verify=bool(images.get("verify", False)),
        timeout_seconds=float(images.get("timeout_seconds", 5.0)),
    )


def load_session_config(path: str | None = None) -> SessionConfig:
    cfg_path = _config_path(path)
    session = load_yaml(cfg_path).get("session") or {}
    return SessionConfig(discard_stale_responses=bool(session.get("discard_stale_responses", True)))


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    return yaml.safe_load(p.read_text(encoding="utf-8")) or {}
