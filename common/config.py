from __future__ import annotations

"""
Runtime configuration.

`config/params.yaml` is optional; missing keys fall back to DEFAULT_PARAMS.
The Mapillary credential is read from the environment when the config object
is built, and an explicit value in params.yaml wins over the environment.
"""

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from common.types import IMAGE_FIELDS


DEFAULT_PARAMS_PATH = "config/params.yaml"
TOKEN_ENV_VARS: Tuple[str, ...] = ("MAPILLARY_ACCESS_TOKEN", "MAPILLARY_TOKEN")

DEFAULT_PARAMS: Dict[str, Any] = {
    "mapillary": {
        "base_url": "https://graph.mapillary.com",
        "fields": list(IMAGE_FIELDS),
        "timeout_s": None,
    },
    "walker": {
        # Gramado bus station (Rodoviaria de Gramado)
        "home_lat": -29.378889,
        "home_lng": -50.876111,
        "home_bearing": 90.0,
        "wrap_bearing": False,
        "clamp_coordinates": False,
    },
    "logging": {"level": "INFO"},
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_params(path: Optional[str] = None) -> Dict[str, Any]:
    """Read params YAML (if present) layered over DEFAULT_PARAMS."""
    path = path or os.environ.get("WALKER_PARAMS", DEFAULT_PARAMS_PATH)
    p = Path(path)
    if not p.exists():
        return copy.deepcopy(DEFAULT_PARAMS)
    with p.open("r") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return _merge(DEFAULT_PARAMS, loaded)


def token_from_env() -> str:
    """First non-empty token variable, or "" (an empty token is allowed)."""
    for name in TOKEN_ENV_VARS:
        val = os.environ.get(name)
        if val:
            return val
    return ""


@dataclass(frozen=True)
class MapillaryConfig:
    access_token: str = ""
    base_url: str = "https://graph.mapillary.com"
    fields: Tuple[str, ...] = IMAGE_FIELDS
    timeout_s: Optional[float] = None  # None = wait for the server indefinitely

    @classmethod
    def from_env(cls) -> "MapillaryConfig":
        return cls(access_token=token_from_env())

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> "MapillaryConfig":
        m = params.get("mapillary", {})
        timeout = m.get("timeout_s")
        return cls(
            access_token=str(m.get("access_token") or token_from_env()),
            base_url=str(m.get("base_url", cls.base_url)).rstrip("/"),
            fields=tuple(m.get("fields") or IMAGE_FIELDS),
            timeout_s=float(timeout) if timeout is not None else None,
        )


@dataclass(frozen=True)
class WalkerConfig:
    home_lat: float = -29.378889
    home_lng: float = -50.876111
    home_bearing: float = 90.0
    wrap_bearing: bool = False
    clamp_coordinates: bool = False

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> "WalkerConfig":
        w = params.get("walker", {})
        return cls(
            home_lat=float(w.get("home_lat", cls.home_lat)),
            home_lng=float(w.get("home_lng", cls.home_lng)),
            home_bearing=float(w.get("home_bearing", cls.home_bearing)),
            wrap_bearing=bool(w.get("wrap_bearing", False)),
            clamp_coordinates=bool(w.get("clamp_coordinates", False)),
        )

