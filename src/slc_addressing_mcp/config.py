"""Addressing configuration loader."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from slc_addressing_mcp.models.config import AddressingConfig


# Default config path: project_root/config/addressing_config.yaml
_CONFIG_SEARCH_PATHS = [
    Path(__file__).resolve().parents[2] / "config" / "addressing_config.yaml",
    Path("config") / "addressing_config.yaml",
]

_DEFAULTS = {
    "circuit": {"max_devices": 25, "max_address": 250, "max_current": 7.0},
    "safe_capacity_threshold": 0.8,
    "spare_capacity": 0.2,
    "start_address": 1,
    "panel_separator": "-",
    "default_panel_id": "DefaultPanel",
}


def load_config(config_path: str | None = None) -> AddressingConfig:
    """Load addressing config, falling back to defaults."""
    cfg = dict(_DEFAULTS)
    cfg["circuit"] = dict(_DEFAULTS["circuit"])

    # Try to load from file
    path = None
    if config_path and os.path.isfile(config_path):
        path = config_path
    else:
        for p in _CONFIG_SEARCH_PATHS:
            if p.is_file():
                path = str(p)
                break

    if path:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data and "addressing" in data:
            section = data["addressing"] or {}
            for key in _DEFAULTS:
                if key not in section or section[key] is None:
                    continue
                if key == "circuit":
                    for limit, value in section["circuit"].items():
                        if value is not None:
                            cfg["circuit"][limit] = value
                else:
                    cfg[key] = section[key]

    return AddressingConfig.model_validate(cfg)
