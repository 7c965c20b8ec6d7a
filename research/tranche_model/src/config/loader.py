"""Tranche model configuration from YAML plus nested overrides"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import Config

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with overrides applied; nested sections merge key by key"""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_overrides(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    yaml_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """
    Load and validate the ledger, seed and scenario settings.

    Args:
        yaml_path: YAML file to read; the bundled defaults.yaml when omitted
        overrides: Partial settings applied on top, e.g. {"seed": {"lp_price": 1.2}}

    Returns:
        Validated Config
    """
    path = Path(yaml_path) if yaml_path is not None else DEFAULT_CONFIG_PATH
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if overrides:
        data = merge_overrides(data, overrides)
    return Config.from_dict(data)
