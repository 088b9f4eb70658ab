"""
Configuration management for the locator
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG = {
    "matching": {
        "ratio": 0.6,
        "sentinel": 1e6,
        "workers": 1
    },
    "calibration": {
        "ransac_threshold": 5.0,
        "ransac_iterations": 2000,
        "min_inliers": 4,
        "min_matches": 4,
        "confidence": 0.995,
        "method": "dlt",
        "refine": False,
        "seed": None
    },
    "projection": {
        "eps": 1e-12
    }
}


def _merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[str] = None,
                overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a configuration from the defaults, a YAML file and overrides.
    
    Args:
        path: Optional YAML file, merged over the defaults
        overrides: Optional dictionary, merged last
        
    Returns:
        Complete configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        _merge(config, loaded)
    
    if overrides:
        _merge(config, copy.deepcopy(overrides))
    
    return config
