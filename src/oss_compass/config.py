import os

import yaml

from .errors import ConfigError
from .schemas import MODES


DEFAULT_CONFIG = {
    "github": {
        "token_env": "GITHUB_TOKEN",
        "api_url": "https://api.github.com",
        "request_timeout_sec": 20,
    },
    "cache": {
        "enabled": True,
        "dir": "cache",
        "ttl": {
            "default": 3600,
            "repository": 7200,
            "search": 1800,
            "skills": 86400,
            "trending": 3600,
        },
    },
    "scoring": {
        "default_mode": "profile-building",
        "weights": {},
    },
    "ranking": {
        "max_results": 50,
        "tie_band": 0.03,
    },
    "search": {
        "default_limit": 20,
        "max_limit": 100,
    },
    "enrichment": {
        "enabled": False,
        "max_repos": 10,
        "parallel_workers": 8,
    },
    "output": {
        "dir": "runs",
        "top_n": 10,
    },
    "logging": {
        "level": "INFO",
        "dir": None,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5000,
    },
}


def load_config(path):
    if not path or not os.path.exists(path):
        return _merge_dicts(DEFAULT_CONFIG, {})
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"could not read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping at the top level")
    merged = _merge_dicts(DEFAULT_CONFIG, data)
    validate_config(merged)
    return merged


def merge_config(base, override):
    if not override:
        return base
    merged = _merge_dicts(base, override)
    validate_config(merged)
    return merged


def validate_config(config):
    mode = config.get("scoring", {}).get("default_mode")
    if mode not in MODES:
        raise ConfigError(f"scoring.default_mode must be one of {', '.join(MODES)}, got {mode!r}")
    return config


def github_token(config):
    return os.environ.get(config.get("github", {}).get("token_env", "GITHUB_TOKEN"))


def _merge_dicts(base, override):
    result = {}
    for key, value in base.items():
        if isinstance(value, dict):
            nested = override.get(key)
            result[key] = _merge_dicts(value, nested if isinstance(nested, dict) else {})
        else:
            result[key] = override.get(key, value)
    for key, value in override.items():
        if key not in result:
            result[key] = value
    return result
