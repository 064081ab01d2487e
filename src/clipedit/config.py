"""Engine settings loader.

Settings file schema (every key optional):
  composition:                 # defaults for `clipedit new`
    width: 1920
    height: 1080
    fps: 30
    durationInFrames: 300
  edit:
    defaultDurationInFrames: 90  # for added elements that omit it
  paths:
    media: "/path/to/media"      # ${media} in plan files
"""

import copy
from pathlib import Path

import yaml


DEFAULT_CONFIG = {
    "composition": {
        "width": 1920,
        "height": 1080,
        "fps": 30,
        "durationInFrames": 300,
    },
    "edit": {
        "defaultDurationInFrames": 90,
    },
    "paths": {},
}


def load_config(config_path: str | Path | None = None) -> dict:
    """Load settings from *config_path*, merged over DEFAULT_CONFIG.

    Args:
        config_path: YAML settings file, or None for the defaults.

    Returns:
        Complete settings dict; every section and key is present.

    Raises:
        ValueError: Unknown section or key, non-positive integer setting,
            or non-string path variable.
        FileNotFoundError: Missing settings file.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config {config_path}: top level must be a mapping")

    unknown = set(raw) - set(DEFAULT_CONFIG)
    if unknown:
        raise ValueError(
            f"Config {config_path}: unknown section(s) {sorted(unknown)}. "
            f"Valid: {sorted(DEFAULT_CONFIG)}"
        )

    for section in ("composition", "edit"):
        values = raw.get(section) or {}
        if not isinstance(values, dict):
            raise ValueError(f"Config {config_path}: '{section}' must be a mapping")
        for key, value in values.items():
            if key not in config[section]:
                raise ValueError(
                    f"Config {config_path}: unknown key '{section}.{key}'. "
                    f"Valid: {sorted(config[section])}"
                )
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(
                    f"Config {config_path}: '{section}.{key}' must be a "
                    f"positive integer, got {value!r}"
                )
            config[section][key] = value

    paths = raw.get("paths") or {}
    if not isinstance(paths, dict):
        raise ValueError(f"Config {config_path}: 'paths' must be a mapping")
    for name, value in paths.items():
        if not isinstance(value, str):
            raise ValueError(
                f"Config {config_path}: path variable '{name}' must be a string"
            )
    config["paths"] = dict(paths)

    return config
