"""Global app configuration (logging, randomness, enemy-turn automation).

get_config() returns defaults merged with the stored data/config.json;
update_config() applies a partial update and persists it. Unknown keys
are ignored on both paths.
"""

import json
from pathlib import Path
from typing import Any

_data_dir: Path | None = None

_CONFIG_DEFAULTS: dict[str, Any] = {
    "log_level": "INFO",
    "rng_seed": None,
    "auto_enemy_turns": True,
    "max_enemy_turns": 10,
}


def init_config(data_dir: Path) -> None:
    global _data_dir
    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_config() before using config"
    return _data_dir


def _config_path() -> Path:
    return data_dir() / "config.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config = dict(_CONFIG_DEFAULTS)
    path = _config_path()
    if path.is_file():
        stored = json.loads(path.read_text())
        for key in _CONFIG_DEFAULTS:
            if key in stored:
                config[key] = stored[key]
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config."""
    config = get_config()
    for key, value in fields.items():
        if key in _CONFIG_DEFAULTS:
            config[key] = value
    _config_path().write_text(json.dumps(config, indent=2))
    return config
