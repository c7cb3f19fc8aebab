"""
User configuration persistence.

Stores settings like the save directory and default speed in a JSON file
next to the saves.
"""

import json
from pathlib import Path
from typing import TypedDict


class Config(TypedDict, total=False):
    """User configuration."""
    saves_dir: str        # Where snapshots are written
    save_key: str         # Save slot name
    speed: float          # Default simulation speed (0.25-8)
    autosave: bool        # Debounced save after every change
    seed: int | None      # Fixed seed for new games, None = derive from loan terms


DEFAULT_CONFIG: Config = {
    "saves_dir": "saves",
    "save_key": "autosave",
    "speed": 1.0,
    "autosave": True,
    "seed": None,
}


def get_config_path(saves_dir: Path | str = "saves") -> Path:
    """Get path to config file."""
    return Path(saves_dir) / ".storage_mogul_config.json"


def load_config(saves_dir: Path | str = "saves") -> Config:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(saves_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        if not isinstance(saved, dict):
            return DEFAULT_CONFIG.copy()
        # Merge with defaults to handle missing keys
        config = DEFAULT_CONFIG.copy()
        config.update(saved)
        return config
    except (json.JSONDecodeError, IOError):
        return DEFAULT_CONFIG.copy()


def save_config(config: Config, saves_dir: Path | str = "saves") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(saves_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False


def set_speed(speed: float, saves_dir: Path | str = "saves") -> None:
    """Save default speed preference, clamped to 0.25-8x."""
    config = load_config(saves_dir)
    config["speed"] = min(max(float(speed), 0.25), 8.0)
    save_config(config, saves_dir)


def set_autosave(enabled: bool, saves_dir: Path | str = "saves") -> None:
    config = load_config(saves_dir)
    config["autosave"] = enabled
    save_config(config, saves_dir)


def set_seed(seed: int | None, saves_dir: Path | str = "saves") -> None:
    """Pin (or unpin, with None) the seed used for new games."""
    config = load_config(saves_dir)
    config["seed"] = seed
    save_config(config, saves_dir)
