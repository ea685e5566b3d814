import json
import os
import logging
from dataclasses import asdict, fields

from .types import AISettings

def load_settings(path: str = "./data/ai_settings.json") -> AISettings:
    """ Saved values are merged over the defaults; unknown keys are ignored. """
    settings = AISettings()
    if not os.path.exists(path):
        return settings

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("AI settings file must contain an object")
    except (json.JSONDecodeError, ValueError, OSError) as e:
        logging.warning(f"Failed to load AI settings {path}: {e}. Using defaults.")
        return settings

    known = {f.name for f in fields(AISettings)}
    for key, value in data.items():
        if key in known:
            setattr(settings, key, value)
    try:
        settings.temperature = float(settings.temperature)
    except (TypeError, ValueError):
        logging.warning(f"Invalid temperature {settings.temperature!r} in {path}. Using default.")
        settings.temperature = AISettings().temperature
    return settings

def save_settings(settings: AISettings, path: str = "./data/ai_settings.json") -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(asdict(settings), f, indent=2)
    os.replace(tmp_path, path)
