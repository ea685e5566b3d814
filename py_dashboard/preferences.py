"""
Small per-user dashboard state kept across sessions: the last few
instrument searches and the instrument last used in the trade form.
"""
import json
import os
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List

MAX_RECENT_SEARCHES = 3


@dataclass
class UiPreferences:
    recent_searches: List[str] = field(default_factory=list)
    last_stock: Dict[str, str] = field(default_factory=lambda: {"code": "", "name": ""})

    def remember_search(self, text: str) -> None:
        """ Most recent first, no duplicates, at most MAX_RECENT_SEARCHES entries. """
        text = text.strip()
        if not text:
            return
        others = [s for s in self.recent_searches if s != text]
        self.recent_searches = [text] + others[:MAX_RECENT_SEARCHES - 1]

    def clear_searches(self) -> None:
        self.recent_searches = []

    def remember_stock(self, code: str, name: str) -> None:
        self.last_stock = {"code": code, "name": name}


def load_preferences(path: str = "./data/ui_prefs.json") -> UiPreferences:
    prefs = UiPreferences()
    if not os.path.exists(path):
        return prefs

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Preferences file must contain an object")
    except (json.JSONDecodeError, ValueError, OSError) as e:
        logging.warning(f"Failed to load preferences {path}: {e}. Using defaults.")
        return prefs

    recent = data.get("recent_searches", [])
    if isinstance(recent, list):
        prefs.recent_searches = [s for s in recent if isinstance(s, str) and s.strip()][:MAX_RECENT_SEARCHES]

    last = data.get("last_stock")
    if isinstance(last, dict) and isinstance(last.get("code"), str):
        name = last.get("name")
        prefs.remember_stock(last["code"], name if isinstance(name, str) else "")
    return prefs


def save_preferences(prefs: UiPreferences, path: str = "./data/ui_prefs.json") -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(asdict(prefs), f, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)
