"""
File-backed user preferences.

Holds the theme choice and the set of favourite expert ids in a single
JSON file: {"theme": "dark", "favorites": ["Ada-Lovelace-0", ...]}.
The store is loaded once at startup and saved whenever a value changes.
"""

import json
import logging
from pathlib import Path

from find_my_expert.constants import DEFAULT_THEME, THEMES

logger = logging.getLogger(__name__)


class PreferencesStore:
    """Theme and favourites, persisted as JSON at `path`."""

    def __init__(self, path: Path):
        self.path = path
        self.theme: str = DEFAULT_THEME
        self.favorites: list[str] = []

    def load(self) -> "PreferencesStore":
        """Read preferences from disk. A missing or corrupt file leaves the defaults."""
        if not self.path.exists():
            return self
        try:
            entry = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return self
        if not isinstance(entry, dict):
            return self

        theme = entry.get("theme")
        if theme in THEMES:
            self.theme = theme
        favorites = entry.get("favorites")
        if isinstance(favorites, list):
            self.favorites = [f for f in favorites if isinstance(f, str)]
        return self

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"theme": self.theme, "favorites": self.favorites}))

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}. Must be one of {THEMES}")
        self.theme = theme
        self.save()

    def toggle_favorite(self, expert_id: str) -> bool:
        """Add or remove an expert id; returns True if it is now a favourite."""
        if expert_id in self.favorites:
            self.favorites.remove(expert_id)
            is_favorite = False
        else:
            self.favorites.append(expert_id)
            is_favorite = True
        self.save()
        return is_favorite
