"""
Configuration service for BugSnap.

This module handles loading, saving, and managing application settings.
Configuration is stored as JSON in ~/.config/bugsnap/config.json following
the XDG Base Directory Specification.

The service is handed to the editor and renderer explicitly; nothing in the
package reads configuration from module globals.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from bugsnap.services.logging_service import get_logger

# Default configuration directory following XDG Base Directory Specification
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "bugsnap"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    # Where Save / PDF export write their files
    "default_save_folder": str(Path.home() / "Pictures" / "BugSnap"),
    # Stroke/fill color of newly drawn annotations
    "annotation_color": "#ef4444",
    "editor": {
        # Draws smaller than this in both axes are discarded
        "min_shape_size": 5,
        # Proximity radius for grabbing a corner handle
        "handle_radius": 10,
        # Seconds around an annotation's timestamp in which it is shown
        "video_match_window": 0.5,
    },
    "render": {
        "max_canvas_width": 1920,
        "sidebar_width": 600,
        "min_canvas_height": 900,
        # Used to estimate the display width of slides not shown in the editor
        "assumed_display_height": 800,
        # JPEG quality used for network attachments (0.0 - 1.0)
        "attachment_quality": 0.7,
    },
    # Free-form settings owned by export destinations (e.g. last used list id)
    "integrations": {},
}


class ConfigService:
    """
    Service for managing application configuration.

    Handles loading, saving, and accessing configuration values.
    Provides sensible defaults when config file is missing or corrupted.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize the ConfigService.

        Args:
            config_path: Optional path to config file. Defaults to
                        ~/.config/bugsnap/config.json
        """
        self._logger = get_logger(__name__)
        self._config_path = config_path or DEFAULT_CONFIG_FILE
        self._config: Dict[str, Any] = {}

        self._load()

    def _load(self) -> None:
        """Load configuration from file, using defaults if needed."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if not self._config_path.exists():
            self._logger.info(
                f"Config file not found at {self._config_path}. Using defaults."
            )
            self._save_to_file()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            if isinstance(loaded_config, dict):
                self._deep_merge(self._config, loaded_config)
                self._logger.info(f"Configuration loaded from {self._config_path}")
                # Save back to ensure any new default keys are persisted
                self._save_to_file()
            else:
                raise ValueError("Config file does not contain a valid JSON object")

        except (json.JSONDecodeError, ValueError) as e:
            self._logger.warning(
                f"Config file corrupted or invalid: {e}. Recreating with defaults."
            )
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save_to_file()

        except OSError as e:
            self._logger.warning(
                f"Could not read config file: {e}. Using defaults."
            )

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save_to_file(self) -> None:
        """Save current configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)

            self._logger.debug(f"Configuration saved to {self._config_path}")

        except OSError as e:
            self._logger.error(f"Could not save config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: The configuration key to retrieve.
            default: Default value if key doesn't exist.

        Returns:
            The configuration value, or default if not found.
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value (in memory only).

        Call save() to persist changes to disk.
        """
        self._config[key] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        """Persist current configuration to disk."""
        self._save_to_file()

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.get(name)
        if isinstance(section, dict):
            return section
        return DEFAULT_CONFIG[name]

    # ─── General Settings ─────────────────────────────────────────────────

    @property
    def default_save_folder(self) -> str:
        """Get the folder exports are written to."""
        return self.get("default_save_folder", DEFAULT_CONFIG["default_save_folder"])

    @property
    def annotation_color(self) -> str:
        """Get the color used for new annotations."""
        return self.get("annotation_color", DEFAULT_CONFIG["annotation_color"])

    # ─── Editor Settings ──────────────────────────────────────────────────

    @property
    def editor(self) -> Dict[str, Any]:
        """Get the editor section merged over its defaults."""
        return {**DEFAULT_CONFIG["editor"], **self._section("editor")}

    # ─── Render Settings ──────────────────────────────────────────────────

    @property
    def render(self) -> Dict[str, Any]:
        """Get the render section merged over its defaults."""
        return {**DEFAULT_CONFIG["render"], **self._section("render")}

    # ─── Integration Settings ─────────────────────────────────────────────

    @property
    def integrations(self) -> Dict[str, Any]:
        """Get the free-form settings owned by export destinations."""
        return self._section("integrations")
