"""
Persistence of the last-used source and destination folders.

Settings are stored as JSON:

    {
      "FileRouter": {
        "SourceFolder": "C:\\Inbox",
        "DestinationFolder": "C:\\Sorted"
      }
    }
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "appsettings.json"
SECTION = "FileRouter"


@dataclass
class Settings:
    """Folder pair remembered between runs."""
    source_folder: str = ""
    destination_folder: str = ""


def default_settings_path() -> Path:
    """Settings file in the current working directory."""
    return Path.cwd() / SETTINGS_FILENAME


class SettingsStore:
    """Loads and saves Settings at a fixed path."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Settings:
        """
        Load settings from disk.

        A missing, unreadable or malformed file gives empty settings.
        """
        if not self.path.exists():
            logger.debug(f"No settings file at {self.path}")
            return Settings()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read settings from {self.path}: {e}")
            return Settings()

        section = data.get(SECTION) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            logger.warning(f"Settings file {self.path} has no '{SECTION}' section")
            return Settings()

        return Settings(
            source_folder=str(section.get("SourceFolder") or ""),
            destination_folder=str(section.get("DestinationFolder") or ""),
        )

    def save(self, settings: Settings) -> None:
        """Write settings to disk, creating the parent folder if needed."""
        data = {
            SECTION: {
                "SourceFolder": settings.source_folder,
                "DestinationFolder": settings.destination_folder,
            }
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug(f"Saved settings to {self.path}")
