"""Configuration for ghostsync.

Settings are read from environment variables each time they are accessed,
so tests and the CLI can change them without reloading the module.
"""

import os
from pathlib import Path
from typing import Optional

DEFAULT_API_URL = "https://api.ghostinspector.com/v1"
DEFAULT_MAPPING_FILE = "suite-mapping.json"


class Config:
    """Environment-backed configuration."""

    API_KEY_ENV = "GHOST_INSPECTOR_API_KEY"
    FOLDER_ID_ENV = "GHOST_INSPECTOR_FOLDER_ID"
    API_URL_ENV = "GHOST_INSPECTOR_API_URL"
    MAPPING_FILE_ENV = "GHOST_INSPECTOR_MAPPING_FILE"

    @property
    def api_key(self) -> Optional[str]:
        """Ghost Inspector API key."""
        return os.environ.get(self.API_KEY_ENV) or None

    @property
    def folder_id(self) -> Optional[str]:
        """Remote folder whose suites are mirrored by pull."""
        return os.environ.get(self.FOLDER_ID_ENV) or None

    @property
    def api_url(self) -> str:
        """Base URL of the Ghost Inspector API."""
        return (os.environ.get(self.API_URL_ENV) or DEFAULT_API_URL).rstrip("/")

    def get_mapping_path(self, root: Path) -> Path:
        """Get the suite mapping file location.

        Args:
            root: Directory holding the suite folders

        Returns:
            Absolute or root-relative path to the mapping file
        """
        mapping_file = Path(
            os.environ.get(self.MAPPING_FILE_ENV) or DEFAULT_MAPPING_FILE
        )
        if mapping_file.is_absolute():
            return mapping_file
        return root / mapping_file


config = Config()
