"""Persistent mapping of suite IDs to local folder names.

The mapping file is the only durable link between a remote suite and the
local directory it is mirrored to. It is a flat JSON object
``{"<suite id>": "<folder name>"}`` that is loaded once at the start of a
run and saved as a whole at the end.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import GhostMappingError

logger = logging.getLogger(__name__)


@dataclass
class SuiteMapping:
    """In-memory suite mapping for one run."""

    entries: dict[str, str] = field(default_factory=dict)
    """suite_id -> folder name"""

    def get(self, suite_id: str) -> Optional[str]:
        return self.entries.get(suite_id)

    def set(self, suite_id: str, folder_name: str) -> None:
        self.entries[suite_id] = folder_name

    def items(self) -> list[tuple[str, str]]:
        return list(self.entries.items())

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, suite_id: object) -> bool:
        return suite_id in self.entries

    def to_dict(self) -> dict[str, str]:
        """Convert mapping to dictionary for JSON serialization."""
        return dict(sorted(self.entries.items()))

    @classmethod
    def from_dict(cls, data: dict) -> "SuiteMapping":
        """Create SuiteMapping from a parsed JSON object.

        Raises:
            GhostMappingError: If keys or values are not strings
        """
        entries: dict[str, str] = {}
        for suite_id, folder_name in data.items():
            if not isinstance(folder_name, str):
                raise GhostMappingError(
                    f"Folder name for suite {suite_id} must be a string, "
                    f"got {type(folder_name).__name__}"
                )
            entries[str(suite_id)] = folder_name
        return cls(entries=entries)


class SuiteMappingStore:
    """Loads and saves the suite mapping file.

    There is no locking. Running two syncs against the same mapping file
    at once is not supported.
    """

    def __init__(self, mapping_file: Path):
        """Initialize mapping store.

        Args:
            mapping_file: Location of the JSON mapping file
        """
        self.mapping_file = mapping_file

    def load(self) -> SuiteMapping:
        """Load the suite mapping.

        Returns:
            SuiteMapping, empty if the file does not exist yet

        Raises:
            GhostMappingError: If the file exists but cannot be parsed
        """
        if not self.mapping_file.exists():
            logger.debug(f"No suite mapping at {self.mapping_file}, starting empty")
            return SuiteMapping()

        try:
            with open(self.mapping_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise GhostMappingError(
                f"Failed to read suite mapping {self.mapping_file}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise GhostMappingError(
                f"Suite mapping {self.mapping_file} must contain a JSON object"
            )

        mapping = SuiteMapping.from_dict(data)
        logger.debug(f"Loaded {len(mapping)} suite(s) from {self.mapping_file}")
        return mapping

    def save(self, mapping: SuiteMapping) -> None:
        """Save the full suite mapping, replacing the previous file.

        The file is written to a temporary sibling and moved into place so a
        crash never leaves a truncated mapping behind.

        Args:
            mapping: Complete mapping to persist

        Raises:
            GhostMappingError: If the file cannot be written
        """
        directory = self.mapping_file.parent
        tmp_name: Optional[str] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.mapping_file.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(mapping.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.mapping_file)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise GhostMappingError(
                f"Failed to write suite mapping {self.mapping_file}: {e}"
            ) from e

        logger.info(f"Saved {len(mapping)} suite(s) to {self.mapping_file}")
