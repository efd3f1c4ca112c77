"""Utility functions for ghostsync."""

import json
from typing import Any

# =============================================================================
# Constants
# =============================================================================

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Request timeout
DEFAULT_TIMEOUT: float = 30.0  # seconds

# Reserved file holding the suite document inside every suite folder
SUITE_FILE_NAME: str = "suite.json"

# Extension of test definition files
TEST_FILE_SUFFIX: str = ".json"

# Server-assigned fields that never take part in content comparison
VOLATILE_FIELDS: frozenset[str] = frozenset(
    {"_id", "dateCreated", "dateUpdated", "suite"}
)


# =============================================================================
# Document utilities
# =============================================================================


def strip_volatile_fields(document: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a test document without server-assigned fields.

    Args:
        document: Test document

    Returns:
        New dictionary without ``_id``, ``dateCreated``, ``dateUpdated``
        and ``suite``

    Examples:
        >>> strip_volatile_fields({"_id": "a1", "name": "login"})
        {'name': 'login'}
    """
    return {k: v for k, v in document.items() if k not in VOLATILE_FIELDS}


def dump_document(document: Any) -> bytes:
    """Serialize a document the way it is stored on disk.

    Args:
        document: JSON-serializable document

    Returns:
        UTF-8 encoded JSON with two-space indentation
    """
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


# =============================================================================
# Folder name utilities
# =============================================================================


def is_valid_folder_name(name: str) -> bool:
    """Check whether a suite display name can be used as a folder name.

    Args:
        name: Suite display name

    Returns:
        True if the name is a single, non-special path component

    Examples:
        >>> is_valid_folder_name("Login Flow")
        True
        >>> is_valid_folder_name("../etc")
        False
        >>> is_valid_folder_name("")
        False
    """
    if not name or not name.strip():
        return False
    if name in (".", ".."):
        return False
    return "/" not in name and "\\" not in name and "\x00" not in name
