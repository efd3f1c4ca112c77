"""Data models for Ghost Inspector suites and tests."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass
class Suite:
    """A remote suite as reported by the API."""

    suite_id: str
    """Stable suite identifier"""

    name: str
    """Current display name"""

    document: dict[str, Any] = field(default_factory=dict)
    """Full suite document (written to suite.json on pull)"""

    @classmethod
    def from_api_response(
        cls, data: dict[str, Any], fallback_name: str = ""
    ) -> "Suite":
        """Create a Suite from an API suite document.

        Args:
            data: Suite document returned by the API
            fallback_name: Name to use when the document carries none

        Returns:
            Suite instance
        """
        return cls(
            suite_id=str(data.get("_id", "")),
            name=data.get("name") or fallback_name,
            document=data,
        )


@dataclass
class TestRecord:
    """A test definition read from a local folder."""

    __test__ = False  # not a pytest test class

    name: str
    """Test name, the join key between local and remote"""

    content: dict[str, Any]
    """Parsed test document"""

    remote_id: Optional[str] = None
    """Remote identifier, set by diff when a remote test has the same name"""

    path: Optional[Path] = None
    """File the record was read from"""


@dataclass
class RemoteTest:
    """A test as listed by the remote suite."""

    remote_id: str
    """Remote test identifier"""

    name: str
    """Test name"""

    content: Optional[dict[str, Any]] = None
    """Full document, filled in once fetched"""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "RemoteTest":
        """Create a RemoteTest from a test listing entry.

        Args:
            data: Entry of the suite test listing

        Returns:
            RemoteTest instance (content stays empty, listings are summaries)
        """
        return cls(remote_id=str(data.get("_id", "")), name=data.get("name", ""))
