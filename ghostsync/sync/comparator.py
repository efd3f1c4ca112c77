"""Test comparison logic for push operations."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional

from ..models import RemoteTest, TestRecord
from ..utils import strip_volatile_fields
from .scanner import LocalSnapshot, RemoteSnapshot

DocumentFetcher = Callable[[str], dict[str, Any]]


class SyncAction(str, Enum):
    """Actions that can be taken for a test during push."""

    CREATE = "create"
    """Import local test into the remote suite"""

    UPDATE = "update"
    """Replace remote test with the local document"""

    DELETE = "delete"
    """Delete remote test that no longer exists locally"""

    SKIP = "skip"
    """Test is identical on both sides"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync one test."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    name: str
    """Test name"""

    local_test: Optional[TestRecord]
    """Local test (if exists)"""

    remote_test: Optional[RemoteTest]
    """Remote test (if exists)"""


@dataclass
class SyncPlan:
    """Remote changes needed to make a suite match its local folder."""

    to_create: list[TestRecord] = field(default_factory=list)
    to_update: list[tuple[TestRecord, str]] = field(default_factory=list)
    to_delete: list[RemoteTest] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def delete_ids(self) -> set[str]:
        return {remote_test.remote_id for remote_test in self.to_delete}

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)

    @classmethod
    def from_decisions(cls, decisions: list[SyncDecision]) -> "SyncPlan":
        plan = cls()
        for decision in decisions:
            if decision.action == SyncAction.CREATE and decision.local_test:
                plan.to_create.append(decision.local_test)
            elif (
                decision.action == SyncAction.UPDATE
                and decision.local_test
                and decision.remote_test
            ):
                plan.to_update.append(
                    (decision.local_test, decision.remote_test.remote_id)
                )
            elif decision.action == SyncAction.DELETE and decision.remote_test:
                plan.to_delete.append(decision.remote_test)
            elif decision.action == SyncAction.SKIP:
                plan.unchanged.append(decision.name)
        return plan


def documents_equal(local: dict[str, Any], remote: dict[str, Any]) -> bool:
    """Compare two test documents ignoring server-assigned fields.

    Equality is exact and structural: key order does not matter, every other
    difference does.

    Args:
        local: Local test document
        remote: Remote test document

    Returns:
        True if the documents match after stripping volatile fields
    """
    return strip_volatile_fields(local) == strip_volatile_fields(remote)


class TestComparator:
    """Compares local and remote snapshots of a suite by test name."""

    __test__ = False  # not a pytest test class

    def __init__(self, fetch_document: Optional[DocumentFetcher] = None):
        """Initialize test comparator.

        Args:
            fetch_document: Callable returning the full remote document for a
                test ID; used for tests whose content was not prefetched
        """
        self.fetch_document = fetch_document

    def compare(
        self,
        local_tests: LocalSnapshot,
        remote_tests: RemoteSnapshot,
    ) -> list[SyncDecision]:
        """Compare local and remote tests and determine sync actions.

        Args:
            local_tests: Dictionary mapping test name to TestRecord
            remote_tests: Dictionary mapping test name to RemoteTest

        Returns:
            List of SyncDecision objects, one per name, sorted by name
        """
        decisions: list[SyncDecision] = []

        for name in sorted(set(local_tests) | set(remote_tests)):
            local_test = local_tests.get(name)
            remote_test = remote_tests.get(name)

            if local_test is not None and remote_test is not None:
                decisions.append(self._compare_existing(name, local_test, remote_test))
            elif local_test is not None:
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CREATE,
                        reason="New local test",
                        name=name,
                        local_test=local_test,
                        remote_test=None,
                    )
                )
            elif remote_test is not None:
                decisions.append(
                    SyncDecision(
                        action=SyncAction.DELETE,
                        reason="Test deleted locally",
                        name=name,
                        local_test=None,
                        remote_test=remote_test,
                    )
                )

        return decisions

    def _remote_content(self, remote_test: RemoteTest) -> dict[str, Any]:
        if remote_test.content is not None:
            return remote_test.content
        if self.fetch_document is None:
            raise ValueError(
                f"Remote test {remote_test.remote_id} has no content "
                "and no fetcher was given"
            )
        return self.fetch_document(remote_test.remote_id)

    def _compare_existing(
        self, name: str, local_test: TestRecord, remote_test: RemoteTest
    ) -> SyncDecision:
        """Compare a test that exists on both sides.

        The decision carries a copy of the local record bound to the remote
        test ID.
        """
        matched = replace(local_test, remote_id=remote_test.remote_id)
        if documents_equal(local_test.content, self._remote_content(remote_test)):
            return SyncDecision(
                action=SyncAction.SKIP,
                reason="Tests are identical",
                name=name,
                local_test=matched,
                remote_test=remote_test,
            )
        return SyncDecision(
            action=SyncAction.UPDATE,
            reason="Local test differs from remote",
            name=name,
            local_test=matched,
            remote_test=remote_test,
        )


def diff(
    local_tests: LocalSnapshot,
    remote_tests: RemoteSnapshot,
    fetch_document: Optional[DocumentFetcher] = None,
) -> SyncPlan:
    """Compute the plan that makes the remote suite match the local folder.

    Neither snapshot is modified; fetched remote documents are not cached
    on the RemoteTest objects.

    Args:
        local_tests: Local snapshot
        remote_tests: Remote snapshot
        fetch_document: Fetches remote documents not already present

    Returns:
        SyncPlan with creates, updates and deletes
    """
    comparator = TestComparator(fetch_document)
    return SyncPlan.from_decisions(comparator.compare(local_tests, remote_tests))
