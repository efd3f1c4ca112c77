"""Push: apply a sync plan to a remote suite."""

import logging
from dataclasses import dataclass, field

from ..api import GhostInspectorClient
from ..exceptions import GhostAPIError
from .comparator import SyncAction, SyncPlan

logger = logging.getLogger(__name__)


@dataclass
class PushFailure:
    """A single remote call that failed during push."""

    action: SyncAction
    name: str
    error: str


@dataclass
class PushResult:
    """Outcome of pushing one suite."""

    suite_id: str
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failures: list[PushFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class PushApplier:
    """Executes a SyncPlan against the Ghost Inspector API.

    Every remote call is independent. A failed create, update or delete is
    logged and recorded, and the remaining entries are still attempted, so
    one broken test never blocks its siblings.
    """

    def __init__(self, client: GhostInspectorClient, dry_run: bool = False):
        """Initialize push applier.

        Args:
            client: Ghost Inspector API client
            dry_run: Log the plan without calling the API
        """
        self.client = client
        self.dry_run = dry_run

    def apply(self, suite_id: str, suite_label: str, plan: SyncPlan) -> PushResult:
        """Apply a plan to one suite.

        Args:
            suite_id: Suite ID
            suite_label: Folder/display name used in log messages
            plan: Plan computed by ``diff``

        Returns:
            PushResult listing successes and failures
        """
        result = PushResult(suite_id=suite_id, unchanged=list(plan.unchanged))
        prefix = "[dry-run] Would create" if self.dry_run else "Creating"

        for record in plan.to_create:
            logger.info(
                f"{prefix} test '{record.name}' in suite {suite_id} ({suite_label})"
            )
            if self.dry_run:
                result.created.append(record.name)
                continue
            try:
                self.client.import_test(suite_id, record.content)
            except GhostAPIError as e:
                self._record_failure(result, SyncAction.CREATE, record.name, e)
                continue
            result.created.append(record.name)

        prefix = "[dry-run] Would update" if self.dry_run else "Updating"
        for record, test_id in plan.to_update:
            logger.info(
                f"{prefix} test '{record.name}' ({test_id}) "
                f"in suite {suite_id} ({suite_label})"
            )
            if self.dry_run:
                result.updated.append(record.name)
                continue
            try:
                self.client.update_test(test_id, record.content)
            except GhostAPIError as e:
                self._record_failure(result, SyncAction.UPDATE, record.name, e)
                continue
            result.updated.append(record.name)

        prefix = "[dry-run] Would delete" if self.dry_run else "Deleting"
        for remote_test in plan.to_delete:
            logger.info(
                f"{prefix} test '{remote_test.name}' ({remote_test.remote_id}) "
                f"from suite {suite_id} ({suite_label})"
            )
            if self.dry_run:
                result.deleted.append(remote_test.name)
                continue
            try:
                self.client.delete_test(remote_test.remote_id)
            except GhostAPIError as e:
                self._record_failure(result, SyncAction.DELETE, remote_test.name, e)
                continue
            result.deleted.append(remote_test.name)

        return result

    def _record_failure(
        self,
        result: PushResult,
        action: SyncAction,
        name: str,
        error: GhostAPIError,
    ) -> None:
        logger.error(
            f"Failed to {action.value} test '{name}' in suite {result.suite_id}: "
            f"{error}"
        )
        result.failures.append(PushFailure(action=action, name=name, error=str(error)))
