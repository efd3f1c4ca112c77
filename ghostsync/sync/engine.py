"""Core sync engine that runs pull and push over all suites."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ..api import GhostInspectorClient
from ..exceptions import GhostAPIError, GhostLocalError
from ..output import OutputFormatter
from .comparator import SyncPlan, diff
from .pull import PullApplier
from .push import PushApplier, PushResult
from .scanner import LocalSnapshotReader, RemoteSnapshot, RemoteSnapshotReader
from .state import SuiteMapping

logger = logging.getLogger(__name__)


class SyncEngine:
    """Orchestrates pull and push across suites.

    Suites are processed one at a time. A failure inside one suite is
    reported and recorded in the stats, and the next suite is processed.
    """

    def __init__(
        self,
        client: GhostInspectorClient,
        root: Path,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: Ghost Inspector API client
            root: Directory containing the suite folders
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.root = root
        self.output = output or OutputFormatter()
        self.local_reader = LocalSnapshotReader()

    # =========================
    # Pull
    # =========================

    def pull_folder(
        self, folder_id: str, mapping: SuiteMapping, dry_run: bool = False
    ) -> dict:
        """Mirror every suite of a remote folder to the local filesystem.

        ``mapping`` is updated in place for each suite that was pulled
        successfully (not in dry-run); saving it is up to the caller.

        Args:
            folder_id: Remote folder ID
            mapping: Suite mapping loaded for this run
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with pull statistics

        Raises:
            GhostAPIError: If the folder's suites cannot be listed
        """
        suites = self.client.list_folder_suites(folder_id)
        logger.debug(f"Folder {folder_id} has {len(suites)} suite(s)")

        stats = self._create_empty_pull_stats()
        applier = PullApplier(self.client, self.root, dry_run=dry_run)

        for entry in suites:
            suite_id = str(entry.get("_id", ""))
            listed_name = entry.get("name", "")
            if not suite_id:
                logger.warning(f"Skipping suite without ID: {listed_name!r}")
                stats["skipped"] += 1
                continue

            stats["suites"] += 1
            self.output.info(f"Pulling suite {suite_id} ({listed_name})...")

            try:
                result = applier.pull_suite(suite_id, listed_name, mapping)
            except (GhostAPIError, GhostLocalError) as e:
                logger.error(f"Failed to pull suite {suite_id} ({listed_name}): {e}")
                stats["failed_suites"].append(suite_id)
                continue

            if not dry_run:
                mapping.set(suite_id, result.suite_name)
            if result.renamed_from:
                stats["renamed"] += 1
            stats["files_written"] += len(result.written)
            stats["files_deleted"] += len(result.deleted)

            if result.changed:
                self.output.info(
                    f"  {result.suite_name}: {len(result.written)} written, "
                    f"{len(result.deleted)} deleted"
                )
            else:
                self.output.info(f"  {result.suite_name}: up to date")

        return stats

    # =========================
    # Push
    # =========================

    def push_all(
        self, mapping: SuiteMapping, dry_run: bool = False, max_workers: int = 1
    ) -> dict:
        """Push every mapped suite folder to its remote suite.

        Args:
            mapping: Suite mapping loaded for this run
            dry_run: If True, only show what would be done
            max_workers: Parallel fetches of remote test documents per suite

        Returns:
            Dictionary with push statistics
        """
        stats = self._create_empty_push_stats()

        for suite_id, folder_name in mapping.items():
            folder = self.root / folder_name
            if not self.local_reader.folder_exists(folder):
                logger.info(
                    f"Folder {folder_name} does not exist, skipping suite {suite_id}"
                )
                stats["skipped"] += 1
                continue

            stats["suites"] += 1
            self.output.info(f"Pushing suite {suite_id} from folder {folder_name}...")

            try:
                result = self.push_suite(
                    suite_id, folder_name, dry_run=dry_run, max_workers=max_workers
                )
            except GhostAPIError as e:
                logger.error(f"Failed to push suite {suite_id} ({folder_name}): {e}")
                stats["failed_suites"].append(suite_id)
                continue

            stats["creates"] += len(result.created)
            stats["updates"] += len(result.updated)
            stats["deletes"] += len(result.deleted)
            stats["unchanged"] += len(result.unchanged)
            stats["failures"] += len(result.failures)
            if not result.ok:
                stats["failed_suites"].append(suite_id)

        return stats

    def push_suite(
        self,
        suite_id: str,
        folder_name: str,
        dry_run: bool = False,
        max_workers: int = 1,
    ) -> PushResult:
        """Push one suite folder.

        Args:
            suite_id: Suite ID
            folder_name: Local folder name of the suite
            dry_run: If True, only show what would be done
            max_workers: Parallel fetches of remote test documents

        Returns:
            PushResult for the suite

        Raises:
            GhostAPIError: If the remote suite cannot be read
        """
        local_tests = self.local_reader.read_folder(self.root / folder_name)
        remote_tests = RemoteSnapshotReader(self.client).read_suite(suite_id)

        common = set(local_tests) & set(remote_tests)
        if max_workers > 1 and len(common) > 1:
            remote_tests = self._prefetch_documents(remote_tests, common, max_workers)

        plan = diff(local_tests, remote_tests, self.client.get_test)
        self._display_sync_plan(folder_name, plan, dry_run)

        applier = PushApplier(self.client, dry_run=dry_run)
        return applier.apply(suite_id, folder_name, plan)

    def _prefetch_documents(
        self, remote_tests: RemoteSnapshot, names: set[str], max_workers: int
    ) -> RemoteSnapshot:
        """Fetch full documents of the given tests in parallel.

        Returns:
            New snapshot in which the named tests carry their content
        """
        prefetched = dict(remote_tests)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_name = {
                executor.submit(
                    self.client.get_test, remote_tests[name].remote_id
                ): name
                for name in names
            }
            for future in as_completed(future_to_name):
                name = future_to_name[future]
                prefetched[name] = replace(remote_tests[name], content=future.result())
        return prefetched

    def _display_sync_plan(
        self, folder_name: str, plan: SyncPlan, dry_run: bool
    ) -> None:
        if self.output.quiet:
            return

        if plan.is_empty:
            self.output.info(f"  {folder_name}: up to date")
            return

        header = "Plan (dry run)" if dry_run else "Plan"
        self.output.info(f"  {header}:")
        if plan.to_create:
            self.output.info(f"    + Create: {len(plan.to_create)} test(s)")
        if plan.to_update:
            self.output.info(f"    ~ Update: {len(plan.to_update)} test(s)")
        if plan.to_delete:
            self.output.info(f"    - Delete: {len(plan.to_delete)} test(s)")
        if plan.unchanged:
            self.output.info(f"    = Unchanged: {len(plan.unchanged)} test(s)")

    @staticmethod
    def _create_empty_pull_stats() -> dict:
        return {
            "suites": 0,
            "skipped": 0,
            "renamed": 0,
            "files_written": 0,
            "files_deleted": 0,
            "failed_suites": [],
        }

    @staticmethod
    def _create_empty_push_stats() -> dict:
        return {
            "suites": 0,
            "skipped": 0,
            "creates": 0,
            "updates": 0,
            "deletes": 0,
            "unchanged": 0,
            "failures": 0,
            "failed_suites": [],
        }
