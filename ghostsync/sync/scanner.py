"""Snapshot readers for local suite folders and remote suites."""

import json
import logging
from pathlib import Path
from typing import Optional

from ..api import GhostInspectorClient
from ..models import RemoteTest, TestRecord
from ..utils import SUITE_FILE_NAME, TEST_FILE_SUFFIX

logger = logging.getLogger(__name__)

LocalSnapshot = dict[str, TestRecord]
RemoteSnapshot = dict[str, RemoteTest]


class LocalSnapshotReader:
    """Reads the test definitions stored in a suite folder.

    Only the immediate ``*.json`` files of the folder are considered, and the
    reserved ``suite.json`` is never treated as a test. A folder holding
    ``addToCart.json``, ``pay.json`` and ``suite.json`` yields a snapshot
    with the keys ``addToCart`` and ``pay``.
    """

    def folder_exists(self, folder: Path) -> bool:
        return folder.is_dir()

    def iter_test_files(self, folder: Path) -> list[Path]:
        """List candidate test files of a folder, sorted by name.

        Args:
            folder: Suite folder

        Returns:
            Paths of immediate ``*.json`` files except ``suite.json``
        """
        if not folder.is_dir():
            return []
        return sorted(
            item
            for item in folder.iterdir()
            if item.is_file()
            and item.suffix == TEST_FILE_SUFFIX
            and item.name != SUITE_FILE_NAME
        )

    def read_file(self, file_path: Path) -> Optional[TestRecord]:
        """Parse one test file.

        Args:
            file_path: Test definition file

        Returns:
            TestRecord, or None if the file is unreadable, not a JSON object,
            or has no name
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Skipping unreadable test file {file_path}: {e}")
            return None

        if not isinstance(document, dict):
            logger.warning(f"Skipping {file_path}: not a JSON object")
            return None

        name = document.get("name")
        if not isinstance(name, str) or not name:
            logger.debug(f"Skipping {file_path}: no test name")
            return None

        return TestRecord(name=name, content=document, path=file_path)

    def read_folder(self, folder: Path) -> LocalSnapshot:
        """Build the local snapshot of a suite folder.

        A missing folder yields an empty snapshot. When two files declare
        the same test name, the later file (in filename order) wins.

        Args:
            folder: Suite folder

        Returns:
            Dictionary mapping test name to TestRecord
        """
        snapshot: LocalSnapshot = {}
        if not folder.is_dir():
            logger.debug(f"Folder {folder} does not exist")
            return snapshot

        for file_path in self.iter_test_files(folder):
            record = self.read_file(file_path)
            if record is None:
                continue
            previous = snapshot.get(record.name)
            if previous is not None:
                logger.warning(
                    f"Test name '{record.name}' is declared by both "
                    f"{previous.path} and {file_path}; using {file_path.name}"
                )
            snapshot[record.name] = record

        return snapshot


class RemoteSnapshotReader:
    """Reads the test listing of a remote suite."""

    def __init__(self, client: GhostInspectorClient):
        """Initialize remote snapshot reader.

        Args:
            client: Ghost Inspector API client
        """
        self.client = client
        self.duplicates: list[RemoteTest] = []
        """Remote tests shadowed by a later test of the same name"""

    def read_suite(self, suite_id: str) -> RemoteSnapshot:
        """Build the remote snapshot of a suite.

        Remote names are not guaranteed unique. When two tests share a name
        the last one listed wins and the shadowed test is recorded in
        ``duplicates``; it is neither updated nor deleted by a push.

        Args:
            suite_id: Suite ID

        Returns:
            Dictionary mapping test name to RemoteTest
        """
        self.duplicates = []
        return self.build_snapshot(suite_id, self.client.list_suite_tests(suite_id))

    def build_snapshot(self, suite_id: str, entries: list[dict]) -> RemoteSnapshot:
        """Key a test listing by name.

        Args:
            suite_id: Suite ID (for log messages)
            entries: Test listing entries from the API

        Returns:
            Dictionary mapping test name to RemoteTest
        """
        snapshot: RemoteSnapshot = {}
        for entry in entries:
            remote_test = RemoteTest.from_api_response(entry)
            if not remote_test.name:
                logger.debug(f"Ignoring unnamed test {remote_test.remote_id}")
                continue
            previous = snapshot.get(remote_test.name)
            if previous is not None:
                logger.warning(
                    f"Suite {suite_id} has several tests named "
                    f"'{remote_test.name}' ({previous.remote_id}, "
                    f"{remote_test.remote_id}); using {remote_test.remote_id}"
                )
                self.duplicates.append(previous)
            snapshot[remote_test.name] = remote_test
        return snapshot
