"""Pull: mirror a remote suite onto its local folder."""

import io
import logging
import shutil
import tempfile
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..api import GhostInspectorClient
from ..exceptions import GhostInvalidResponseError, GhostLocalError
from ..models import Suite
from ..utils import SUITE_FILE_NAME, dump_document, is_valid_folder_name
from .state import SuiteMapping

logger = logging.getLogger(__name__)


@dataclass
class PullResult:
    """Outcome of pulling one suite."""

    suite_id: str
    suite_name: str
    folder: Path
    renamed_from: Optional[str] = None
    written: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.renamed_from or self.written or self.deleted)


def extract_archive(data: bytes, destination: Path) -> None:
    """Extract a suite export archive.

    Args:
        data: Zip archive bytes
        destination: Empty directory to extract into

    Raises:
        GhostInvalidResponseError: If the archive is corrupt or has members
            that would land outside ``destination``
        GhostLocalError: If the extracted files cannot be written
    """
    root = destination.resolve()
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            for member in archive.infolist():
                target = (root / member.filename).resolve()
                if target != root and root not in target.parents:
                    raise GhostInvalidResponseError(
                        f"Export archive member escapes target: {member.filename}"
                    )
            archive.extractall(root)
    except (
        zipfile.BadZipFile,
        zlib.error,
        EOFError,
        NotImplementedError,
        RuntimeError,
    ) as e:
        raise GhostInvalidResponseError(f"Invalid export archive: {e}") from e
    except OSError as e:
        raise GhostLocalError(f"Failed to extract export archive: {e}") from e


class PullApplier:
    """Makes a local suite folder an exact mirror of the remote suite.

    Steps for each suite:

    1. fetch the suite document and extract its export archive
    2. rename the local folder if the suite's display name changed
    3. replace the folder contents with the archive contents, deleting
       anything the archive does not contain
    4. write the suite document to ``suite.json``

    Files are only rewritten when their bytes differ, so pulling an
    unchanged suite twice leaves the folder untouched.
    """

    def __init__(
        self,
        client: GhostInspectorClient,
        root: Path,
        dry_run: bool = False,
    ):
        """Initialize pull applier.

        Args:
            client: Ghost Inspector API client
            root: Directory containing the suite folders
            dry_run: Report changes without touching the filesystem
        """
        self.client = client
        self.root = root
        self.dry_run = dry_run

    def pull_suite(
        self, suite_id: str, listed_name: str, mapping: SuiteMapping
    ) -> PullResult:
        """Pull one suite.

        The mapping is only read here; the caller records the new folder
        name once the pull succeeded.

        Args:
            suite_id: Suite ID
            listed_name: Suite name from the folder listing, used when the
                suite document has none
            mapping: Current suite mapping

        Returns:
            PullResult describing the changes

        Raises:
            GhostAPIError: If fetching the suite or its export fails
            GhostLocalError: If the folder cannot be renamed or written
        """
        suite = Suite.from_api_response(
            self.client.get_suite(suite_id), fallback_name=listed_name
        )
        suite.suite_id = suite_id
        if not is_valid_folder_name(suite.name):
            raise GhostLocalError(
                f"Suite {suite_id} name {suite.name!r} is not a usable folder name"
            )

        old_name = mapping.get(suite_id)
        logger.debug(
            f"Suite {suite_id}: current name '{suite.name}', "
            f"mapped folder '{old_name}'"
        )

        archive = self.client.export_suite(suite_id)

        folder = self.root / suite.name
        result = PullResult(suite_id=suite_id, suite_name=suite.name, folder=folder)

        with tempfile.TemporaryDirectory(prefix=f"ghostsync-{suite_id}-") as tmp:
            export_dir = Path(tmp)
            extract_archive(archive, export_dir)
            result.renamed_from = self._rename_folder(suite, old_name)

            # In dry-run the rename did not happen; compare against the old folder
            mirror_target = folder
            if self.dry_run and result.renamed_from:
                mirror_target = self.root / result.renamed_from

            self._mirror(suite, export_dir, mirror_target, result)

        self._write_suite_file(suite, mirror_target, result)
        return result

    def _rename_folder(self, suite: Suite, old_name: Optional[str]) -> Optional[str]:
        """Rename the mapped folder to the suite's current name.

        Returns:
            The previous folder name if a rename was (or in dry-run would be)
            performed, None otherwise
        """
        if not old_name or old_name == suite.name:
            return None

        old_folder = self.root / old_name
        new_folder = self.root / suite.name
        if not old_folder.is_dir():
            logger.debug(
                f"Suite {suite.suite_id}: mapped folder '{old_name}' is gone, "
                f"pulling into '{suite.name}'"
            )
            return None

        if new_folder.exists():
            raise GhostLocalError(
                f"Cannot rename '{old_name}' to '{suite.name}' for suite "
                f"{suite.suite_id}: target already exists"
            )

        if self.dry_run:
            logger.info(
                f"[dry-run] Would rename folder '{old_name}' to '{suite.name}' "
                f"(suite {suite.suite_id})"
            )
            return old_name

        try:
            old_folder.rename(new_folder)
        except OSError as e:
            raise GhostLocalError(
                f"Failed to rename '{old_name}' to '{suite.name}': {e}"
            ) from e
        logger.info(
            f"Renamed folder '{old_name}' to '{suite.name}' (suite {suite.suite_id})"
        )
        return old_name

    def _mirror(
        self, suite: Suite, source: Path, target: Path, result: PullResult
    ) -> None:
        """Make ``target`` contain exactly the files of ``source``.

        The reserved suite file at the top of ``target`` is left alone.
        """
        try:
            if not self.dry_run:
                target.mkdir(parents=True, exist_ok=True)
            self._copy_tree(suite, source, target, "", result)
            if target.is_dir():
                self._prune_tree(suite, source, target, "", result)
        except OSError as e:
            raise GhostLocalError(
                f"Failed to update folder '{target}' for suite {suite.suite_id}: {e}"
            ) from e

    def _copy_tree(
        self, suite: Suite, source: Path, target: Path, prefix: str, result: PullResult
    ) -> None:
        for item in sorted(source.iterdir()):
            rel_path = f"{prefix}{item.name}"
            dest = target / item.name
            if item.is_dir():
                if dest.exists() and not dest.is_dir():
                    self._remove(suite, dest, rel_path, result)
                if not self.dry_run:
                    dest.mkdir(exist_ok=True)
                self._copy_tree(suite, item, dest, f"{rel_path}/", result)
                continue

            data = item.read_bytes()
            if dest.is_file() and dest.read_bytes() == data:
                continue
            if dest.is_dir():
                self._remove(suite, dest, rel_path, result)
            if self.dry_run:
                logger.info(f"[dry-run] Would write {suite.name}/{rel_path}")
            else:
                dest.write_bytes(data)
                logger.info(f"Wrote {suite.name}/{rel_path} (suite {suite.suite_id})")
            result.written.append(rel_path)

    def _prune_tree(
        self, suite: Suite, source: Path, target: Path, prefix: str, result: PullResult
    ) -> None:
        for item in sorted(target.iterdir()):
            rel_path = f"{prefix}{item.name}"
            if rel_path == SUITE_FILE_NAME:
                continue
            counterpart = source / item.name
            if not counterpart.exists():
                self._remove(suite, item, rel_path, result)
            elif item.is_dir() and counterpart.is_dir():
                self._prune_tree(suite, counterpart, item, f"{rel_path}/", result)

    def _remove(
        self, suite: Suite, path: Path, rel_path: str, result: PullResult
    ) -> None:
        if self.dry_run:
            logger.info(f"[dry-run] Would delete {suite.name}/{rel_path}")
        else:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
            logger.info(f"Deleted {suite.name}/{rel_path} (suite {suite.suite_id})")
        result.deleted.append(rel_path)

    def _write_suite_file(self, suite: Suite, folder: Path, result: PullResult) -> None:
        """Write the suite document to the reserved suite file."""
        suite_file = folder / SUITE_FILE_NAME
        data = dump_document(suite.document)
        if suite_file.is_file() and suite_file.read_bytes() == data:
            return
        if self.dry_run:
            logger.info(f"[dry-run] Would write {suite.name}/{SUITE_FILE_NAME}")
        else:
            try:
                suite_file.write_bytes(data)
            except OSError as e:
                raise GhostLocalError(f"Failed to write {suite_file}: {e}") from e
            logger.info(
                f"Saved suite JSON to {suite.name}/{SUITE_FILE_NAME} "
                f"(suite {suite.suite_id})"
            )
        result.written.append(SUITE_FILE_NAME)
