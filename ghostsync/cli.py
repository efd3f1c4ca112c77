"""CLI interface for ghostsync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import GhostInspectorClient
from .config import config
from .exceptions import GhostAPIError, GhostConfigError, GhostMappingError
from .output import OutputFormatter
from .sync import SuiteMappingStore, SyncEngine

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_SUITE_FAILURES = 3
EXIT_INTERRUPTED = 130


def require_api_key(ctx: Any, out: OutputFormatter) -> str:
    """Return the configured API key or exit with the configuration code."""
    api_key = ctx.obj["api_key"] or config.api_key
    if not api_key:
        out.error(
            "Missing GHOST_INSPECTOR_API_KEY environment variable "
            "(or --api-key option)."
        )
        ctx.exit(EXIT_CONFIG_ERROR)
    return api_key


def require_folder_id(ctx: Any, out: OutputFormatter) -> str:
    """Return the configured folder ID or exit with the configuration code."""
    folder_id = ctx.obj["folder_id"] or config.folder_id
    if not folder_id:
        out.error(
            "Missing GHOST_INSPECTOR_FOLDER_ID environment variable "
            "(or --folder-id option)."
        )
        ctx.exit(EXIT_CONFIG_ERROR)
    return folder_id


def _mapping_store(ctx: Any) -> SuiteMappingStore:
    root: Path = ctx.obj["root"]
    mapping_file: Optional[Path] = ctx.obj["mapping_file"]
    return SuiteMappingStore(mapping_file or config.get_mapping_path(root))


@click.group()
@click.option(
    "--api-key", "-k", envvar="GHOST_INSPECTOR_API_KEY", help="Ghost Inspector API key"
)
@click.option(
    "--folder-id",
    "-f",
    envvar="GHOST_INSPECTOR_FOLDER_ID",
    help="Ghost Inspector folder whose suites are pulled",
)
@click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory containing the suite folders",
)
@click.option(
    "--mapping-file",
    "-m",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Suite mapping file (default: <root>/suite-mapping.json)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="ghostsync")
@click.pass_context
def main(
    ctx: Any,
    api_key: Optional[str],
    folder_id: Optional[str],
    root: Path,
    mapping_file: Optional[Path],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """ghostsync - Sync Ghost Inspector suites with local folders."""
    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["folder_id"] = folder_id
    ctx.obj["root"] = root
    ctx.obj["mapping_file"] = mapping_file
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("ghostsync").setLevel(logging.DEBUG)
    elif quiet or json:
        logging.basicConfig(level=logging.WARNING)
    else:
        # Every create/update/delete/rename is logged at INFO for auditing
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    # httpx logs request URLs, which carry the API key as a query parameter
    logging.getLogger("httpx").setLevel(logging.WARNING)


@main.command()
@click.option(
    "--dry-run", is_flag=True, help="Show what would change without writing files"
)
@click.pass_context
def pull(ctx: Any, dry_run: bool) -> None:
    """Mirror every suite of the remote folder into local folders.

    Each suite is written to a folder named after its display name. Folders
    are renamed when the suite is renamed remotely, and files that no longer
    exist remotely are deleted.

    Examples:
        ghostsync pull
        ghostsync --root tests/ghost pull --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]
    api_key = require_api_key(ctx, out)
    folder_id = require_folder_id(ctx, out)
    root: Path = ctx.obj["root"]
    store = _mapping_store(ctx)

    try:
        mapping = store.load()
        with GhostInspectorClient(api_key=api_key) as client:
            engine = SyncEngine(client, root, out)
            stats = engine.pull_folder(folder_id, mapping, dry_run=dry_run)
        if not dry_run:
            store.save(mapping)
    except GhostConfigError as e:
        out.error(str(e))
        ctx.exit(EXIT_CONFIG_ERROR)
        return
    except (GhostAPIError, GhostMappingError) as e:
        out.error(f"Pull failed: {e}")
        ctx.exit(EXIT_FAILURE)
        return
    except KeyboardInterrupt:
        out.warning("\nPull interrupted by user")
        ctx.exit(EXIT_INTERRUPTED)
        return

    if out.json_output:
        out.output_json(stats)
    else:
        out.print_summary(
            "Pull Complete" if not dry_run else "Pull Plan (dry run)",
            [
                ("Suites", stats["suites"]),
                ("Renamed folders", stats["renamed"]),
                ("Files written", stats["files_written"]),
                ("Files deleted", stats["files_deleted"]),
                ("Failed suites", len(stats["failed_suites"])),
                ("Mapping file", str(store.mapping_file)),
            ],
        )

    if stats["failed_suites"]:
        out.error(f"{len(stats['failed_suites'])} suite(s) failed")
        ctx.exit(EXIT_SUITE_FAILURES)


@main.command()
@click.option(
    "--dry-run", is_flag=True, help="Show what would change without calling the API"
)
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=1, max=16),
    default=1,
    help="Parallel fetches of remote tests per suite (default: 1)",
)
@click.pass_context
def push(ctx: Any, dry_run: bool, workers: int) -> None:
    """Push local suite folders to Ghost Inspector.

    Tests are matched by name: tests only present locally are imported,
    changed tests are updated and tests missing locally are deleted.

    Examples:
        ghostsync push
        ghostsync push --dry-run
        ghostsync push -j 4
    """
    out: OutputFormatter = ctx.obj["out"]
    api_key = require_api_key(ctx, out)
    root: Path = ctx.obj["root"]
    store = _mapping_store(ctx)

    try:
        mapping = store.load()
        if not mapping.entries:
            out.warning(f"No suites known yet in {store.mapping_file}; run pull first")
        with GhostInspectorClient(api_key=api_key) as client:
            engine = SyncEngine(client, root, out)
            stats = engine.push_all(mapping, dry_run=dry_run, max_workers=workers)
    except GhostConfigError as e:
        out.error(str(e))
        ctx.exit(EXIT_CONFIG_ERROR)
        return
    except (GhostAPIError, GhostMappingError) as e:
        out.error(f"Push failed: {e}")
        ctx.exit(EXIT_FAILURE)
        return
    except KeyboardInterrupt:
        out.warning("\nPush interrupted by user")
        ctx.exit(EXIT_INTERRUPTED)
        return

    if out.json_output:
        out.output_json(stats)
    else:
        out.print_summary(
            "Push Complete" if not dry_run else "Push Plan (dry run)",
            [
                ("Suites", stats["suites"]),
                ("Skipped", stats["skipped"]),
                ("Created", stats["creates"]),
                ("Updated", stats["updates"]),
                ("Deleted", stats["deletes"]),
                ("Unchanged", stats["unchanged"]),
                ("Failed calls", stats["failures"]),
            ],
        )

    if stats["failed_suites"]:
        out.error(f"{len(stats['failed_suites'])} suite(s) had failures")
        ctx.exit(EXIT_SUITE_FAILURES)


if __name__ == "__main__":
    main()
