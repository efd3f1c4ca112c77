"""Shared fixtures for ghostsync tests."""

import io
import json
import struct
import tempfile
import zipfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from ghostsync.api import GhostInspectorClient


def make_export(files: dict) -> bytes:
    """Build a suite export archive.

    Args:
        files: Mapping of archive member name to a JSON document or raw bytes

    Returns:
        Zip archive bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            if isinstance(content, bytes):
                archive.writestr(name, content)
            else:
                archive.writestr(name, json.dumps(content, indent=2))
    return buffer.getvalue()


def make_corrupt_export(name: str, document: dict) -> bytes:
    """Build a deflated export archive whose compressed data is damaged.

    The central directory stays intact, so the archive opens but fails
    while its member is being extracted.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(name, json.dumps(document, indent=2))
    data = bytearray(buffer.getvalue())
    name_len, extra_len = struct.unpack("<HH", data[26:30])
    start = 30 + name_len + extra_len
    for offset in range(start + 4, start + 12):
        data[offset] ^= 0xFF
    return bytes(data)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_client():
    """Create a mock Ghost Inspector client."""
    return Mock(spec=GhostInspectorClient)


def write_test(folder: Path, filename: str, document: dict) -> Path:
    """Write a test definition file into a suite folder."""
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / filename
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def export_factory():
    """Provide the export archive builder."""
    return make_export


@pytest.fixture
def corrupt_export_factory():
    """Provide the damaged export archive builder."""
    return make_corrupt_export


@pytest.fixture
def test_writer():
    """Provide the test definition file writer."""
    return write_test
