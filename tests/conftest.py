"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def make_proc():
    """Factory for stand-ins of a finished subprocess.Popen."""

    def _make(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
        proc = MagicMock()
        proc.communicate.return_value = (stdout, stderr)
        proc.returncode = returncode
        proc.poll.return_value = returncode
        proc.pid = 4242
        return proc

    return _make


@pytest.fixture
def mock_popen():
    with patch("clipflow.ffutil.subprocess.Popen") as popen:
        yield popen


@pytest.fixture
def ffmpeg_on_path():
    with patch("clipflow.ffutil.check_ffmpeg") as check:
        yield check
