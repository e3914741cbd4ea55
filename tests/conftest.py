"""Test configuration and fixtures.

Provides reusable fixtures for:
- Temporary files and directories
- LRC and plain lyrics payloads
- Lyrics database records and a fake database client
- Synthetic audio signals
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pytest

from lyryc.core.models import LyricLine, LyricsRecord
from lyryc.utils.cache import MemoryLyricsCache


def pytest_addoption(parser):
    parser.addoption(
        "--run-network",
        action="store_true",
        default=False,
        help="Run tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    run_network = config.getoption("--run-network") or os.getenv(
        "RUN_INTEGRATION_TESTS"
    ) == "1"
    if run_network:
        return

    skip_network = pytest.mark.skip(
        reason="requires network access (use --run-network or RUN_INTEGRATION_TESTS=1)"
    )
    for item in items:
        if "network" in item.keywords or "integration" in item.keywords:
            item.add_marker(skip_network)

# =============================================================================
# Basic Fixtures
# =============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# =============================================================================
# Lyrics Fixtures
# =============================================================================


@pytest.fixture
def lrc_bohemian_rhapsody():
    """Synced lyrics with metadata tags."""
    return """[ar:Queen]
[ti:Bohemian Rhapsody]
[al:A Night at the Opera]
[length: 05:55]
[00:00.50]Is this the real life?
[00:04.20]Is this just fantasy?
[00:08.50]Caught in a landslide
[00:12.80]No escape from reality
[00:17.00]Open your eyes
[00:20.50]Look up to the skies and see
"""


@pytest.fixture
def lrc_never_gonna():
    return """[00:18.60]We're no strangers to love
[00:22.80]You know the rules and so do I
[00:27.00]A full commitment's what I'm thinking of
[00:31.20]You wouldn't get this from any other guy
"""


@pytest.fixture
def lrc_enhanced():
    """Enhanced LRC with word tags."""
    return (
        "[00:10.00]<00:10.00>Hello <00:10.50>bright <00:11.20>world\n"
        "[00:13.00]<00:13.00>Goodbye <00:13.80>now <00:14.40>\n"
    )


@pytest.fixture
def plain_yesterday():
    return """[Verse 1]
Yesterday, all my troubles seemed so far away
Now it looks as though they're here to stay
Oh, I believe in yesterday

[Verse 2]
Suddenly, I'm not half the man I used to be
There's a shadow hanging over me
"""


@pytest.fixture
def sample_lines() -> List[LyricLine]:
    return [
        LyricLine(time=0.0, text="first line here", duration=2.0),
        LyricLine(time=2.0, text="second line", duration=3.0),
        LyricLine(time=5.0, text="third and final line", duration=4.0),
    ]


@pytest.fixture
def synced_record(lrc_never_gonna) -> LyricsRecord:
    return LyricsRecord(
        track_name="Never Gonna Give You Up",
        artist_name="Rick Astley",
        album_name="Whenever You Need Somebody",
        duration=213.0,
        plain_lyrics=None,
        synced_lyrics=lrc_never_gonna,
    )


@pytest.fixture
def plain_record(plain_yesterday) -> LyricsRecord:
    return LyricsRecord(
        track_name="Yesterday",
        artist_name="The Beatles",
        duration=125.0,
        plain_lyrics=plain_yesterday,
    )


# =============================================================================
# Collaborator Fakes
# =============================================================================


class FakeLyricsClient:
    """Stands in for LRCLibClient.

    ``records`` maps ``(track, artist)`` to a LyricsRecord; ``gates`` maps
    the same keys to a threading.Event the fetch waits on before answering.
    """

    def __init__(
        self,
        records: Optional[Dict[tuple, LyricsRecord]] = None,
        error: Optional[Exception] = None,
    ):
        self.records = records or {}
        self.error = error
        self.gates: Dict[tuple, threading.Event] = {}
        self.calls: List[tuple] = []

    def fetch(self, track, artist, album=None, duration=None, should_cancel=None):
        self.calls.append((track, artist))
        gate = self.gates.get((track, artist))
        if gate is not None:
            gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.records.get((track, artist))


@pytest.fixture
def fake_client():
    return FakeLyricsClient()


@pytest.fixture
def memory_cache():
    return MemoryLyricsCache()


# =============================================================================
# Audio Fixtures
# =============================================================================


@pytest.fixture
def sample_rate():
    return 22050


@pytest.fixture
def bursts_signal(sample_rate):
    """Three tone bursts separated by silence (starts at 0.5s, 2.0s, 3.5s)."""
    duration = 5.0
    t = np.arange(int(duration * sample_rate)) / sample_rate
    signal = np.zeros_like(t)
    for start in (0.5, 2.0, 3.5):
        mask = (t >= start) & (t < start + 1.0)
        signal[mask] = 0.5 * np.sin(2 * np.pi * 440.0 * t[mask])
    return signal
