"""Shared test fixtures."""

from pathlib import Path

import pytest

from waveview.models import AudioInfo

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_style_path() -> Path:
    return FIXTURES_DIR / "sample_style.json"


@pytest.fixture
def stereo_info() -> AudioInfo:
    return AudioInfo(
        codec="flac",
        sample_rate=44100,
        bit_depth=16,
        channels=2,
        duration=100.0,
        sample_count=4410000,
    )


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "song.flac"
    path.write_bytes(b"fLaC fake audio")
    return path
