"""Unit tests for ffutil: ffprobe parsing and ffmpeg command construction."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from waveview.errors import NoAudioStreamError, ToolNotFoundError
from waveview.ffutil import (
    check_ffmpeg,
    first_valid,
    parse_key_values,
    probe,
    read_tags,
    render_waveform,
    waveform_filter,
)
from waveview.models import Selection

# ---------------------------------------------------------------------------
# parse_key_values / first_valid (pure parsing, no subprocess)
# ---------------------------------------------------------------------------

FLAC_PROBE = """\
streams_stream_0_codec_name="flac"
streams_stream_0_sample_rate="44100"
streams_stream_0_channels=2
streams_stream_0_bits_per_sample=0
streams_stream_0_time_base="1/44100"
streams_stream_0_duration_ts=529200
streams_stream_0_duration="12.000000"
streams_stream_0_bits_per_raw_sample="24"
format_duration="12.000000"
"""

MP3_PROBE = """\
streams_stream_0_codec_name="mp3"
streams_stream_0_sample_rate="48000"
streams_stream_0_channels=1
streams_stream_0_bits_per_sample=0
streams_stream_0_time_base="1/14112000"
streams_stream_0_duration_ts=430416000
streams_stream_0_duration="N/A"
streams_stream_0_bits_per_raw_sample="N/A"
format_duration="30.500000"
"""


class TestParseKeyValues:
    def test_unquotes_values(self):
        fields = parse_key_values(FLAC_PROBE)
        assert fields["streams_stream_0_codec_name"] == "flac"
        assert fields["streams_stream_0_channels"] == "2"

    def test_first_occurrence_wins(self):
        assert parse_key_values("a=1\na=2\n") == {"a": "1"}

    def test_value_with_equals_and_escaped_quote(self):
        fields = parse_key_values('format_tags_title="a=b \\"live\\""\n')
        assert fields["format_tags_title"] == 'a=b "live"'

    def test_dollar_and_backtick_escapes(self):
        fields = parse_key_values(
            'format_tags_artist="Ke\\$ha"\n'
            'format_tags_title="\\`quoted\\`"\n'
        )
        assert fields["format_tags_artist"] == "Ke$ha"
        assert fields["format_tags_title"] == "`quoted`"

    def test_backslash_and_newline_escapes(self):
        fields = parse_key_values('format_tags_comment="a\\\\nb\\nc\\rd"\n')
        assert fields["format_tags_comment"] == "a\\nb\nc\rd"

    def test_ignores_noise(self):
        assert parse_key_values("\nnot a pair\n") == {}


class TestFirstValid:
    def test_prefers_first_valid_key(self):
        fields = {"raw": "24", "plain": "16"}
        assert first_valid(fields, ["raw", "plain"]) == 24

    def test_falls_back_on_na(self):
        fields = {"raw": "N/A", "plain": "16"}
        assert first_valid(fields, ["raw", "plain"]) == 16

    def test_falls_back_on_zero(self):
        fields = {"raw": "0", "plain": "16"}
        assert first_valid(fields, ["raw", "plain"]) == 16

    def test_missing_keys(self):
        assert first_valid({}, ["raw", "plain"]) is None

    def test_float_parser(self):
        assert first_valid({"d": "12.5"}, ["d"], float) == 12.5


# ---------------------------------------------------------------------------
# probe / read_tags (mocked subprocess)
# ---------------------------------------------------------------------------

class TestProbe:
    @patch("waveview.ffutil.subprocess.run")
    def test_flac(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=FLAC_PROBE)
        info = probe(Path("song.flac"))
        assert info.codec == "flac"
        assert info.sample_rate == 44100
        assert info.bit_depth == 24
        assert info.channels == 2
        assert info.duration == 12.0
        assert info.sample_count == 529200

        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "ffprobe"
        assert "a:0" in cmd
        assert cmd[-1] == "song.flac"

    @patch("waveview.ffutil.subprocess.run")
    def test_mp3_fallbacks(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=MP3_PROBE)
        info = probe(Path("song.mp3"))
        assert info.bit_depth is None
        assert info.duration == 30.5
        # duration_ts is not in samples for this time base
        assert info.sample_count == 1464000

    @patch("waveview.ffutil.subprocess.run")
    def test_no_audio_stream(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout='format_duration="5.0"\n')
        with pytest.raises(NoAudioStreamError, match="No audio stream"):
            probe(Path("image.png"))

    @patch("waveview.ffutil.subprocess.run")
    def test_incomplete_metadata(self, mock_run):
        mock_run.return_value = MagicMock(
            returncode=0, stdout='streams_stream_0_codec_name="pcm_s16le"\n'
        )
        with pytest.raises(NoAudioStreamError, match="Incomplete"):
            probe(Path("broken.wav"))


class TestReadTags:
    @patch("waveview.ffutil.subprocess.run")
    def test_format_tags_take_precedence(self, mock_run):
        mock_run.return_value = MagicMock(
            returncode=0,
            stdout=(
                'streams_stream_0_tags_TITLE="Stream title"\n'
                'streams_stream_0_tags_TOTALDISCS="2"\n'
                'format_tags_title="Song"\n'
                'format_tags_artist="Band"\n'
            ),
        )
        tags = read_tags(Path("song.ogg"))
        assert tags == {"title": "Song", "artist": "Band", "totaldiscs": "2"}

    @patch("waveview.ffutil.subprocess.run")
    def test_no_tags(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        assert read_tags(Path("raw.wav")) == {}


# ---------------------------------------------------------------------------
# render_waveform (mocked subprocess, just verify the command shape)
# ---------------------------------------------------------------------------

SELECTION = Selection(
    start=1.0, duration=2.0, start_sample=44100, sample_count=88200, duration_ms=2000
)


class TestWaveformFilter:
    def test_trims_by_sample_range(self):
        fc = waveform_filter(SELECTION, 1000, 440, 2, "#3232c8", "#6464dc")
        assert "atrim=start_sample=44100:end_sample=132300" in fc

    def test_peak_and_rms_layers(self):
        fc = waveform_filter(SELECTION, 1000, 440, 2, "#3232c8", "#6464dc")
        assert "s=1000x440:split_channels=1:filter=peak:colors=#3232c8|#3232c8" in fc
        assert "filter=average:colors=#6464dc|#6464dc" in fc
        assert fc.endswith("[peak][rms]overlay=format=auto[out]")

    def test_mono_colors(self):
        fc = waveform_filter(SELECTION, 800, 300, 1, "red", "blue")
        assert "colors=red[peak]" in fc


class TestRenderWaveform:
    @patch("waveview.ffutil.subprocess.run")
    def test_command(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0)
        out = render_waveform(
            Path("in.flac"), Path("wave.png"), SELECTION, 1000, 440, 2, "#000", "#111"
        )
        assert out == Path("wave.png")

        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-map") + 1] == "[out]"
        assert cmd[cmd.index("-frames:v") + 1] == "1"
        assert cmd[-1] == "wave.png"
        assert mock_run.call_args.kwargs["check"] is True


class TestCheckFfmpeg:
    @patch("waveview.ffutil.shutil.which", return_value="/usr/bin/x")
    def test_present(self, mock_which):
        check_ffmpeg()

    @patch("waveview.ffutil.shutil.which", side_effect=lambda cmd: None if cmd == "ffprobe" else "/usr/bin/ffmpeg")
    def test_missing_ffprobe(self, mock_which):
        with pytest.raises(ToolNotFoundError, match="ffprobe"):
            check_ffmpeg()
