"""Tests for WebVTT/SRT serialization and parsing."""
import pytest

from azsub.exceptions import ConfigError, FormatError
from azsub.models import Cue, TranscriptionResult
from azsub.subtitle_formatter import SRTFormatter, VTTFormatter, formatter_for_path, get_formatter
from azsub.utils import format_time_srt, format_time_vtt

ONE_HOUR = 36000000000


def _cues():
    return [
        Cue(start_offset=0, end_offset=20000000, text="hello", cue_id=0),
        Cue(start_offset=30000000, end_offset=50000000, text="world", cue_id=1),
    ]


def test_zero_offset_formats():
    assert format_time_vtt(0) == "0:00:00.000"
    assert format_time_srt(0) == "00:00:00,000"


def test_one_hour_formats():
    assert format_time_vtt(ONE_HOUR) == "1:00:00.000"
    assert format_time_srt(ONE_HOUR) == "01:00:00,000"


def test_sub_millisecond_ticks_are_truncated():
    assert format_time_vtt(9999) == "0:00:00.000"
    assert format_time_srt(19999) == "00:00:00,001"
    assert format_time_vtt(ONE_HOUR + 61 * 10000000 + 5000) == "1:01:01.000"


def test_srt_output():
    assert SRTFormatter().serialize(_cues()) == (
        "1\r\n00:00:00,000 --> 00:00:02,000\r\nhello\r\n\r\n"
        "2\r\n00:00:03,000 --> 00:00:05,000\r\nworld\r\n\r\n"
    )


def test_vtt_output():
    assert VTTFormatter().serialize(_cues()) == (
        "WEBVTT\r\n\r\n"
        "0:00:00.000 --> 0:00:02.000\r\nhello\r\n\r\n"
        "0:00:03.000 --> 0:00:05.000\r\nworld\r\n\r\n"
    )


def test_empty_cue_list():
    assert VTTFormatter().serialize([]) == "WEBVTT\r\n\r\n"
    assert SRTFormatter().serialize([]) == ""
    assert VTTFormatter().parse("WEBVTT\r\n\r\n") == []
    assert SRTFormatter().parse("") == []


@pytest.mark.parametrize("formatter", [VTTFormatter(), SRTFormatter()])
def test_round_trip_at_millisecond_resolution(formatter):
    cues = [
        Cue(start_offset=12345678, end_offset=23456789, text="first line"),
        Cue(start_offset=ONE_HOUR + 7, end_offset=ONE_HOUR + 15000000, text="two\nlines"),
        Cue(start_offset=ONE_HOUR * 12, end_offset=ONE_HOUR * 12, text="ünïcødé"),
    ]
    parsed = formatter.parse(formatter.serialize(cues))

    assert len(parsed) == len(cues)
    for original, cue in zip(cues, parsed):
        assert cue.start_offset == original.start_offset // 10000 * 10000
        assert cue.end_offset == original.end_offset // 10000 * 10000
        assert cue.text == original.text
    assert [cue.cue_id for cue in parsed] == [0, 1, 2]


@pytest.mark.parametrize("formatter", [VTTFormatter(), SRTFormatter()])
def test_round_trip_keeps_empty_text(formatter):
    cues = [Cue(start_offset=0, end_offset=10000, text=""), Cue(start_offset=20000, end_offset=30000, text="next")]
    parsed = formatter.parse(formatter.serialize(cues))

    assert [cue.text for cue in parsed] == ["", "next"]


@pytest.mark.parametrize("formatter", [VTTFormatter(), SRTFormatter()])
@pytest.mark.parametrize("text", ["a b", "a\x0bb", "a\x1cb", "a\rb", "ends with cr\r", " padded ", "-->"])
def test_round_trip_keeps_unusual_characters(formatter, text):
    cues = [Cue(start_offset=0, end_offset=10000, text=text), Cue(start_offset=20000, end_offset=30000, text="next")]
    parsed = formatter.parse(formatter.serialize(cues))

    assert [cue.text for cue in parsed] == [text, "next"]


@pytest.mark.parametrize("formatter", [VTTFormatter(), SRTFormatter()])
@pytest.mark.parametrize("text", ["a\n\nb", "line\n", "\nline", "   ", "a\n \nb", "\x0b", "a\r\n\r\nb"])
def test_text_with_blank_lines_is_not_written(formatter, text, tmp_path):
    output = tmp_path / f"out.{formatter.extension}"
    with pytest.raises(FormatError):
        formatter.format_subtitles([Cue(start_offset=0, end_offset=10000, text=text)], str(output))
    assert not output.exists()


def test_vtt_parse_accepts_common_variants():
    text = (
        "\ufeffWEBVTT - generated\n"
        "Kind: captions\n"
        "\n"
        "NOTE this is a comment\n"
        "spanning two lines\n"
        "\n"
        "intro\n"
        "00:01.500 --> 00:02.000 align:start position:10%\n"
        "hi there\n"
        "\n"
        "1:00:00.000 --> 1:00:01.000\n"
        "bye\n"
        "\n"
    )
    cues = VTTFormatter().parse(text)

    assert [(c.start_offset, c.end_offset, c.text) for c in cues] == [
        (15000000, 20000000, "hi there"),
        (ONE_HOUR, ONE_HOUR + 10000000, "bye"),
    ]


def test_vtt_missing_header():
    with pytest.raises(FormatError) as excinfo:
        VTTFormatter().parse("0:00:00.000 --> 0:00:01.000\r\nhi\r\n\r\n")
    assert excinfo.value.line_number == 1


def test_vtt_malformed_timestamp_reports_line():
    text = "WEBVTT\r\n\r\n0:00:00.000 --> 0:00:01.000\r\nok\r\n\r\n0:00:02,000 --> 0:00:03.000\r\nbad\r\n\r\n"
    with pytest.raises(FormatError) as excinfo:
        VTTFormatter().parse(text)
    assert excinfo.value.line_number == 6


def test_srt_malformed_timestamp_reports_line():
    with pytest.raises(FormatError) as excinfo:
        SRTFormatter().parse("1\n00:00:00.000 --> 00:00:01,000\nhi\n\n")
    assert excinfo.value.line_number == 2


def test_srt_bad_index():
    with pytest.raises(FormatError) as excinfo:
        SRTFormatter().parse("one\n00:00:00,000 --> 00:00:01,000\nhi\n\n")
    assert excinfo.value.line_number == 1

    with pytest.raises(FormatError) as excinfo:
        SRTFormatter().parse("1\n00:00:00,000 --> 00:00:01,000\nhi\n\n²\n00:00:02,000 --> 00:00:03,000\nyo\n\n")
    assert excinfo.value.line_number == 5


def test_srt_end_before_start():
    with pytest.raises(FormatError):
        SRTFormatter().parse("1\n00:00:02,000 --> 00:00:01,000\nhi\n\n")


def test_timestamp_out_of_range():
    with pytest.raises(FormatError):
        SRTFormatter().parse("1\n00:61:00,000 --> 01:00:00,000\nhi\n\n")


@pytest.mark.parametrize("formatter, text", [
    (SRTFormatter(), "1\r\n00:00:00,000 --> 00:00:01,000\r\nhi\r\n"),
    (SRTFormatter(), "1\r\n00:00:00,000 --> 00:00:01,000\r\nhi\r\n\r\n2\r\n"),
    (VTTFormatter(), "WEBVTT\r\n\r\n0:00:00.000 --> 0:00:01.000\r\nhi"),
])
def test_unterminated_block_is_rejected(formatter, text):
    with pytest.raises(FormatError):
        formatter.parse(text)


def test_format_subtitles_writes_crlf_file(tmp_path):
    path = tmp_path / "out" / "transcript.srt"
    SRTFormatter().format_subtitles(TranscriptionResult(language="en-US", cues=_cues()), str(path))

    data = path.read_bytes()
    assert data.startswith(b"1\r\n00:00:00,000 --> 00:00:02,000\r\nhello\r\n\r\n")
    assert SRTFormatter().read_subtitles(str(path)) == _cues()


def test_formatter_lookup():
    assert isinstance(get_formatter("vtt"), VTTFormatter)
    assert isinstance(get_formatter("SRT"), SRTFormatter)
    assert isinstance(formatter_for_path("subs/movie.es.vtt"), VTTFormatter)
    assert isinstance(formatter_for_path("noext", default="srt"), SRTFormatter)
    with pytest.raises(ConfigError):
        get_formatter("ass")
    with pytest.raises(ConfigError):
        formatter_for_path("noext")
