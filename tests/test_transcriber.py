"""Tests for converting Azure Speech SDK callbacks into recognition events."""
from types import SimpleNamespace
from unittest import mock

import pytest

from azsub.assembler import EventChannel
from azsub.exceptions import TranscriptionError
from azsub.models import Canceled, Recognized, SessionEnded
from azsub.transcriber import AzureTranscriber

speechsdk = pytest.importorskip("azure.cognitiveservices.speech")


def _transcriber():
    return AzureTranscriber("key", "westus", language="en-US", timeout_seconds=1)


def _drain(channel):
    channel.put(SessionEnded(session_id="end"))
    return list(channel)[:-1]


def test_recognized_speech_becomes_a_matched_event():
    channel = EventChannel(timeout_seconds=1)
    result = SimpleNamespace(reason=speechsdk.ResultReason.RecognizedSpeech, offset=100, duration=50, text="hello")
    _transcriber()._on_recognized(channel, SimpleNamespace(result=result))

    assert _drain(channel) == [Recognized(offset=100, duration=50, text="hello")]


def test_no_match_becomes_an_unmatched_event(monkeypatch):
    monkeypatch.setattr(AzureTranscriber, "_no_match_reason", staticmethod(lambda result: "InitialSilenceTimeout"))
    channel = EventChannel(timeout_seconds=1)
    result = SimpleNamespace(reason=speechsdk.ResultReason.NoMatch, offset=100, duration=50, text="")
    _transcriber()._on_recognized(channel, SimpleNamespace(result=result))

    assert _drain(channel) == [
        Recognized(offset=100, duration=50, text="", matched=False, no_match_reason="InitialSilenceTimeout")
    ]


def test_cancellation_carries_error_details():
    channel = EventChannel(timeout_seconds=1)
    details = SimpleNamespace(reason=speechsdk.CancellationReason.Error, error_details="401 unauthorized")
    _transcriber()._on_canceled(channel, SimpleNamespace(cancellation_details=details))

    assert _drain(channel) == [Canceled(reason="Error", detail="401 unauthorized")]


def test_end_of_stream_cancellation_has_no_detail():
    channel = EventChannel(timeout_seconds=1)
    details = SimpleNamespace(reason=speechsdk.CancellationReason.EndOfStream, error_details="")
    _transcriber()._on_canceled(channel, SimpleNamespace(cancellation_details=details))

    assert _drain(channel) == [Canceled(reason="EndOfStream", detail="")]


def test_session_stopped_ends_the_channel():
    channel = EventChannel(timeout_seconds=1)
    _transcriber()._on_session_stopped(channel, SimpleNamespace(session_id="s1"))

    assert list(channel) == [SessionEnded(session_id="s1")]


def test_missing_audio_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        _transcriber().transcribe(str(tmp_path / "missing.wav"))


def test_unreadable_audio_file(tmp_path):
    path = tmp_path / "not_audio.wav"
    path.write_bytes(b"not a wav file")
    with pytest.raises(TranscriptionError):
        _transcriber().transcribe(str(path))


def test_rejected_recognizer_config_closes_the_audio_file(tmp_path, monkeypatch):
    path = tmp_path / "audio.wav"
    path.write_bytes(b"RIFF")
    wav = mock.Mock()
    wav.getframerate.return_value = 16000
    wav.getnchannels.return_value = 1
    wav.getsampwidth.return_value = 2

    def rejecting(self, stream_format):
        raise RuntimeError("invalid subscription")

    monkeypatch.setattr(AzureTranscriber, "_create_recognizer", rejecting)

    with mock.patch("azsub.transcriber.wave.open", return_value=wav):
        with pytest.raises(TranscriptionError, match="invalid subscription"):
            _transcriber().transcribe(str(path))
    wav.close.assert_called_once_with()


def test_credentials_are_required():
    with pytest.raises(TranscriptionError):
        AzureTranscriber("", "westus")


def test_whisper_segments_become_events():
    whisper_transcriber = pytest.importorskip("azsub.whisper_transcriber")
    segments = [
        {"start": 0.0, "end": 2.0, "text": " hello "},
        {"start": 2.5, "end": 2.5, "text": "  "},
        {"start": 3.0, "text": "incomplete"},
    ]
    events = list(whisper_transcriber.WhisperTranscriber.segments_to_events(segments))

    assert events == [
        Recognized(offset=0, duration=20000000, text="hello"),
        Recognized(offset=25000000, duration=0, text="", matched=False, no_match_reason="EmptyText"),
        SessionEnded(),
    ]
