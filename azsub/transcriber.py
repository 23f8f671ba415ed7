"""Handles speech recognition with the Azure Speech SDK."""

import logging
import os
import threading
import wave
from abc import ABC, abstractmethod
from typing import Optional

from .assembler import EventChannel, TranscriptAssembler
from .models import Canceled, Recognized, SessionEnded, TranscriptionResult
from .exceptions import TranscriptionError

logger = logging.getLogger(__name__)

class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to a mono 16 kHz PCM WAV file.

        Returns:
            A TranscriptionResult with cues in recognition order.

        Raises:
            TranscriptionError: If transcription fails or times out.
            FileNotFoundError: If the audio file doesn't exist.
        """
        pass


class AzureTranscriber(Transcriber):
    """
    Continuous recognition with Azure Speech.

    Audio frames are pushed to the service from a feeder thread. The SDK calls
    the event handlers on its own threads; they only convert results into
    recognition events and hand them to an EventChannel, which the calling
    thread drains through the TranscriptAssembler.
    """

    def __init__(
        self,
        subscription_key: str,
        region: str,
        language: str = "en-US",
        timeout_seconds: Optional[float] = 600.0,
        chunk_frames: int = 4096,
    ):
        """
        Initializes the AzureTranscriber.

        Args:
            subscription_key: Azure Speech resource key.
            region: Azure region of the resource, e.g. "westus".
            language: Recognition locale, e.g. "en-US".
            timeout_seconds: Longest wait for the next recognition event.
            chunk_frames: Audio frames per write to the push stream.
        """
        if not subscription_key or not region:
            raise TranscriptionError("Azure Speech subscription key and region are required.")
        self.subscription_key = subscription_key
        self.region = region
        self.language = language
        self.timeout_seconds = timeout_seconds
        self.chunk_frames = chunk_frames
        logger.info(f"Initializing AzureTranscriber for language '{self.language}' in region '{self.region}'")

    def _create_recognizer(self, stream_format):
        import azure.cognitiveservices.speech as speechsdk

        speech_config = speechsdk.SpeechConfig(subscription=self.subscription_key, region=self.region)
        speech_config.speech_recognition_language = self.language
        push_stream = speechsdk.audio.PushAudioInputStream(stream_format=stream_format)
        audio_config = speechsdk.audio.AudioConfig(stream=push_stream)
        recognizer = speechsdk.SpeechRecognizer(speech_config=speech_config, audio_config=audio_config)
        return recognizer, push_stream

    def _feed(self, wav: wave.Wave_read, push_stream) -> None:
        """Writes all audio frames to the push stream, then closes it."""
        try:
            while True:
                frames = wav.readframes(self.chunk_frames)
                if not frames:
                    break
                push_stream.write(frames)
        finally:
            push_stream.close()
            wav.close()

    @staticmethod
    def _no_match_reason(result) -> str:
        import azure.cognitiveservices.speech as speechsdk
        return speechsdk.NoMatchDetails(result).reason.name

    def _on_recognized(self, channel: EventChannel, evt) -> None:
        import azure.cognitiveservices.speech as speechsdk

        result = evt.result
        if result.reason == speechsdk.ResultReason.RecognizedSpeech:
            channel.put(Recognized(offset=result.offset, duration=result.duration, text=result.text))
        elif result.reason == speechsdk.ResultReason.NoMatch:
            channel.put(Recognized(
                offset=result.offset,
                duration=result.duration,
                text="",
                matched=False,
                no_match_reason=self._no_match_reason(result),
            ))
        else:
            logger.debug(f"Ignoring recognition result with reason {result.reason}")

    def _on_canceled(self, channel: EventChannel, evt) -> None:
        import azure.cognitiveservices.speech as speechsdk

        details = evt.cancellation_details
        detail = details.error_details if details.reason == speechsdk.CancellationReason.Error else ""
        channel.put(Canceled(reason=details.reason.name, detail=detail or ""))

    def _on_session_stopped(self, channel: EventChannel, evt) -> None:
        channel.put(SessionEnded(session_id=evt.session_id))

    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Streams the audio file to Azure Speech and assembles the results.

        Args:
            audio_path: Path to a mono 16 kHz PCM WAV file.

        Returns:
            A TranscriptionResult.

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            TranscriptionError: If the file cannot be read, recognition fails
                to start, or no event arrives within the timeout.
        """
        import azure.cognitiveservices.speech as speechsdk

        logger.info(f"Starting Azure transcription for: {audio_path}")
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        try:
            wav = wave.open(audio_path, 'rb')
        except (wave.Error, EOFError) as e:
            raise TranscriptionError(f"Could not read WAV file {audio_path}: {e}") from e
        if wav.getframerate() != 16000 or wav.getnchannels() != 1:
            logger.warning(
                f"{audio_path} is {wav.getframerate()} Hz / {wav.getnchannels()} channels; "
                "recognition expects 16000 Hz mono."
            )

        try:
            stream_format = speechsdk.audio.AudioStreamFormat(
                samples_per_second=wav.getframerate(),
                bits_per_sample=wav.getsampwidth() * 8,
                channels=wav.getnchannels(),
            )
            recognizer, push_stream = self._create_recognizer(stream_format)
        except Exception as e:
            wav.close()
            logger.error(f"Failed to configure Azure recognition: {e}", exc_info=True)
            raise TranscriptionError(f"Failed to configure Azure recognition: {e}") from e

        channel = EventChannel(timeout_seconds=self.timeout_seconds)
        recognizer.recognized.connect(lambda evt: self._on_recognized(channel, evt))
        recognizer.canceled.connect(lambda evt: self._on_canceled(channel, evt))
        recognizer.session_stopped.connect(lambda evt: self._on_session_stopped(channel, evt))
        recognizer.session_started.connect(lambda evt: logger.info(f"Recognition started. SessionId: {evt.session_id}"))

        feeder = threading.Thread(target=self._feed, args=(wav, push_stream), name="azsub-audio-feeder", daemon=True)
        try:
            try:
                recognizer.start_continuous_recognition_async().get()
            except Exception as e:
                logger.error(f"Failed to start Azure recognition: {e}", exc_info=True)
                raise TranscriptionError(f"Failed to start Azure recognition: {e}") from e
            feeder.start()
            assembler = TranscriptAssembler(language=self.language)
            return assembler.assemble(channel, original_audio_path=audio_path)
        finally:
            recognizer.stop_continuous_recognition_async().get()
            if feeder.ident is None:
                # Feeder never started; otherwise it closes both itself
                push_stream.close()
                wav.close()
