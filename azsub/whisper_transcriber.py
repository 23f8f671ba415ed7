"""Handles Speech-to-Text transcription locally using Whisper."""

import whisper
import logging
import torch
import os
from typing import Iterator, Optional

from .assembler import TranscriptAssembler
from .models import TICKS_PER_SECOND, Recognized, RecognitionEvent, SessionEnded, TranscriptionResult
from .exceptions import TranscriptionError
from .transcriber import Transcriber

logger = logging.getLogger(__name__)

class WhisperTranscriber(Transcriber):
    """Implements transcription using OpenAI's Whisper model."""

    def __init__(self, model_name: str = "medium", device: str = "cuda", fp16: bool = True, language: Optional[str] = "en-US"):
        """
        Initializes the WhisperTranscriber.

        Args:
            model_name: The name of the Whisper model to use (e.g., "base", "medium").
            device: The device to run the model on ("cuda" or "cpu").
            fp16: Whether to use float16 precision (faster on compatible GPUs).
            language: Recognition locale; only the language part is passed to
                      Whisper. None lets Whisper detect the language.

        Raises:
            ValueError: If the specified device is invalid.
            TranscriptionError: If the model fails to load.
        """
        self.model_name = model_name
        self.device = device
        self.fp16 = fp16
        self.language = language

        if self.device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA device requested but not available. Falling back to CPU.")
            self.device = "cpu"
        elif self.device not in ["cuda", "cpu"]:
            raise ValueError(f"Invalid device specified: {self.device}. Choose 'cuda' or 'cpu'.")

        logger.info(f"Initializing WhisperTranscriber with model '{self.model_name}' on device '{self.device}' (FP16: {self.fp16})")
        try:
            self.model = whisper.load_model(self.model_name, device=self.device)
            logger.info(f"Whisper model '{self.model_name}' loaded successfully.")
        except Exception as e:
            logger.error(f"Failed to load Whisper model '{self.model_name}': {e}", exc_info=True)
            raise TranscriptionError(f"Failed to load Whisper model '{self.model_name}': {e}") from e

    @staticmethod
    def segments_to_events(segments) -> Iterator[RecognitionEvent]:
        """Converts Whisper segments (seconds) into recognition events (ticks)."""
        for seg_data in segments:
            if 'start' not in seg_data or 'end' not in seg_data or 'text' not in seg_data:
                logger.warning(f"Skipping incomplete segment data: {seg_data}")
                continue
            start = int(float(seg_data['start']) * TICKS_PER_SECOND)
            end = max(start, int(float(seg_data['end']) * TICKS_PER_SECOND))
            text = seg_data['text'].strip()
            yield Recognized(offset=start, duration=end - start, text=text, matched=bool(text),
                             no_match_reason=None if text else "EmptyText")
        yield SessionEnded()

    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribes the audio file using the loaded Whisper model.

        Args:
            audio_path: Path to the audio file (WAV format recommended).

        Returns:
            A TranscriptionResult object.

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            TranscriptionError: If transcription fails during processing.
        """
        logger.info(f"Starting Whisper transcription for: {audio_path}")
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        whisper_language = self.language.split("-")[0].lower() if self.language else None
        try:
            result = self.model.transcribe(
                audio_path,
                language=whisper_language,
                fp16=self.fp16 if self.device == "cuda" else False, # FP16 only works on CUDA
                verbose=None
            )
        except Exception as e:
            logger.error(f"Error during Whisper transcription process for {audio_path}: {e}", exc_info=True)
            raise TranscriptionError(f"Whisper transcription failed for {audio_path}: {e}") from e

        logger.info(f"Transcription completed. Detected language: {result.get('language', 'N/A')}")
        if 'segments' not in result:
            logger.warning("Transcription result did not contain 'segments'.")

        assembler = TranscriptAssembler(language=self.language or result.get('language'))
        return assembler.assemble(self.segments_to_events(result.get('segments', [])), original_audio_path=audio_path)
