"""Orchestrates the subtitle generation pipeline."""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .audio_extractor import AudioExtractor
from .config_loader import Settings
from .transcriber import Transcriber
from .translator import Translator
from .merger import merge_translations
from .models import Canceled, Cue, TranscriptionResult
from .subtitle_formatter import formatter_for_path
from .exceptions import (
    AlignmentError,
    AzSubError,
    FileSystemError,
    FormatError,
    NetworkError,
    RecognitionCanceled,
    TranslationError,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """What one run produced, and which stages failed without stopping it."""
    cue_count: int = 0
    written_files: List[str] = field(default_factory=list)
    # "translation" for the batch call, "translation:<lang>" for one language
    errors: Dict[str, AzSubError] = field(default_factory=dict)
    cancellations: List[Canceled] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SubtitleGenerator:
    """
    Manages the end-to-end process of generating subtitles for a video file.

    Primary-language files are written before translation starts. A failed
    translation call, or a misaligned language, is recorded on the report and
    never touches files that were already written.
    """

    def __init__(
        self,
        settings: Settings,
        audio_extractor: AudioExtractor,
        transcriber: Transcriber,
        translator: Optional[Translator] = None,
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            settings: Validated settings for this run.
            audio_extractor: An instance of AudioExtractor.
            transcriber: The recognition backend.
            translator: The translation backend; required only when
                        `settings.translations` is not empty.
        """
        if settings.translations and translator is None:
            raise AzSubError("Translations are configured but no translator was provided.")
        self.settings = settings
        self.audio_extractor = audio_extractor
        self.transcriber = transcriber
        self.translator = translator

    def _write(self, cues: Sequence[Cue], paths: Sequence[str], report: GenerationReport) -> None:
        for path in paths:
            formatter_for_path(path).format_subtitles(cues, path)
            report.written_files.append(path)

    def _cleanup_audio(self, audio_path: Optional[str]) -> None:
        if self.settings.keep_audio or not audio_path or not os.path.exists(audio_path):
            return
        try:
            os.remove(audio_path)
            logger.info(f"Cleaned up temporary file: {audio_path}")
        except OSError as e:
            logger.warning(f"Could not remove temporary file {audio_path}: {e}")

    def _check_cancellations(self, result: TranscriptionResult) -> None:
        errors = [c for c in result.cancellations if c.is_error]
        if errors and not result.cues:
            raise RecognitionCanceled(errors[0].reason, errors[0].detail)
        if errors:
            logger.warning(f"Recognition reported {len(errors)} error cancellation(s); keeping {len(result.cues)} cues.")

    def translate(self, result: TranscriptionResult, report: GenerationReport) -> None:
        """Translates all cues in one call and writes the files for each target language."""
        settings = self.settings
        if not result.cues:
            logger.warning("No cues to translate. Skipping translation.")
            return

        try:
            translations = self.translator.translate_batch(result.texts, settings.language, settings.target_languages)
        except (NetworkError, TranslationError) as e:
            logger.error(f"Translation failed; primary subtitles are kept: {e}")
            report.errors["translation"] = e
            return

        for language, paths in settings.translations.items():
            try:
                cues = merge_translations(result.cues, [language], translations)[language]
                self._write(cues, paths, report)
                logger.info(f"Subtitles for '{language}' saved to: {', '.join(paths)}")
            except (AlignmentError, FileSystemError, FormatError) as e:
                logger.error(f"Skipping subtitles for '{language}': {e}")
                report.errors[f"translation:{language}"] = e

    def generate(self) -> GenerationReport:
        """
        Executes the full subtitle generation pipeline.

        Returns:
            A GenerationReport.

        Raises:
            AzSubError: If extraction, recognition or the primary output fails.
            FileNotFoundError: If the input video is not found.
        """
        settings = self.settings
        start_time = time.time()
        report = GenerationReport()
        logger.info(f"--- Starting AzSub process for: {settings.video_file} ---")
        extracted_audio_path = None

        try:
            logger.info("Step 1: Extracting Audio...")
            extracted_audio_path = self.audio_extractor.extract_audio(settings.video_file, settings.audio_file)
            logger.info("Extract Audio Done")

            logger.info(f"Step 2: Recognizing Speech ({settings.language})...")
            result = self.transcriber.transcribe(extracted_audio_path)
            report.cue_count = len(result.cues)
            report.cancellations = list(result.cancellations)
            self._check_cancellations(result)
            if not result.cues:
                logger.warning("Recognition produced no cues. Subtitle files will be empty.")

            logger.info("Step 3: Writing Subtitles...")
            self._write(result.cues, settings.output_files, report)

            if settings.translations:
                logger.info(f"Step 4: Translating to {', '.join(settings.target_languages)}...")
                self.translate(result, report)

            logger.info(f"--- AzSub process completed in {time.time() - start_time:.2f} seconds ---")
            return report

        except (AzSubError, FileNotFoundError) as e:
            logger.error(f"AzSub process failed: {e}")
            raise
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred during subtitle generation: {e}", exc_info=True)
            raise AzSubError(f"An unexpected critical error occurred: {e}") from e
        finally:
            self._cleanup_audio(extracted_audio_path)
