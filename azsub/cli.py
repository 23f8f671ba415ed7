"""Command-Line Interface handler for AzSub."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config_loader import ConfigLoader, Settings
from .log_setup import setup_logging
from .audio_extractor import AudioExtractor
from .transcriber import AzureTranscriber, Transcriber
from .translator import AzureTranslator, Translator
from .subtitle_generator import SubtitleGenerator
from .exceptions import AzSubError, ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("config.yaml", "config.json")


def build_transcriber(settings: Settings) -> Transcriber:
    if settings.recognizer == "whisper":
        from .whisper_transcriber import WhisperTranscriber
        return WhisperTranscriber(
            model_name=settings.whisper_model,
            device=settings.device,
            fp16=settings.whisper_fp16 if settings.device == "cuda" else False,
            language=settings.language,
        )
    return AzureTranscriber(
        subscription_key=settings.speech_key,
        region=settings.speech_region,
        language=settings.language,
        timeout_seconds=settings.recognition_timeout_seconds,
    )


def build_translator(settings: Settings) -> Optional[Translator]:
    if not settings.translations:
        return None
    if settings.translator == "huggingface":
        from .hf_translator import HuggingFaceTranslator
        return HuggingFaceTranslator(model_template=settings.translation_model, device=settings.device)
    return AzureTranslator(
        subscription_key=settings.translator_key,
        region=settings.translator_region,
        endpoint=settings.translator_endpoint,
        timeout_seconds=settings.translation_timeout_seconds,
    )


class CLIHandler:
    """Parses arguments and orchestrates the AzSub process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            prog="azsub",
            description="AzSub: Generate WebVTT/SRT subtitles for a video with Azure Speech, optionally translated.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help="Path to the configuration file (YAML or JSON). Defaults to config.yaml, or config.json if that is the one present."
        )
        parser.add_argument(
            "-v", "--video",
            default=None,
            help="Override the input video file from the config file."
        )
        parser.add_argument(
            "-o", "--output",
            action="append",
            default=None,
            help="Subtitle file to write (.vtt or .srt). Repeat for several files. Overrides the config file."
        )
        parser.add_argument(
            "-l", "--language",
            default=None,
            help="Override the recognition locale, e.g. en-US."
        )
        parser.add_argument(
            "--recognizer",
            default=None,
            choices=["azure", "whisper"],
            help="Override the speech recognition backend."
        )
        parser.add_argument(
            "--translator",
            default=None,
            choices=["azure", "huggingface"],
            help="Override the translation backend."
        )
        parser.add_argument(
            "--keep-audio",
            action="store_true",
            help="Keep the extracted WAV file."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        return parser

    @staticmethod
    def _resolve_config_path(config_path: Optional[str]) -> str:
        if config_path:
            return config_path
        for candidate in DEFAULT_CONFIG_FILES:
            if os.path.exists(candidate):
                return candidate
        return DEFAULT_CONFIG_FILES[0]

    def _apply_overrides(self, config: dict, args: argparse.Namespace) -> dict:
        overrides = {
            "video_file": args.video,
            "output_files": args.output,
            "language": args.language,
            "recognizer": args.recognizer,
            "translator": args.translator,
        }
        for key, value in overrides.items():
            if value:
                logger.info(f"Overriding {key} from config with CLI argument: {value}")
                config[key] = value
        if args.keep_audio:
            config["keep_audio"] = True
        return config

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parses arguments, sets up logging, loads config, and runs the generator. Returns the exit code."""
        args = self.parser.parse_args(argv)
        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        setup_logging(log_level=log_level)
        load_dotenv(override=False)

        config_path = self._resolve_config_path(args.config)
        try:
            config = ConfigLoader().load_config(config_path) if os.path.exists(config_path) else {}
            if not config:
                logger.warning(f"No configuration loaded from {config_path}; using CLI arguments only.")
            config = self._apply_overrides(config, args)
            settings = Settings.from_dict(config)
        except (ConfigError, FileNotFoundError) as e:
            logger.critical(f"Invalid configuration: {e}")
            return 1

        if settings.log_dir != "logs" or settings.log_file != "azsub.log":
            setup_logging(log_level=log_level, log_dir=settings.log_dir, log_file=settings.log_file)

        if not os.path.isfile(settings.video_file):
            logger.critical(f"Input video file not found or is not a file: {settings.video_file}")
            return 1

        try:
            logger.info("Initializing AzSub components...")
            generator = SubtitleGenerator(
                settings=settings,
                audio_extractor=AudioExtractor(ffmpeg_path=settings.ffmpeg_path),
                transcriber=build_transcriber(settings),
                translator=build_translator(settings),
            )
            report = generator.generate()
        except AzSubError as e:
            logger.error(f"An AzSub error occurred: {e}")
            return 1
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            return 1
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            return 2

        for stage, error in report.errors.items():
            logger.warning(f"{stage} did not complete: {error}")
        logger.info(f"AzSub finished. Wrote {len(report.written_files)} file(s): {', '.join(report.written_files)}")
        return 0


def main() -> None:
    sys.exit(CLIHandler().run())
