"""Handles loading configuration from YAML (or JSON) files."""

import yaml
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .exceptions import ConfigError
from .subtitle_formatter import formatter_for_path

logger = logging.getLogger(__name__)

RECOGNIZERS = ("azure", "whisper")
TRANSLATORS = ("azure", "huggingface")
DEFAULT_TRANSLATOR_ENDPOINT = "https://api.cognitive.microsofttranslator.com"

# Keys used by the original config.json files
_KEY_ALIASES = {
    "videoFile": "video_file",
    "audioFile": "audio_file",
    "outputFile": "output_file",
    "outputFiles": "output_files",
    "ffmpegPath": "ffmpeg_path",
    "keepAudio": "keep_audio",
}


class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        JSON is a subset of YAML, so `config.json` files load unchanged.

        Args:
            config_path: The path to the configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigError: If the file cannot be parsed or its root is not a mapping.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing configuration file {config_path}: {e}", exc_info=True)
            raise ConfigError(f"Invalid YAML format in {config_path}: {e}") from e
        except IOError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigError(f"Could not read configuration file {config_path}: {e}") from e

        if not isinstance(config, dict):
            # Handle cases where YAML loads something other than a dictionary (e.g., just a string)
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigError(f"Invalid structure in {config_path}. Root must be a mapping (dictionary).")
        logger.info(f"Configuration loaded successfully from {config_path}")
        return normalize_keys(config)


def normalize_keys(raw: Mapping) -> dict:
    """Maps camelCase keys of the original config format onto snake_case."""
    return {_KEY_ALIASES.get(key, key): value for key, value in raw.items()}


def _as_paths(language: str, value) -> Tuple[str, ...]:
    if isinstance(value, str):
        paths = (value,)
    elif isinstance(value, dict):
        paths = tuple(value.values())
    elif isinstance(value, (list, tuple)):
        paths = tuple(value)
    else:
        raise ConfigError(f"Output paths for translation '{language}' must be a path, a list or a mapping.")
    if not paths or not all(isinstance(p, str) and p for p in paths):
        raise ConfigError(f"Output paths for translation '{language}' must be non-empty strings.")
    return paths


def _as_bool(raw: Mapping, key: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}.")
    return value


def _require_subtitle_paths(paths: Tuple[str, ...]) -> None:
    for path in paths:
        formatter_for_path(path)


@dataclass(frozen=True)
class Settings:
    """All options for one run. Built once and handed to each component."""
    video_file: str
    audio_file: str = "test_audio.wav"
    output_files: Tuple[str, ...] = ("transcript.vtt",)
    language: str = "en-US"
    translations: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    recognizer: str = "azure"
    translator: str = "azure"
    recognition_timeout_seconds: float = 600.0
    translation_timeout_seconds: float = 30.0
    ffmpeg_path: Optional[str] = None
    keep_audio: bool = False
    log_dir: str = "logs"
    log_file: str = "azsub.log"
    speech_key: Optional[str] = field(default=None, repr=False)
    speech_region: Optional[str] = None
    translator_key: Optional[str] = field(default=None, repr=False)
    translator_region: Optional[str] = None
    translator_endpoint: str = DEFAULT_TRANSLATOR_ENDPOINT
    whisper_model: str = "medium"
    device: str = "cuda"
    whisper_fp16: bool = True
    translation_model: str = "Helsinki-NLP/opus-mt-{source}-{target}"

    @property
    def source_language(self) -> str:
        """Language part of the recognition locale, e.g. 'en' for 'en-US'."""
        return self.language.split("-")[0].lower()

    @property
    def target_languages(self) -> Tuple[str, ...]:
        return tuple(self.translations)

    @classmethod
    def from_dict(cls, raw: Mapping, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Validates a raw configuration mapping and fills in defaults.

        Args:
            raw: Configuration values (camelCase keys are accepted).
            env: Environment to read credentials from. Defaults to os.environ.

        Raises:
            ConfigError: If a required value is missing or invalid.
        """
        if env is None:
            env = os.environ
        raw = normalize_keys(raw)

        video_file = raw.get("video_file")
        if not video_file:
            raise ConfigError("Either the configuration file is missing or video_file is not specified in it.")

        output_files = raw.get("output_files") or raw.get("output_file") or "transcript.vtt"
        if isinstance(output_files, str):
            output_files = (output_files,)
        output_files = tuple(output_files)
        _require_subtitle_paths(output_files)

        translations_raw = raw.get("translations") or {}
        if not isinstance(translations_raw, dict):
            raise ConfigError("'translations' must map language codes to output paths.")
        translations = {}
        for language, value in translations_raw.items():
            paths = _as_paths(str(language), value)
            _require_subtitle_paths(paths)
            translations[str(language)] = paths

        recognizer = str(raw.get("recognizer", "azure")).lower()
        if recognizer not in RECOGNIZERS:
            raise ConfigError(f"Unsupported recognizer '{recognizer}'. Choose one of: {', '.join(RECOGNIZERS)}.")
        translator = str(raw.get("translator", "azure")).lower()
        if translator not in TRANSLATORS:
            raise ConfigError(f"Unsupported translator '{translator}'. Choose one of: {', '.join(TRANSLATORS)}.")

        try:
            recognition_timeout = float(raw.get("recognition_timeout_seconds", 600))
            translation_timeout = float(raw.get("translation_timeout_seconds", 30))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Timeouts must be numbers: {e}") from e
        if recognition_timeout <= 0 or translation_timeout <= 0:
            raise ConfigError("Timeouts must be positive.")

        settings = cls(
            video_file=video_file,
            audio_file=raw.get("audio_file") or "test_audio.wav",
            output_files=output_files,
            language=raw.get("language") or "en-US",
            translations=translations,
            recognizer=recognizer,
            translator=translator,
            recognition_timeout_seconds=recognition_timeout,
            translation_timeout_seconds=translation_timeout,
            ffmpeg_path=raw.get("ffmpeg_path") or env.get("FFMPEG_PATH"),
            keep_audio=_as_bool(raw, "keep_audio", False),
            log_dir=raw.get("log_dir", "logs"),
            log_file=raw.get("log_file", "azsub.log"),
            speech_key=env.get("AZURE_SPEECH_SUBSCRIPTION_KEY"),
            speech_region=env.get("AZURE_SPEECH_SERVICE_REGION"),
            translator_key=env.get("AZURE_TRANSLATOR_KEY"),
            translator_region=env.get("AZURE_TRANSLATOR_REGION"),
            translator_endpoint=raw.get("translator_endpoint") or DEFAULT_TRANSLATOR_ENDPOINT,
            whisper_model=raw.get("whisper_model", "medium"),
            device=raw.get("device", "cuda"),
            whisper_fp16=_as_bool(raw, "whisper_fp16", True),
            translation_model=raw.get("translation_model", "Helsinki-NLP/opus-mt-{source}-{target}"),
        )
        settings._check_credentials()
        return settings

    def _check_credentials(self) -> None:
        if self.recognizer == "azure" and not (self.speech_key and self.speech_region):
            raise ConfigError(
                "AZURE_SPEECH_SUBSCRIPTION_KEY and AZURE_SPEECH_SERVICE_REGION must be set "
                "to use the Azure recognizer."
            )
        if self.translations and self.translator == "azure" and not self.translator_key:
            raise ConfigError("AZURE_TRANSLATOR_KEY must be set to translate with Azure Translator.")
