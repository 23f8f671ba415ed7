"""Handles audio extraction from video files using ffmpeg."""

import ffmpeg
import os
import logging
from typing import Optional

from .exceptions import AudioExtractionError, FileSystemError
from .utils import ensure_parent_dir

logger = logging.getLogger(__name__)

# Speech recognition expects 16 kHz mono 16-bit PCM
SAMPLE_RATE = 16000
CHANNELS = 1
AUDIO_CODEC = 'pcm_s16le'

class AudioExtractor:
    """Extracts the audio track from video files."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        """
        Initializes the AudioExtractor.

        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
        """
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        logger.info(f"Using ffmpeg command: {self.ffmpeg_cmd}")

    def extract_audio(self, video_filepath: str, output_audio_path: str) -> str:
        """
        Extracts the audio stream from a video file to a mono 16 kHz WAV file.

        Args:
            video_filepath: Path to the input video file.
            output_audio_path: Where to write the WAV file. Overwritten if present.

        Returns:
            The path to the extracted audio file.

        Raises:
            FileNotFoundError: If the input video file does not exist.
            AudioExtractionError: If ffmpeg fails to extract the audio.
            FileSystemError: If the output location cannot be prepared.
        """
        logger.info(f"Starting audio extraction for: {video_filepath}")
        if not os.path.exists(video_filepath):
            raise FileNotFoundError(f"Input video file not found: {video_filepath}")

        ensure_parent_dir(output_audio_path)

        if os.path.exists(output_audio_path):
            logger.warning(f"Output audio file already exists, overwriting: {output_audio_path}")
            try:
                os.remove(output_audio_path)
            except OSError as e:
                raise FileSystemError(f"Could not remove existing audio file {output_audio_path}: {e}") from e

        try:
            logger.info(f"Running ffmpeg to extract audio to {output_audio_path}...")
            (
                ffmpeg
                .input(video_filepath)
                .output(output_audio_path, acodec=AUDIO_CODEC, ar=SAMPLE_RATE, ac=CHANNELS)
                .overwrite_output()
                .run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg error during audio extraction for {video_filepath}: {stderr_output}")
            if os.path.exists(output_audio_path):
                try:
                    os.remove(output_audio_path)
                except OSError:
                    logger.warning(f"Could not clean up partially created audio file: {output_audio_path}")
            raise AudioExtractionError(f"ffmpeg failed: {stderr_output}") from e
        except OSError as e:
            # ffmpeg binary missing or not executable
            logger.error(f"Could not run {self.ffmpeg_cmd}: {e}", exc_info=True)
            raise AudioExtractionError(f"Could not run {self.ffmpeg_cmd}: {e}") from e

        logger.info(f"Successfully extracted audio to: {output_audio_path}")
        return output_audio_path
