"""Utility functions for AzSub."""

import os
import logging
from typing import Tuple

from .exceptions import FileSystemError
from .models import TICKS_PER_MILLISECOND

logger = logging.getLogger(__name__)

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def ensure_parent_dir(file_path: str) -> None:
    """Creates the directory holding `file_path` if it has one."""
    parent = os.path.dirname(file_path)
    if parent:
        ensure_dir_exists(parent)

def split_ticks(ticks: int) -> Tuple[int, int, int, int]:
    """
    Splits a tick offset into (hours, minutes, seconds, milliseconds).

    Sub-millisecond ticks are truncated, never rounded up.
    """
    if ticks < 0:
        ticks = 0 # Ensure non-negative time
    milliseconds = ticks // TICKS_PER_MILLISECOND
    hrs = milliseconds // 3600000
    milliseconds %= 3600000
    mins = milliseconds // 60000
    milliseconds %= 60000
    secs = milliseconds // 1000
    milliseconds %= 1000
    return hrs, mins, secs, milliseconds

def format_time_vtt(ticks: int) -> str:
    """
    Formats ticks into WebVTT time format H:MM:SS.mmm (hours not padded).

    Args:
        ticks: Offset in 100-nanosecond ticks.

    Returns:
        Formatted time string.
    """
    hrs, mins, secs, milliseconds = split_ticks(ticks)
    return f"{hrs}:{mins:02d}:{secs:02d}.{milliseconds:03d}"

def format_time_srt(ticks: int) -> str:
    """
    Formats ticks into SRT time format HH:MM:SS,mmm.

    Args:
        ticks: Offset in 100-nanosecond ticks.

    Returns:
        Formatted time string.
    """
    hrs, mins, secs, milliseconds = split_ticks(ticks)
    return f"{hrs:02d}:{mins:02d}:{secs:02d},{milliseconds:03d}"

def ms_to_ticks(hours: int, minutes: int, seconds: int, milliseconds: int) -> int:
    total_ms = ((hours * 60 + minutes) * 60 + seconds) * 1000 + milliseconds
    return total_ms * TICKS_PER_MILLISECOND
