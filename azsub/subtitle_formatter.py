"""Handles converting cues to and from subtitle files (WebVTT and SRT)."""

import logging
import os
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple, Union

from .models import Cue, TranscriptionResult
from .exceptions import ConfigError, FileSystemError, FormatError
from .utils import ensure_parent_dir, format_time_srt, format_time_vtt, ms_to_ticks

logger = logging.getLogger(__name__)

LINE_END = "\r\n"
TIMING_SEPARATOR = "-->"

_VTT_TIME_RE = re.compile(r"^(?:(\d+):)?(\d{2}):(\d{2})\.(\d{3})$")
_SRT_TIME_RE = re.compile(r"^(\d+):(\d{2}):(\d{2}),(\d{3})$")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_SRT_INDEX_RE = re.compile(r"[0-9]+")


def _split_lines(text: str) -> List[str]:
    """Splits on CRLF or LF. A final line break does not produce an extra empty line."""
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = _LINE_SPLIT_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class SubtitleFormatter(ABC):
    """Abstract base class for subtitle formatters."""

    extension: str = ""

    @abstractmethod
    def serialize(self, cues: Sequence[Cue]) -> str:
        """
        Renders cues as subtitle text.

        Args:
            cues: Cues in display order.

        Returns:
            The complete file content, CRLF line endings.
        """
        pass

    @abstractmethod
    def parse(self, text: str) -> List[Cue]:
        """
        Reads subtitle text back into cues.

        Offsets are restored at millisecond resolution.

        Raises:
            FormatError: On the first malformed line, with its line number.
        """
        pass

    @abstractmethod
    def format_timestamp(self, ticks: int) -> str:
        pass

    @abstractmethod
    def parse_timestamp(self, value: str, line_number: int) -> int:
        pass

    def _timing_line(self, cue: Cue) -> str:
        return f"{self.format_timestamp(cue.start_offset)} {TIMING_SEPARATOR} {self.format_timestamp(cue.end_offset)}"

    def _parse_timing_line(self, line: str, line_number: int) -> Tuple[int, int]:
        if TIMING_SEPARATOR not in line:
            raise FormatError(f"Expected a timing line, got {line!r}", line_number)
        left, right = line.split(TIMING_SEPARATOR, 1)
        right_parts = right.split()
        if not right_parts:
            raise FormatError(f"Missing end timestamp in {line!r}", line_number)
        # Anything after the end timestamp is cue settings / positioning
        start = self.parse_timestamp(left.strip(), line_number)
        end = self.parse_timestamp(right_parts[0], line_number)
        if end < start:
            raise FormatError(f"End timestamp is before start timestamp in {line!r}", line_number)
        return start, end

    @staticmethod
    def _read_text(lines: List[str], i: int, block_start: int) -> Tuple[str, int]:
        """Collects cue text lines from `i` up to the terminating blank line."""
        text_lines = []
        while i < len(lines) and lines[i].strip():
            text_lines.append(lines[i])
            i += 1
        if i >= len(lines):
            raise FormatError("Unterminated cue block (missing blank line)", block_start + 1)
        return "\n".join(text_lines), i + 1

    @staticmethod
    def _text_block(text: str) -> str:
        """
        Renders cue text with CRLF between lines.

        Only CRLF and LF separate lines. A blank or whitespace-only line would
        read back as the end of the cue block, so such text is rejected.

        Raises:
            FormatError: If the text has a blank or whitespace-only line.
        """
        if not text:
            return ""
        lines = _LINE_SPLIT_RE.split(text)
        if any(not line.strip() for line in lines):
            raise FormatError(f"Cue text with a blank line cannot be written: {text!r}")
        return LINE_END.join(lines)

    def format_subtitles(
        self,
        cues: Union[TranscriptionResult, Sequence[Cue]],
        output_path: str,
    ) -> None:
        """
        Writes cues to a subtitle file.

        Args:
            cues: A TranscriptionResult or a sequence of cues.
            output_path: Path to save the subtitle file.

        Raises:
            FileSystemError: If the file or its directory cannot be written.
        """
        if isinstance(cues, TranscriptionResult):
            cues = cues.cues
        logger.info(f"Formatting {len(cues)} cues to {self.extension.upper()}: {output_path}")
        content = self.serialize(cues)
        try:
            ensure_parent_dir(output_path)
            # newline='' keeps the CRLF line endings as written
            with open(output_path, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
            logger.info(f"Successfully wrote {len(cues)} subtitle blocks to {output_path}")
        except IOError as e:
            logger.error(f"Failed to write subtitle file to {output_path}: {e}", exc_info=True)
            raise FileSystemError(f"Could not write subtitle file {output_path}: {e}") from e

    def read_subtitles(self, input_path: str) -> List[Cue]:
        """Reads and parses a subtitle file."""
        try:
            with open(input_path, 'r', encoding='utf-8', newline='') as f:
                content = f.read()
        except IOError as e:
            raise FileSystemError(f"Could not read subtitle file {input_path}: {e}") from e
        return self.parse(content)


class VTTFormatter(SubtitleFormatter):
    """Formats subtitles into the VTT (Web Video Text Tracks) format."""

    extension = "vtt"
    header = "WEBVTT"
    _skipped_blocks = ("NOTE", "STYLE", "REGION")

    def format_timestamp(self, ticks: int) -> str:
        return format_time_vtt(ticks)

    def parse_timestamp(self, value: str, line_number: int) -> int:
        match = _VTT_TIME_RE.match(value)
        if not match:
            raise FormatError(f"Malformed WebVTT timestamp {value!r}", line_number)
        hours, minutes, seconds, millis = match.groups()
        if int(minutes) > 59 or int(seconds) > 59:
            raise FormatError(f"Timestamp out of range {value!r}", line_number)
        return ms_to_ticks(int(hours or 0), int(minutes), int(seconds), int(millis))

    def serialize(self, cues: Sequence[Cue]) -> str:
        parts = [f"{self.header}{LINE_END}{LINE_END}"]
        for cue in cues:
            parts.append(f"{self._timing_line(cue)}{LINE_END}{self._text_block(cue.text)}{LINE_END}{LINE_END}")
        return "".join(parts)

    def parse(self, text: str) -> List[Cue]:
        lines = _split_lines(text)
        if not lines or not (lines[0] == self.header or lines[0].startswith((self.header + " ", self.header + "\t"))):
            raise FormatError("Missing WEBVTT header", 1)

        # Header block runs to the first blank line
        i = 1
        while i < len(lines) and lines[i].strip():
            i += 1

        cues: List[Cue] = []
        while i < len(lines):
            line = lines[i]
            if not line.strip():
                i += 1
                continue
            if line.split(" ", 1)[0] in self._skipped_blocks:
                while i < len(lines) and lines[i].strip():
                    i += 1
                continue

            block_start = i
            if TIMING_SEPARATOR not in line:
                # Optional cue identifier
                i += 1
                if i >= len(lines):
                    raise FormatError("Unterminated cue block (missing timing line)", block_start + 1)
            start, end = self._parse_timing_line(lines[i], i + 1)
            cue_text, i = self._read_text(lines, i + 1, block_start)
            cues.append(Cue(start_offset=start, end_offset=end, text=cue_text, cue_id=len(cues)))

        logger.debug(f"Parsed {len(cues)} WebVTT cues")
        return cues


class SRTFormatter(SubtitleFormatter):
    """Formats subtitles into the SRT (SubRip Text) format."""

    extension = "srt"

    def format_timestamp(self, ticks: int) -> str:
        return format_time_srt(ticks)

    def parse_timestamp(self, value: str, line_number: int) -> int:
        match = _SRT_TIME_RE.match(value)
        if not match:
            raise FormatError(f"Malformed SRT timestamp {value!r}", line_number)
        hours, minutes, seconds, millis = (int(part) for part in match.groups())
        if minutes > 59 or seconds > 59:
            raise FormatError(f"Timestamp out of range {value!r}", line_number)
        return ms_to_ticks(hours, minutes, seconds, millis)

    def serialize(self, cues: Sequence[Cue]) -> str:
        parts = []
        for subtitle_index, cue in enumerate(cues, start=1):
            parts.append(
                f"{subtitle_index}{LINE_END}"
                f"{self._timing_line(cue)}{LINE_END}"
                f"{self._text_block(cue.text)}{LINE_END}{LINE_END}"
            )
        return "".join(parts)

    def parse(self, text: str) -> List[Cue]:
        lines = _split_lines(text)
        cues: List[Cue] = []
        i = 0
        while i < len(lines):
            line = lines[i].strip()
            if not line:
                i += 1
                continue

            block_start = i
            if not _SRT_INDEX_RE.fullmatch(line):
                raise FormatError(f"Expected a subtitle index, got {line!r}", i + 1)
            if int(line) != len(cues) + 1:
                logger.debug(f"SRT index {line} at line {i + 1} is out of sequence")
            i += 1
            if i >= len(lines):
                raise FormatError("Unterminated cue block (missing timing line)", block_start + 1)
            start, end = self._parse_timing_line(lines[i], i + 1)
            cue_text, i = self._read_text(lines, i + 1, block_start)
            cues.append(Cue(start_offset=start, end_offset=end, text=cue_text, cue_id=len(cues)))

        logger.debug(f"Parsed {len(cues)} SRT cues")
        return cues


_FORMATTERS = {
    "vtt": VTTFormatter,
    "srt": SRTFormatter,
}


def get_formatter(name: str) -> SubtitleFormatter:
    """Returns a formatter for 'vtt' or 'srt'."""
    try:
        return _FORMATTERS[name.lower().lstrip(".")]()
    except KeyError:
        raise ConfigError(f"Unsupported subtitle format '{name}'. Choose one of: {', '.join(_FORMATTERS)}.") from None


def formatter_for_path(path: str, default: Optional[str] = None) -> SubtitleFormatter:
    """Picks the formatter from a file extension."""
    ext = os.path.splitext(path)[1]
    if not ext:
        if default is None:
            raise ConfigError(f"Cannot infer subtitle format from '{path}' (no file extension).")
        ext = default
    return get_formatter(ext)
