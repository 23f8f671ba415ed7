"""Data models for AzSub."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

# Offsets and durations from the recognition service are 100-nanosecond ticks.
TICKS_PER_MILLISECOND = 10_000
TICKS_PER_SECOND = 10_000_000


@dataclass
class Cue:
    """One timed subtitle entry. Offsets are in ticks from the start of the stream."""
    start_offset: int
    end_offset: int
    text: str
    cue_id: int = 0

    def __post_init__(self):
        if self.start_offset < 0:
            raise ValueError(f"Cue start offset must be non-negative, got {self.start_offset}")
        if self.end_offset < self.start_offset:
            raise ValueError(
                f"Cue end offset {self.end_offset} is before start offset {self.start_offset}"
            )

    @property
    def start_ms(self) -> int:
        return self.start_offset // TICKS_PER_MILLISECOND

    @property
    def end_ms(self) -> int:
        return self.end_offset // TICKS_PER_MILLISECOND


@dataclass(frozen=True)
class Recognized:
    """A recognition result. `matched` is False for a no-match notification."""
    offset: int
    duration: int
    text: str
    matched: bool = True
    no_match_reason: Optional[str] = None


@dataclass(frozen=True)
class Canceled:
    """The recognition service canceled (part of) the session."""
    reason: str
    detail: str = ""

    @property
    def is_error(self) -> bool:
        return self.reason.lower() == "error"


@dataclass(frozen=True)
class SessionEnded:
    """Marks the end of a recognition session. Nothing follows it."""
    session_id: Optional[str] = None


RecognitionEvent = Union[Recognized, Canceled, SessionEnded]

# target language code -> translated texts, positionally aligned with the source cues
TranslationResult = Dict[str, List[str]]


@dataclass
class TranscriptionResult:
    """Holds the structured output from the recognition session."""
    language: Optional[str]
    cues: List[Cue] = field(default_factory=list)
    cancellations: List[Canceled] = field(default_factory=list)
    original_audio_path: Optional[str] = None # Keep track of source if needed

    @property
    def texts(self) -> List[str]:
        return [cue.text for cue in self.cues]
