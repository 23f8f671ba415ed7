"""Turns an ordered stream of recognition events into subtitle cues."""

import logging
import queue
from typing import Iterable, Iterator, Optional

from .exceptions import RecognitionTimeout, TranscriptionError
from .models import (
    Canceled,
    Cue,
    Recognized,
    RecognitionEvent,
    SessionEnded,
    TranscriptionResult,
)

logger = logging.getLogger(__name__)


class EventChannel:
    """
    Ordered hand-off of recognition events from SDK callbacks to the assembler.

    `put` may be called from any thread. Iterating the channel blocks until the
    next event arrives, yields events in delivery order, and stops right after
    `SessionEnded`. If nothing arrives within `timeout_seconds` the iteration
    raises `RecognitionTimeout`, so a recognizer that never ends its session
    cannot hang the pipeline forever.
    """

    def __init__(self, timeout_seconds: Optional[float] = None, maxsize: int = 0):
        self.timeout_seconds = timeout_seconds
        self._queue = queue.Queue(maxsize=maxsize)
        self._closed = False

    def put(self, event: RecognitionEvent) -> None:
        if self._closed:
            logger.debug(f"Dropping event delivered after session end: {event!r}")
            return
        self._queue.put(event)

    def __iter__(self) -> Iterator[RecognitionEvent]:
        while True:
            try:
                event = self._queue.get(timeout=self.timeout_seconds)
            except queue.Empty:
                raise RecognitionTimeout(
                    f"No recognition event received within {self.timeout_seconds} seconds "
                    "and the session has not ended."
                ) from None
            yield event
            if isinstance(event, SessionEnded):
                self._closed = True
                return


class TranscriptAssembler:
    """
    Builds a TranscriptionResult from one recognition session.

    Cues are appended in arrival order; the recognizer is expected to deliver
    results with non-decreasing offsets and the assembler only warns when it
    does not. Every call to `assemble` starts from empty state.
    """

    def __init__(self, language: Optional[str] = None):
        self.language = language

    def assemble(
        self,
        events: Iterable[RecognitionEvent],
        original_audio_path: Optional[str] = None,
    ) -> TranscriptionResult:
        """
        Consumes events until `SessionEnded` and returns the finished result.

        Args:
            events: Recognition events in delivery order.
            original_audio_path: Source audio, recorded on the result.

        Returns:
            The assembled TranscriptionResult.

        Raises:
            TranscriptionError: If the events run out before `SessionEnded`.
            RecognitionTimeout: If the event source times out (see EventChannel).
        """
        result = TranscriptionResult(language=self.language, original_audio_path=original_audio_path)
        matched_count = 0

        for event in events:
            if isinstance(event, Recognized):
                if not event.matched:
                    logger.info(f"(recognized) NoMatch | NoMatchReason: {event.no_match_reason or 'unknown'}")
                    continue
                matched_count += 1
                if not event.text:
                    logger.debug(f"Empty match at offset {event.offset}")
                if result.cues and event.offset < result.cues[-1].start_offset:
                    logger.warning(
                        f"Recognized result at offset {event.offset} arrived after a cue starting at "
                        f"{result.cues[-1].start_offset}; keeping arrival order."
                    )
                cue = Cue(
                    start_offset=event.offset,
                    end_offset=event.offset + event.duration,
                    text=event.text,
                    cue_id=len(result.cues),
                )
                result.cues.append(cue)
                logger.debug(
                    f"(recognized) Duration: {event.duration} | Offset: {event.offset} | Text: {event.text[:50]}"
                )
            elif isinstance(event, Canceled):
                message = f"(cancel) Reason: {event.reason}"
                if event.detail:
                    message += f": {event.detail}"
                if event.is_error:
                    logger.error(message)
                else:
                    logger.warning(message)
                result.cancellations.append(event)
            elif isinstance(event, SessionEnded):
                logger.info(
                    f"Recognition session {event.session_id or ''} ended with {len(result.cues)} cues "
                    f"({matched_count} matched results)."
                )
                return result
            else:
                raise TranscriptionError(f"Unknown recognition event: {event!r}")

        raise TranscriptionError("Recognition event stream ended without a session end notification.")
