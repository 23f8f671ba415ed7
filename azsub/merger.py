"""Merges translated texts back onto the timing of the source cues."""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence

from .exceptions import AlignmentError
from .models import Cue, TranslationResult

logger = logging.getLogger(__name__)


def _check_cue_ids(cues: Sequence[Cue]) -> None:
    seen = set()
    for cue in cues:
        if cue.cue_id in seen:
            raise AlignmentError(f"Duplicate cue id {cue.cue_id} in source cues; cannot correlate translations.")
        seen.add(cue.cue_id)


def merge_language(cues: Sequence[Cue], language: str, texts: Sequence[str]) -> List[Cue]:
    """
    Builds the cue list for one target language.

    Position i of `texts` is the translation of `cues[i]`. Offsets and cue ids
    are copied unchanged; each returned cue is a new object.

    Raises:
        AlignmentError: If the number of texts differs from the number of cues.
    """
    if len(texts) != len(cues):
        raise AlignmentError(
            f"Translation for '{language}' has {len(texts)} texts but there are {len(cues)} cues."
        )
    _check_cue_ids(cues)
    return [replace(cue, text=text) for cue, text in zip(cues, texts)]


def merge_translations(
    cues: Sequence[Cue],
    target_languages: Iterable[str],
    translations: TranslationResult,
) -> Dict[str, List[Cue]]:
    """
    Builds one independent cue list per target language.

    Every requested language is validated before any output is built, so a
    mismatch never yields a partial result. The source cues are not modified.

    Args:
        cues: Source cues.
        target_languages: Language codes to produce.
        translations: Language code -> translated texts, aligned with `cues`.

    Returns:
        Language code -> translated cues.

    Raises:
        AlignmentError: If a language is missing from `translations` or its
            text count differs from the cue count.
    """
    target_languages = list(target_languages)
    for language in target_languages:
        if language not in translations:
            raise AlignmentError(f"No translations returned for '{language}'.")
        if len(translations[language]) != len(cues):
            raise AlignmentError(
                f"Translation for '{language}' has {len(translations[language])} texts "
                f"but there are {len(cues)} cues."
            )

    merged = {language: merge_language(cues, language, translations[language]) for language in target_languages}
    logger.debug(f"Merged translations for {len(merged)} languages over {len(cues)} cues")
    return merged
