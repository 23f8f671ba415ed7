"""Handles text translation with the Azure Translator REST API."""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import requests

from .exceptions import NetworkError, TranslationError
from .models import TranslationResult

logger = logging.getLogger(__name__)

class Translator(ABC):
    """Abstract base class for translation services."""

    @abstractmethod
    def translate_batch(self, texts: Sequence[str], source_lang: str, target_langs: Sequence[str]) -> TranslationResult:
        """
        Translates every text into every target language in one batch.

        Args:
            texts: Source texts, one per cue.
            source_lang: Source language code (e.g., 'en').
            target_langs: Target language codes (e.g., ['es', 'fr']).

        Returns:
            Target language -> translated texts in the same order as `texts`.

        Raises:
            TranslationError: If translation fails.
            NetworkError: If the translation service cannot be reached.
        """
        pass


class AzureTranslator(Translator):
    """
    Azure Translator v3 client.

    All texts go out in a single POST /translate request; the service answers
    with one element per input text, each listing one translation per target
    language in request order.
    """

    API_VERSION = "3.0"

    def __init__(
        self,
        subscription_key: str,
        region: Optional[str] = None,
        endpoint: str = "https://api.cognitive.microsofttranslator.com",
        timeout_seconds: float = 30.0,
    ):
        if not subscription_key:
            raise TranslationError("Azure Translator subscription key is required.")
        self.subscription_key = subscription_key
        self.region = region
        self.endpoint = endpoint.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Ocp-Apim-Subscription-Key": self.subscription_key,
            "Content-Type": "application/json",
            "X-ClientTraceId": str(uuid.uuid4()),
        }
        if self.region:
            headers["Ocp-Apim-Subscription-Region"] = self.region
        return headers

    def translate_batch(self, texts: Sequence[str], source_lang: str, target_langs: Sequence[str]) -> TranslationResult:
        target_langs = list(target_langs)
        if not texts or not target_langs:
            return {lang: [] for lang in target_langs}

        # Translator wants a language ("en"), not a locale ("en-US")
        source = source_lang.split("-")[0].lower()
        params = [("api-version", self.API_VERSION), ("from", source)] + [("to", lang) for lang in target_langs]
        body = [{"Text": text} for text in texts]

        logger.info(f"Translating {len(texts)} texts from '{source}' to {', '.join(target_langs)}")
        try:
            r = self.session.post(
                f"{self.endpoint}/translate",
                params=params,
                headers=self._headers(),
                json=body,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error(f"Translation request failed: {e}")
            raise NetworkError(f"Translation request failed: {e}") from e

        if r.status_code >= 400:
            raise NetworkError(f"Translation HTTP failed: http={r.status_code}, body={r.text[:300]}")

        try:
            payload = r.json()
        except ValueError as e:
            raise NetworkError(f"Translation response is not JSON: {r.text[:300]}") from e

        return self._collect(payload, target_langs)

    @staticmethod
    def _collect(payload, target_langs: List[str]) -> TranslationResult:
        """Regroups the per-text response into per-language lists."""
        if not isinstance(payload, list):
            raise TranslationError(f"Unexpected translation response: {str(payload)[:300]}")
        result: Dict[str, List[str]] = {lang: [] for lang in target_langs}
        try:
            for item in payload:
                for lang, translation in zip(target_langs, item["translations"]):
                    result[lang].append(translation["text"])
        except (KeyError, TypeError) as e:
            raise TranslationError(f"Malformed translation response: {e}") from e
        # Count mismatches are left for the merger to report per language
        return result
