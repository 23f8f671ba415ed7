"""Handles text translation locally using Hugging Face models."""

import logging
import torch
from transformers import AutoTokenizer, AutoModelForSeq2SeqLM
from tqdm import tqdm
from typing import Dict, List, Sequence, Tuple

from .exceptions import TranslationError
from .models import TranslationResult
from .translator import Translator

logger = logging.getLogger(__name__)

class HuggingFaceTranslator(Translator):
    """Implements translation using Hugging Face Transformers models, one model per language pair."""

    def __init__(
        self,
        model_template: str = "Helsinki-NLP/opus-mt-{source}-{target}",
        device: str = "cuda",
        batch_size: int = 16,
    ):
        """
        Initializes the HuggingFaceTranslator.

        Models are loaded lazily, the first time a language pair is needed.

        Args:
            model_template: Model name with {source} and {target} placeholders.
            device: The device to run the model on ("cuda" or "cpu").
            batch_size: Number of texts per generate() call.

        Raises:
            ValueError: If the specified device is invalid.
        """
        self.model_template = model_template
        self.device = device
        self.batch_size = batch_size
        self._models: Dict[Tuple[str, str], tuple] = {}

        if self.device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA device requested but not available for translation. Falling back to CPU.")
            self.device = "cpu"
        elif self.device not in ["cuda", "cpu"]:
            raise ValueError(f"Invalid device specified: {self.device}. Choose 'cuda' or 'cpu'.")

    def _load(self, source_lang: str, target_lang: str):
        key = (source_lang, target_lang)
        if key not in self._models:
            model_name = self.model_template.format(source=source_lang, target=target_lang)
            logger.info(f"Loading translation model '{model_name}' on device '{self.device}'")
            try:
                tokenizer = AutoTokenizer.from_pretrained(model_name)
                model = AutoModelForSeq2SeqLM.from_pretrained(model_name)
                model.to(self.device)
                model.eval() # Set model to evaluation mode
            except Exception as e:
                logger.error(f"Failed to load translation model or tokenizer '{model_name}': {e}", exc_info=True)
                raise TranslationError(f"Failed to load translation model/tokenizer '{model_name}': {e}") from e
            self._models[key] = (tokenizer, model)
        return self._models[key]

    def _translate_language(self, texts: Sequence[str], source_lang: str, target_lang: str) -> List[str]:
        tokenizer, model = self._load(source_lang, target_lang)
        translated: List[str] = []
        batches = range(0, len(texts), self.batch_size)
        for start in tqdm(batches, desc=f"Translating to {target_lang}", unit="batch"):
            batch = list(texts[start:start + self.batch_size])
            try:
                inputs = tokenizer(batch, return_tensors="pt", padding=True, truncation=True, max_length=512)
                inputs = {k: v.to(self.device) for k, v in inputs.items()}
                with torch.no_grad():
                    tokens = model.generate(**inputs)
                translated.extend(tokenizer.batch_decode(tokens, skip_special_tokens=True))
            except Exception as e:
                logger.error(f"Error during translation of batch starting at {start}: {e}", exc_info=True)
                raise TranslationError(f"Hugging Face translation failed: {e}") from e
        return translated

    def translate_batch(self, texts: Sequence[str], source_lang: str, target_langs: Sequence[str]) -> TranslationResult:
        source = source_lang.split("-")[0].lower()
        return {lang: self._translate_language(texts, source, lang) for lang in target_langs}
