# app/integrations/llm_client.py

import logging
import google.generativeai as genai
from google.generativeai import GenerativeModel
from app.core.config import settings
from app.core.errors import ProviderError, EmptyCompletion

logger = logging.getLogger(__name__)

google_gemini_model: GenerativeModel = None

def initialize_llm_clients():
    global google_gemini_model
    if settings.GOOGLE_API_KEY:
        genai.configure(api_key=settings.GOOGLE_API_KEY)
        google_gemini_model = genai.GenerativeModel(settings.LLM_MODEL_NAME)
        logger.info("Google Gemini client initialized.")
    else:
        logger.warning("Google Gemini API Key not found. Gemini client not initialized.")


class GeminiCompletionProvider:
    """Thin wrapper around a Gemini model that turns every failure into ProviderError."""

    def __init__(self, model: GenerativeModel = None):
        self._model = model

    @property
    def model(self) -> GenerativeModel:
        model = self._model or google_gemini_model
        if model is None:
            raise ProviderError("Gemini API key is not configured.")
        return model

    async def complete(self, prompt: str) -> str:
        """
        Sends the prompt and returns the completion text.

        Raises:
            ProviderError: the call failed or the response could not be read
            EmptyCompletion: the call succeeded but produced no usable text
        """
        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config=genai.GenerationConfig(
                    max_output_tokens=settings.LLM_MAX_OUTPUT_TOKENS,
                    temperature=settings.LLM_TEMPERATURE,
                ),
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise ProviderError(f"Gemini API Error: {e}", status_code=getattr(e, "code", None))

        text = _extract_text(response)
        if not text or not text.strip():
            raise EmptyCompletion()
        return text.strip()


def _extract_text(response) -> str:
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        return ""
    return "".join(getattr(part, "text", "") or "" for part in parts)


def get_completion_provider() -> GeminiCompletionProvider:
    """Dependency returning the configured completion provider."""
    return GeminiCompletionProvider()
