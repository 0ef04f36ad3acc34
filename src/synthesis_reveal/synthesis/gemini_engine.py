"""
Gemini Synthesis Engines
========================

Production concept extraction and image generation using the Gemini API.

This module:
    - Sends the JPEG capture plus a fixed instruction for a literal description
    - Requests a single IMAGE-modality response for the concept prompt
    - Wraps every backend failure in the synthesis error types

Design Rules:
    - Fail fast on misconfiguration (missing API key)
    - Never retry, the controller decides what a failure means
    - Log all API calls
"""

import logging
import time
from typing import Optional

from google import genai
from google.genai import types

from synthesis_reveal.synthesis.engine import (
    CONCEPT_INSTRUCTION,
    ConceptExtractionError,
    ImageGenerationError,
)


logger = logging.getLogger(__name__)


def create_client(api_key: Optional[str]) -> genai.Client:
    """
    Create a Gemini client.

    Raises:
        ValueError: If no API key is configured
    """
    if not api_key:
        raise ValueError(
            "Gemini backend requires an API key "
            "(set synthesis.api_key or GEMINI_API_KEY)"
        )
    return genai.Client(api_key=api_key)


class GeminiConceptExtractor:
    """
    Concept extraction with a multimodal Gemini model.

    Attributes:
        model: Model name used for the vision call
    """

    def __init__(
        self,
        client: genai.Client,
        model: str = "gemini-2.5-flash",
        instruction: str = CONCEPT_INSTRUCTION,
    ) -> None:
        self._client = client
        self.model = model
        self.instruction = instruction

        self._api_call_count = 0
        self._api_error_count = 0

        logger.info(f"GeminiConceptExtractor initialized: model={model}")

    async def extract_concept(self, jpeg_bytes: bytes) -> str:
        """
        Describe the captured subject in a few words.

        Returns:
            Stripped response text (may be empty)

        Raises:
            ConceptExtractionError: If the API call fails
        """
        start = time.time()
        self._api_call_count += 1
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[
                    self.instruction,
                    types.Part.from_bytes(data=jpeg_bytes, mime_type="image/jpeg"),
                ],
            )
        except Exception as e:
            self._api_error_count += 1
            raise ConceptExtractionError(f"Gemini concept call failed: {e}") from e

        text = (response.text or "").strip()
        logger.info(
            f"Gemini concept: model={self.model}, "
            f"elapsed={time.time() - start:.2f}s, text='{text}'"
        )
        return text

    def get_metrics(self) -> dict:
        """Get extractor metrics for observability."""
        return {
            "model": self.model,
            "api_call_count": self._api_call_count,
            "api_error_count": self._api_error_count,
        }


class GeminiImageGenerator:
    """
    Image generation with a Gemini image model.

    Attributes:
        model: Model name used for generation
    """

    def __init__(
        self,
        client: genai.Client,
        model: str = "gemini-2.5-flash-image",
    ) -> None:
        self._client = client
        self.model = model

        self._api_call_count = 0
        self._api_error_count = 0

        logger.info(f"GeminiImageGenerator initialized: model={model}")

    async def generate_image(self, prompt: str) -> bytes:
        """
        Generate one image for the prompt.

        Returns:
            Encoded image bytes from the first inline image part,
            empty if the response carried no image

        Raises:
            ImageGenerationError: If the API call fails
        """
        start = time.time()
        self._api_call_count += 1
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                ),
            )
        except Exception as e:
            self._api_error_count += 1
            raise ImageGenerationError(f"Gemini image call failed: {e}") from e

        data = _first_inline_image(response)
        logger.info(
            f"Gemini image: model={self.model}, "
            f"elapsed={time.time() - start:.2f}s, bytes={len(data)}"
        )
        return data

    def get_metrics(self) -> dict:
        """Get generator metrics for observability."""
        return {
            "model": self.model,
            "api_call_count": self._api_call_count,
            "api_error_count": self._api_error_count,
        }


def _first_inline_image(response: types.GenerateContentResponse) -> bytes:
    """Bytes of the first inline data part of the first candidate."""
    if not response.candidates:
        return b""
    content = response.candidates[0].content
    if content is None or not content.parts:
        return b""
    for part in content.parts:
        if part.inline_data is not None and part.inline_data.data:
            return part.inline_data.data
    return b""
