"""
Synthesis Backend Tests
=======================

Tests for the mock backends, prompt building and the Gemini adapters
(with a stub client, no network).
"""

import asyncio
from types import SimpleNamespace

import pytest


class _StubModels:
    """Records generate_content calls and replays a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _stub_client(models: _StubModels):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


class TestPrompt:
    """Tests for prompt construction."""

    def test_style_suffix_appended(self):
        """Verify the photographic style suffix is appended verbatim."""
        from synthesis_reveal.synthesis.engine import build_image_prompt

        assert build_image_prompt("red ceramic mug") == (
            "red ceramic mug, full color photography, vivid, detailed"
        )

    def test_instruction_text(self):
        """Verify the concept instruction asks for 3 to 6 words."""
        from synthesis_reveal.synthesis.engine import CONCEPT_INSTRUCTION

        assert "exactly 3 to 6 words" in CONCEPT_INSTRUCTION
        assert CONCEPT_INSTRUCTION.endswith("Do not use punctuation.")


class TestMockBackends:
    """Tests for the offline mock backends."""

    def test_mock_extractor(self):
        """Verify the mock extractor returns its fixed concept."""
        from synthesis_reveal.synthesis.engine import MockConceptExtractor

        extractor = MockConceptExtractor(concept="small green cactus")
        text = asyncio.run(extractor.extract_concept(b"jpeg"))

        assert text == "small green cactus"
        assert extractor.call_count == 1
        assert extractor.last_request == b"jpeg"

    def test_mock_extractor_failure(self):
        """Verify failure injection raises ConceptExtractionError."""
        from synthesis_reveal.synthesis.engine import ConceptExtractionError, MockConceptExtractor

        with pytest.raises(ConceptExtractionError):
            asyncio.run(MockConceptExtractor(fail=True).extract_concept(b"jpeg"))

    def test_mock_generator_returns_png(self):
        """Verify the mock generator returns a decodable image."""
        from synthesis_reveal.capture.codec import decode_rgba
        from synthesis_reveal.synthesis.engine import MockImageGenerator

        generator = MockImageGenerator(size=32)
        data = asyncio.run(generator.generate_image("a prompt"))

        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        assert decode_rgba(data).shape == (32, 32, 4)
        assert generator.last_prompt == "a prompt"

    def test_mock_generator_empty_and_failure(self):
        """Verify empty output and failure injection."""
        from synthesis_reveal.synthesis.engine import ImageGenerationError, MockImageGenerator

        assert asyncio.run(MockImageGenerator(empty=True).generate_image("x")) == b""
        with pytest.raises(ImageGenerationError):
            asyncio.run(MockImageGenerator(fail=True).generate_image("x"))


class TestGeminiAdapters:
    """Tests for the Gemini adapters against a stub client."""

    def test_create_client_requires_key(self):
        """Verify the gemini backend fails fast without an API key."""
        from synthesis_reveal.synthesis.gemini_engine import create_client

        with pytest.raises(ValueError):
            create_client(None)
        with pytest.raises(ValueError):
            create_client("")

    def test_concept_request_and_strip(self):
        """Verify the capture and instruction are sent and text is stripped."""
        from synthesis_reveal.synthesis.engine import CONCEPT_INSTRUCTION
        from synthesis_reveal.synthesis.gemini_engine import GeminiConceptExtractor

        models = _StubModels(response=SimpleNamespace(text="  worn leather boot \n"))
        extractor = GeminiConceptExtractor(_stub_client(models))

        text = asyncio.run(extractor.extract_concept(b"\xff\xd8jpeg"))

        assert text == "worn leather boot"
        call = models.calls[0]
        assert call["model"] == "gemini-2.5-flash"
        assert call["contents"][0] == CONCEPT_INSTRUCTION
        assert call["contents"][1].inline_data.mime_type == "image/jpeg"
        assert extractor.get_metrics()["api_call_count"] == 1

    def test_concept_none_text(self):
        """Verify a response without text yields an empty string."""
        from synthesis_reveal.synthesis.gemini_engine import GeminiConceptExtractor

        models = _StubModels(response=SimpleNamespace(text=None))
        extractor = GeminiConceptExtractor(_stub_client(models))
        assert asyncio.run(extractor.extract_concept(b"jpeg")) == ""

    def test_concept_transport_error_wrapped(self):
        """Verify API errors surface as ConceptExtractionError."""
        from synthesis_reveal.synthesis.engine import ConceptExtractionError
        from synthesis_reveal.synthesis.gemini_engine import GeminiConceptExtractor

        models = _StubModels(error=ConnectionError("offline"))
        extractor = GeminiConceptExtractor(_stub_client(models))

        with pytest.raises(ConceptExtractionError):
            asyncio.run(extractor.extract_concept(b"jpeg"))
        assert extractor.get_metrics()["api_error_count"] == 1

    def test_image_inline_data_extracted(self):
        """Verify the first inline image part is returned."""
        from google.genai import types

        from synthesis_reveal.synthesis.gemini_engine import GeminiImageGenerator

        response = types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(
                        role="model",
                        parts=[
                            types.Part(text="here you go"),
                            types.Part(
                                inline_data=types.Blob(data=b"PNGDATA", mime_type="image/png")
                            ),
                        ],
                    )
                )
            ]
        )
        models = _StubModels(response=response)
        generator = GeminiImageGenerator(_stub_client(models))

        data = asyncio.run(generator.generate_image("boot, full color photography"))

        assert data == b"PNGDATA"
        call = models.calls[0]
        assert call["model"] == "gemini-2.5-flash-image"
        assert call["config"].response_modalities == ["IMAGE"]

    def test_image_missing_data_is_empty(self):
        """Verify a response without inline data yields no image bytes."""
        from google.genai import types

        from synthesis_reveal.synthesis.gemini_engine import GeminiImageGenerator

        models = _StubModels(response=types.GenerateContentResponse(candidates=[]))
        generator = GeminiImageGenerator(_stub_client(models))
        assert asyncio.run(generator.generate_image("x")) == b""

    def test_image_transport_error_wrapped(self):
        """Verify API errors surface as ImageGenerationError."""
        from synthesis_reveal.synthesis.engine import ImageGenerationError
        from synthesis_reveal.synthesis.gemini_engine import GeminiImageGenerator

        models = _StubModels(error=TimeoutError("slow"))
        generator = GeminiImageGenerator(_stub_client(models))

        with pytest.raises(ImageGenerationError):
            asyncio.run(generator.generate_image("x"))
