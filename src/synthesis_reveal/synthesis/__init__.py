"""
Synthesis Module
================

External inference collaborators behind narrow protocols.

Components:
    - ConceptExtractor / ImageGenerator: Protocols consumed by the controller
    - MockConceptExtractor / MockImageGenerator: Offline, deterministic
    - GeminiConceptExtractor / GeminiImageGenerator: Gemini API (production)

Design Philosophy:
    The services are pluggable black boxes. The controller reasons over
    their results (text, image bytes, failure), never their internals.
"""

from synthesis_reveal.synthesis.engine import (
    CONCEPT_INSTRUCTION,
    FALLBACK_CONCEPT,
    STYLE_SUFFIX,
    ConceptExtractionError,
    ConceptExtractor,
    ImageGenerationError,
    ImageGenerator,
    MockConceptExtractor,
    MockImageGenerator,
    build_image_prompt,
    render_gradient_png,
)
from synthesis_reveal.synthesis.gemini_engine import (
    GeminiConceptExtractor,
    GeminiImageGenerator,
    create_client,
)


__all__ = [
    "CONCEPT_INSTRUCTION",
    "FALLBACK_CONCEPT",
    "STYLE_SUFFIX",
    "ConceptExtractionError",
    "ConceptExtractor",
    "ImageGenerationError",
    "ImageGenerator",
    "MockConceptExtractor",
    "MockImageGenerator",
    "build_image_prompt",
    "render_gradient_png",
    "GeminiConceptExtractor",
    "GeminiImageGenerator",
    "create_client",
]
