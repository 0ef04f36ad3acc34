"""
Reveal Chain
============

LangGraph workflow for the two sequential external calls of a capture.

LangGraph is used for CONTROL FLOW only: the nodes call the synthesis
services and hand results to the controller through callbacks.

Graph Structure:
    START → extract_concept ─ok→ generate_image ─ok→ reveal → END
                   │                    │
                   └──────fail──────────┴──→ fail → END

Design Rules:
    - Concept extraction finishes before image generation starts
    - Every failure ends in the single `fail` node
    - No retries
    - Each run carries the sequence id of the capture that started it
"""

import logging
from typing import Any, Callable, Dict, Optional, TypedDict

from langgraph.graph import END, StateGraph

from synthesis_reveal.synthesis.engine import (
    FALLBACK_CONCEPT,
    STYLE_SUFFIX,
    ConceptExtractor,
    ImageGenerationError,
    ImageGenerator,
    build_image_prompt,
)


logger = logging.getLogger(__name__)


class RevealChainState(TypedDict):
    """
    State passed through the reveal graph.

    Attributes:
        sequence_id: Capture this run belongs to
        capture_jpeg: JPEG encoded capture
        concept: Extracted concept (fallback applied)
        image_bytes: Generated image
        error: Failure description
    """
    sequence_id: int
    capture_jpeg: bytes
    concept: Optional[str]
    image_bytes: Optional[bytes]
    error: Optional[str]


ConceptCallback = Callable[[int, str], None]
ImageCallback = Callable[[int, bytes], None]
FailureCallback = Callable[[int, str], None]


class RevealChain:
    """
    Concept extraction → image generation, as a compiled LangGraph.

    Example:
        chain = RevealChain(extractor, generator, on_concept, on_image, on_failure)
        final_state = await chain.run(sequence_id=1, capture_jpeg=jpeg)
    """

    def __init__(
        self,
        extractor: ConceptExtractor,
        generator: ImageGenerator,
        on_concept: ConceptCallback,
        on_image: ImageCallback,
        on_failure: FailureCallback,
        style_suffix: str = STYLE_SUFFIX,
        fallback_concept: str = FALLBACK_CONCEPT,
    ) -> None:
        """
        Initialize the reveal chain.

        Args:
            extractor: Concept extraction backend
            generator: Image generation backend
            on_concept: Called with (sequence_id, concept) after extraction
            on_image: Called with (sequence_id, image_bytes) after generation
            on_failure: Called with (sequence_id, reason) on any failure
            style_suffix: Appended to the concept to form the image prompt
            fallback_concept: Used when extraction returns empty text
        """
        self.extractor = extractor
        self.generator = generator
        self.style_suffix = style_suffix
        self.fallback_concept = fallback_concept

        self._on_concept = on_concept
        self._on_image = on_image
        self._on_failure = on_failure

        self._graph = self._build_graph()

    def _build_graph(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(RevealChainState)

        workflow.add_node("extract_concept", self._extract_concept_node)
        workflow.add_node("generate_image", self._generate_image_node)
        workflow.add_node("reveal", self._reveal_node)
        workflow.add_node("fail", self._fail_node)

        workflow.set_entry_point("extract_concept")
        workflow.add_conditional_edges(
            "extract_concept",
            _route_on_error("generate_image"),
            {"generate_image": "generate_image", "fail": "fail"},
        )
        workflow.add_conditional_edges(
            "generate_image",
            _route_on_error("reveal"),
            {"reveal": "reveal", "fail": "fail"},
        )
        workflow.add_edge("reveal", END)
        workflow.add_edge("fail", END)

        return workflow.compile()

    async def run(self, sequence_id: int, capture_jpeg: bytes) -> RevealChainState:
        """
        Run both external calls for one capture.

        Args:
            sequence_id: Capture this run belongs to
            capture_jpeg: JPEG encoded capture

        Returns:
            Final graph state
        """
        initial: RevealChainState = {
            "sequence_id": sequence_id,
            "capture_jpeg": capture_jpeg,
            "concept": None,
            "image_bytes": None,
            "error": None,
        }
        return await self._graph.ainvoke(initial)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    async def _extract_concept_node(self, state: RevealChainState) -> Dict[str, Any]:
        """Ask the extractor for a literal description of the capture."""
        try:
            text = await self.extractor.extract_concept(state["capture_jpeg"])
        except Exception as e:
            logger.error(f"Concept extraction failed (seq={state['sequence_id']}): {e}")
            return {"error": f"concept extraction failed: {e}"}

        concept = (text or "").strip() or self.fallback_concept
        self._on_concept(state["sequence_id"], concept)
        return {"concept": concept}

    async def _generate_image_node(self, state: RevealChainState) -> Dict[str, Any]:
        """Generate the target image from the concept."""
        prompt = build_image_prompt(state["concept"], self.style_suffix)
        try:
            image_bytes = await self.generator.generate_image(prompt)
            if not image_bytes:
                raise ImageGenerationError("API did not return image data")
        except Exception as e:
            logger.error(f"Image generation failed (seq={state['sequence_id']}): {e}")
            return {"error": f"image generation failed: {e}"}

        return {"image_bytes": image_bytes}

    async def _reveal_node(self, state: RevealChainState) -> Dict[str, Any]:
        self._on_image(state["sequence_id"], state["image_bytes"])
        return {}

    async def _fail_node(self, state: RevealChainState) -> Dict[str, Any]:
        self._on_failure(state["sequence_id"], state["error"])
        return {}


def _route_on_error(next_node: str) -> Callable[[RevealChainState], str]:
    """Conditional edge: go to `next_node` unless the state carries an error."""

    def route(state: RevealChainState) -> str:
        return "fail" if state.get("error") else next_node

    return route
