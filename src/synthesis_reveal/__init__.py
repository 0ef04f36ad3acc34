"""
SynthesisReveal
===============

Two-pane capture and reveal service.

A captured frame is rendered once as a stippled point cloud on the left
pane. While two external calls run (concept extraction, then image
generation from the concept), the right pane shows animated noise; once
the generated image arrives it is revealed by a 90-step progressive
denoising animation that ends on the exact target.

Components:
    - render: Frame buffer, stipple, noise, denoise, loop, surface
    - capture: Capture sources and image codec
    - synthesis: Concept extraction and image generation backends
    - reveal: RevealController state machine and LangGraph call chain
    - models: Pydantic schemas for requests and state snapshots

Example:
    from synthesis_reveal.config import settings
    from synthesis_reveal.models import RevealSnapshot

    # Service is started via FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
