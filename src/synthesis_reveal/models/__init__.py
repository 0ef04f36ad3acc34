"""
Data Models
===========

Pydantic models for the synthesis reveal service.

Models:
    Input:
        - CaptureRequest: Capture posted by the presentation layer

    State:
        - RevealState: Enum of controller states
        - RevealSnapshot: Read-only view for the presentation layer
"""

from synthesis_reveal.models.input import CaptureRequest
from synthesis_reveal.models.state import RevealSnapshot, RevealState

__all__ = [
    # Input
    "CaptureRequest",
    # State
    "RevealState",
    "RevealSnapshot",
]
