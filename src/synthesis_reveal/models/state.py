"""
Reveal State Models
===================

This module defines the state representation for the reveal controller.

Core Concepts:
    - RevealState: Single explicit state of the capture/reveal sequence
    - RevealSnapshot: What the presentation layer reads back

Transitions:
    IDLE → CAPTURED → AWAITING_CONCEPT → AWAITING_IMAGE → REVEALING → SETTLED
    AWAITING_CONCEPT | AWAITING_IMAGE → FAILED
    any non-IDLE state → CAPTURED on a new capture

Example:
    from synthesis_reveal.models.state import RevealState

    if snapshot.state == RevealState.SETTLED:
        show(snapshot.concept)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RevealState(str, Enum):
    """
    States of the capture/reveal sequence.

    Attributes:
        IDLE: Nothing captured yet
        CAPTURED: Capture taken, point cloud rendered
        AWAITING_CONCEPT: Noise shown while the concept is extracted
        AWAITING_IMAGE: Noise shown while the image is generated
        REVEALING: Denoising animation running toward the target
        SETTLED: Target shown, sequence finished
        FAILED: An external call failed, sequence finished
    """

    IDLE = "IDLE"
    CAPTURED = "CAPTURED"
    AWAITING_CONCEPT = "AWAITING_CONCEPT"
    AWAITING_IMAGE = "AWAITING_IMAGE"
    REVEALING = "REVEALING"
    SETTLED = "SETTLED"
    FAILED = "FAILED"

    @property
    def is_processing(self) -> bool:
        """Whether an external call is still pending."""
        return self in (
            RevealState.CAPTURED,
            RevealState.AWAITING_CONCEPT,
            RevealState.AWAITING_IMAGE,
        )

    @property
    def is_terminal(self) -> bool:
        """Whether the sequence has finished."""
        return self in (RevealState.SETTLED, RevealState.FAILED)


class RevealSnapshot(BaseModel):
    """
    Read-only view of the controller for the presentation layer.

    Attributes:
        state: Current reveal state
        sequence_id: Increments on every accepted capture
        concept: Extracted concept text, if known
        caption: Text to display under the synthesis pane
        error: Failure description, if the sequence failed
        active_loop: Name of the running animation loop, if any
        denoise_step: Last rendered denoising step (0 if none)
        total_steps: Length of the denoising animation
        timestamp: Unix time the snapshot was taken
        state_entered_at: Unix time the current state was entered
    """

    state: RevealState = Field(..., description="Current reveal state")

    sequence_id: int = Field(
        default=0,
        ge=0,
        description="Increments on every accepted capture",
    )

    concept: Optional[str] = Field(
        default=None,
        description="Extracted concept text",
    )

    caption: Optional[str] = Field(
        default=None,
        description="Status or concept caption for the synthesis pane",
    )

    error: Optional[str] = Field(
        default=None,
        description="Failure description when state is FAILED",
    )

    active_loop: Optional[str] = Field(
        default=None,
        description="Running animation loop ('noise' or 'denoise')",
    )

    denoise_step: int = Field(
        default=0,
        ge=0,
        description="Last rendered denoising step",
    )

    total_steps: int = Field(
        default=90,
        ge=1,
        description="Number of denoising steps",
    )

    timestamp: float = Field(
        default=0.0,
        ge=0,
        description="Unix time the snapshot was taken",
    )

    state_entered_at: float = Field(
        default=0.0,
        ge=0,
        description="Unix time the current state was entered",
    )
