"""
Model Tests
===========

Tests for the pydantic request and state schemas.
"""

import pytest


class TestRevealState:
    """Tests for the RevealState enum."""

    def test_values(self):
        """Verify enum values serialize as plain strings."""
        from synthesis_reveal.models.state import RevealState

        assert RevealState.IDLE.value == "IDLE"
        assert RevealState.AWAITING_IMAGE.value == "AWAITING_IMAGE"
        assert RevealState("SETTLED") is RevealState.SETTLED

    def test_processing_and_terminal(self):
        """Verify grouping of states."""
        from synthesis_reveal.models.state import RevealState

        assert RevealState.AWAITING_CONCEPT.is_processing
        assert RevealState.AWAITING_IMAGE.is_processing
        assert not RevealState.REVEALING.is_processing
        assert RevealState.SETTLED.is_terminal
        assert RevealState.FAILED.is_terminal
        assert not RevealState.IDLE.is_terminal


class TestRevealSnapshot:
    """Tests for the RevealSnapshot schema."""

    def test_json_dump(self):
        """Verify the snapshot serializes the state by value."""
        from synthesis_reveal.models.state import RevealSnapshot, RevealState

        snapshot = RevealSnapshot(
            state=RevealState.REVEALING,
            sequence_id=4,
            concept="old brass key",
            caption="old brass key",
            active_loop="denoise",
            denoise_step=17,
        )
        data = snapshot.model_dump(mode="json")

        assert data["state"] == "REVEALING"
        assert data["denoise_step"] == 17
        assert data["total_steps"] == 90
        assert data["error"] is None

    def test_negative_step_rejected(self):
        """Verify step counters cannot go negative."""
        from pydantic import ValidationError

        from synthesis_reveal.models.state import RevealSnapshot, RevealState

        with pytest.raises(ValidationError):
            RevealSnapshot(state=RevealState.IDLE, denoise_step=-1)


class TestCaptureRequest:
    """Tests for the CaptureRequest schema."""

    def test_image_optional(self):
        """Verify the image may be omitted."""
        from synthesis_reveal.models.input import CaptureRequest

        assert CaptureRequest.model_validate({}).image is None
        assert CaptureRequest.model_validate({"image": "abc"}).image == "abc"

    def test_empty_image_rejected(self):
        """Verify an empty image string is invalid."""
        from pydantic import ValidationError

        from synthesis_reveal.models.input import CaptureRequest

        with pytest.raises(ValidationError):
            CaptureRequest.model_validate({"image": ""})
