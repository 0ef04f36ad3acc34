"""
Reveal Controller
=================

State machine that sequences both display panes around the external calls.

Transitions:
    IDLE → CAPTURED:                 capture (point cloud rendered once)
    CAPTURED → AWAITING_CONCEPT:     noise loop started, reveal chain started
    AWAITING_CONCEPT → AWAITING_IMAGE: concept extracted (noise keeps running)
    AWAITING_IMAGE → REVEALING:      image generated, noise stopped, denoise started
    REVEALING → SETTLED:             denoise terminal frame drawn
    AWAITING_* → FAILED:             any external failure, noise stopped
    any non-IDLE → CAPTURED:         new capture tears everything down first

Key Rules:
    - At most one animation loop exists at a time (single loop handle,
      always stopped before it is replaced)
    - At most one reveal chain runs at a time (previous one is cancelled)
    - Results tagged with an old sequence id are ignored
    - No failure is fatal; a new capture always restarts cleanly
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

import numpy as np

from synthesis_reveal.capture.codec import ImageDecodeError, decode_target_grid, encode_jpeg
from synthesis_reveal.capture.source import CaptureNotReady, CaptureSource
from synthesis_reveal.models.state import RevealSnapshot, RevealState
from synthesis_reveal.render.denoise import TOTAL_STEPS, ProgressiveDenoiser
from synthesis_reveal.render.frame import DISPLAY_SIZE, LOW_RES_SIZE, Frame
from synthesis_reveal.render.loop import AnimationLoop
from synthesis_reveal.render.noise import NoiseFieldRenderer
from synthesis_reveal.render.stipple import StippleTransform
from synthesis_reveal.render.surface import DisplaySurface
from synthesis_reveal.reveal.chain import RevealChain
from synthesis_reveal.synthesis.engine import (
    FALLBACK_CONCEPT,
    STYLE_SUFFIX,
    ConceptExtractor,
    ImageGenerator,
)


logger = logging.getLogger(__name__)


ERROR_CAPTION = "Error: system failed to generate image"

CAPTION_EXTRACTING = "Extracting semantic features..."
CAPTION_SYNTHESIZING = "Synthesizing image from concept..."


class RevealController:
    """
    Owner of the reveal state, both display surfaces and the loop handle.

    Attributes:
        state: Current RevealState
        concept: Extracted concept, if known
        error: Failure description, if failed
        capture_surface: Left pane (point cloud)
        synthesis_surface: Right pane (noise / denoise)

    Example:
        controller = RevealController(extractor, generator, rng=np.random.default_rng(7))
        await controller.capture(StillImageSource.from_bytes(jpeg))
        await controller.wait_until_finished()
    """

    def __init__(
        self,
        extractor: ConceptExtractor,
        generator: ImageGenerator,
        rng: Optional[np.random.Generator] = None,
        stipple: Optional[StippleTransform] = None,
        jpeg_quality: int = 80,
        frame_interval: float = 1.0 / 60.0,
        grid_resolution: int = LOW_RES_SIZE,
        display_size: int = DISPLAY_SIZE,
        total_steps: int = TOTAL_STEPS,
        style_suffix: str = STYLE_SUFFIX,
        fallback_concept: str = FALLBACK_CONCEPT,
        error_caption: str = ERROR_CAPTION,
    ) -> None:
        """
        Initialize the reveal controller.

        Args:
            extractor: Concept extraction backend
            generator: Image generation backend
            rng: Shared random source (fresh unseeded generator if None)
            stipple: Point cloud transform (defaults if None)
            jpeg_quality: Quality of the JPEG sent for concept extraction
            frame_interval: Seconds between animation frames
            grid_resolution: Working grid side length
            display_size: Synthesis pane side length
            total_steps: Denoising steps before the terminal frame
            style_suffix: Appended to the concept for image generation
            fallback_concept: Concept used when extraction returns empty text
            error_caption: Caption shown when the sequence fails
        """
        self.rng = rng if rng is not None else np.random.default_rng()
        self.stipple = stipple or StippleTransform()
        self.jpeg_quality = jpeg_quality
        self.frame_interval = frame_interval
        self.grid_resolution = grid_resolution
        self.display_size = display_size
        self.total_steps = total_steps
        self.error_caption = error_caption

        self.capture_surface = DisplaySurface("capture", Frame.solid(display_size))
        self.synthesis_surface = DisplaySurface("synthesis", Frame.solid(display_size))

        self._chain = RevealChain(
            extractor,
            generator,
            on_concept=self._on_concept,
            on_image=self._on_image,
            on_failure=self._on_failure,
            style_suffix=style_suffix,
            fallback_concept=fallback_concept,
        )

        self._state: RevealState = RevealState.IDLE
        self._state_entered_at: float = time.time()
        self._sequence_id: int = 0
        self._concept: Optional[str] = None
        self._error: Optional[str] = None
        self._point_cloud: Optional[Frame] = None
        self._target: Optional[Frame] = None

        # Arena of one: the only animation loop handle
        self._loop: Optional[AnimationLoop] = None
        self._denoiser: Optional[ProgressiveDenoiser] = None
        self._chain_task: Optional[asyncio.Task] = None
        self._capture_lock = asyncio.Lock()
        self._finished = asyncio.Event()

        # Metrics
        self._capture_count: int = 0
        self._ignored_capture_count: int = 0
        self._failure_count: int = 0
        self._settled_count: int = 0
        self._stale_result_count: int = 0

        logger.info(
            f"RevealController initialized: grid={grid_resolution}px, "
            f"display={display_size}px, steps={total_steps}, "
            f"frame_interval={frame_interval:.4f}s"
        )

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RevealState:
        return self._state

    @property
    def sequence_id(self) -> int:
        return self._sequence_id

    @property
    def concept(self) -> Optional[str]:
        return self._concept

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def point_cloud(self) -> Optional[Frame]:
        """Point cloud of the current capture (None while IDLE)."""
        return self._point_cloud

    @property
    def target(self) -> Optional[Frame]:
        """Target grid (only while REVEALING or SETTLED)."""
        return self._target

    @property
    def active_loop(self) -> Optional[AnimationLoop]:
        """The running animation loop, if any."""
        if self._loop is not None and self._loop.active:
            return self._loop
        return None

    @property
    def caption(self) -> Optional[str]:
        """Text shown under the synthesis pane."""
        if self._state == RevealState.IDLE:
            return None
        if self._state == RevealState.AWAITING_IMAGE:
            return CAPTION_SYNTHESIZING
        if self._state.is_processing:
            return CAPTION_EXTRACTING
        if self._state == RevealState.FAILED:
            return self.error_caption
        return self._concept

    def snapshot(self) -> RevealSnapshot:
        """Current state for the presentation layer."""
        loop = self.active_loop
        return RevealSnapshot(
            state=self._state,
            sequence_id=self._sequence_id,
            concept=self._concept,
            caption=self.caption,
            error=self._error,
            active_loop=loop.name if loop is not None else None,
            denoise_step=self._denoiser.step_index if self._denoiser is not None else 0,
            total_steps=self.total_steps,
            timestamp=time.time(),
            state_entered_at=self._state_entered_at,
        )

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def capture(self, source: CaptureSource) -> bool:
        """
        Handle a capture gesture.

        Tears down any running loop and reveal chain, renders the point
        cloud, starts the noise loop and launches the reveal chain.

        Args:
            source: Capture source to read the frame from

        Returns:
            True if the capture was taken, False if the source was not ready
        """
        try:
            frame = source.read()
        except CaptureNotReady as e:
            self._ignored_capture_count += 1
            logger.debug(f"Capture ignored: {e}")
            return False

        async with self._capture_lock:
            await self._teardown()
            self._begin_sequence(frame)
        return True

    def _begin_sequence(self, frame: Frame) -> None:
        """Start a fresh reveal sequence for a captured frame."""
        self._sequence_id += 1
        self._capture_count += 1
        self._concept = None
        self._error = None
        self._target = None
        self._denoiser = None
        self._finished.clear()

        sequence_id = self._sequence_id
        self._transition(RevealState.CAPTURED)

        # Left pane: one-shot point cloud
        self._point_cloud = self.stipple.apply(frame, self.rng)
        self.capture_surface.claim(self)
        self.capture_surface.draw(self._point_cloud, owner=self)
        self.capture_surface.release(self)

        jpeg = encode_jpeg(frame, self.jpeg_quality)

        # Right pane: noise until the image arrives
        self._start_loop(
            "noise",
            NoiseFieldRenderer(self.rng, self.grid_resolution, self.display_size),
        )
        self._transition(RevealState.AWAITING_CONCEPT)

        self._chain_task = asyncio.create_task(
            self._run_chain(sequence_id, jpeg),
            name=f"reveal_chain:{sequence_id}",
        )

        logger.info(
            f"Capture {sequence_id}: {frame.size}px frame, "
            f"{self.stipple.last_dot_count} dots, {len(jpeg)} byte JPEG"
        )

    async def wait_until_finished(self, timeout: Optional[float] = None) -> RevealState:
        """
        Wait until the current sequence is SETTLED or FAILED.

        Returns:
            The terminal state reached

        Raises:
            asyncio.TimeoutError: If the timeout expires first
        """
        await asyncio.wait_for(self._finished.wait(), timeout=timeout)
        return self._state

    async def close(self) -> None:
        """Stop the loop and cancel the reveal chain."""
        await self._teardown()
        logger.info("RevealController closed")

    # -------------------------------------------------------------------------
    # Reveal chain callbacks
    # -------------------------------------------------------------------------

    async def _run_chain(self, sequence_id: int, jpeg: bytes) -> None:
        try:
            await self._chain.run(sequence_id, jpeg)
        except asyncio.CancelledError:
            logger.debug(f"Reveal chain {sequence_id} cancelled")
            raise
        except Exception as e:
            logger.error(f"Reveal chain {sequence_id} crashed: {e}")
            self._on_failure(sequence_id, f"reveal chain crashed: {e}")

    def _is_current(self, sequence_id: int) -> bool:
        if sequence_id != self._sequence_id:
            self._stale_result_count += 1
            logger.debug(
                f"Ignoring result for sequence {sequence_id} "
                f"(current is {self._sequence_id})"
            )
            return False
        return True

    def _on_concept(self, sequence_id: int, concept: str) -> None:
        if not self._is_current(sequence_id):
            return
        if self._state != RevealState.AWAITING_CONCEPT:
            logger.warning(f"Concept arrived in state {self._state.value}, ignored")
            return

        self._concept = concept
        logger.info(f"Concept {sequence_id}: '{concept}'")
        self._transition(RevealState.AWAITING_IMAGE)

    def _on_image(self, sequence_id: int, image_bytes: bytes) -> None:
        if not self._is_current(sequence_id):
            return
        if self._state != RevealState.AWAITING_IMAGE:
            logger.warning(f"Image arrived in state {self._state.value}, ignored")
            return

        try:
            target = decode_target_grid(image_bytes, self.grid_resolution)
        except ImageDecodeError as e:
            logger.error(f"Generated image could not be decoded (seq={sequence_id}): {e}")
            self._fail(f"image generation failed: {e}")
            return

        self._stop_loop()
        self._target = target
        self._transition(RevealState.REVEALING)

        self._denoiser = ProgressiveDenoiser(
            target,
            self.rng,
            total_steps=self.total_steps,
            display_size=self.display_size,
        )
        self._start_loop(
            "denoise",
            self._denoiser,
            on_complete=lambda: self._on_denoise_complete(sequence_id),
        )

    def _on_denoise_complete(self, sequence_id: int) -> None:
        if not self._is_current(sequence_id):
            return
        self._loop = None
        self._settled_count += 1
        self._transition(RevealState.SETTLED)
        self._finished.set()

    def _on_failure(self, sequence_id: int, reason: str) -> None:
        if not self._is_current(sequence_id):
            return
        if self._state.is_terminal:
            return
        self._fail(reason)

    def _fail(self, reason: str) -> None:
        self._stop_loop()
        self._target = None
        self._error = reason
        self._failure_count += 1
        logger.error(f"Reveal {self._sequence_id} failed: {reason}")
        self._transition(RevealState.FAILED)
        self._finished.set()

    # -------------------------------------------------------------------------
    # Loop ownership
    # -------------------------------------------------------------------------

    def _start_loop(
        self,
        name: str,
        frames: Iterable[Frame],
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        """Replace the loop handle, stopping the previous loop first."""
        self._stop_loop()
        self._loop = AnimationLoop(
            name,
            frames,
            self.synthesis_surface,
            frame_interval=self.frame_interval,
            on_complete=on_complete,
        ).start()

    def _stop_loop(self) -> None:
        if self._loop is not None:
            self._loop.stop()
            self._loop = None

    async def _teardown(self) -> None:
        """Stop the loop and cancel any in-flight reveal chain."""
        self._stop_loop()

        task = self._chain_task
        self._chain_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _transition(self, new_state: RevealState) -> None:
        old_state = self._state
        now = time.time()
        logger.info(
            f"Reveal state: {old_state.value} → {new_state.value} "
            f"(seq={self._sequence_id}, after {now - self._state_entered_at:.2f}s)"
        )
        self._state = new_state
        self._state_entered_at = now

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """Get controller metrics for observability."""
        loop = self.active_loop
        return {
            "state": self._state.value,
            "sequence_id": self._sequence_id,
            "time_in_state": round(time.time() - self._state_entered_at, 3),
            "active_loop": loop.name if loop is not None else None,
            "capture_count": self._capture_count,
            "ignored_capture_count": self._ignored_capture_count,
            "settled_count": self._settled_count,
            "failure_count": self._failure_count,
            "stale_result_count": self._stale_result_count,
            "capture_surface": self.capture_surface.metrics(),
            "synthesis_surface": self.synthesis_surface.metrics(),
        }
