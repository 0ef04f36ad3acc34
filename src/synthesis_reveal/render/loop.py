"""
Animation Loop
==============

Per-frame scheduler that drives a frame source onto a display surface.

A loop is started with any iterable of frames. It draws one frame per
tick, suspending between frames, until the source is exhausted or the
loop is stopped. stop() is idempotent and takes effect immediately: once
it returns, the loop never draws again.

Example:
    loop = AnimationLoop("noise", NoiseFieldRenderer(rng), surface)
    loop.start()

    # Later, before starting anything else on the same surface
    loop.stop()
"""

import asyncio
import logging
from typing import Callable, Iterable, Iterator, Optional

from synthesis_reveal.render.frame import Frame
from synthesis_reveal.render.surface import DisplaySurface


logger = logging.getLogger(__name__)


class AnimationLoop:
    """
    Cancellable frame loop bound to one surface.

    Attributes:
        name: Loop name for logs
        surface: Surface the loop owns while running
        frame_interval: Seconds between frames (0 = yield only)
        frames_drawn: Frames drawn so far
    """

    def __init__(
        self,
        name: str,
        frames: Iterable[Frame],
        surface: DisplaySurface,
        frame_interval: float = 1.0 / 60.0,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Initialize animation loop.

        Args:
            name: Loop name for logs
            frames: Frame source, finite or unbounded
            surface: Surface to draw on
            frame_interval: Delay between frames in seconds
            on_complete: Called once if the source is exhausted
        """
        if frame_interval < 0:
            raise ValueError("frame_interval must be >= 0")

        self.name = name
        self.surface = surface
        self.frame_interval = frame_interval

        self._frames: Iterator[Frame] = iter(frames)
        self._on_complete = on_complete
        self._task: Optional[asyncio.Task] = None
        self._stopped: bool = False
        self._completed: bool = False
        self._frames_drawn: int = 0

    @property
    def active(self) -> bool:
        """Whether the loop is started and still drawing."""
        return self._task is not None and not self._stopped and not self._completed

    @property
    def stopped(self) -> bool:
        """Whether stop() was called."""
        return self._stopped

    @property
    def completed(self) -> bool:
        """Whether the frame source ran out."""
        return self._completed

    @property
    def frames_drawn(self) -> int:
        """Frames drawn so far."""
        return self._frames_drawn

    def start(self) -> "AnimationLoop":
        """
        Claim the surface and schedule the loop on the running event loop.

        Raises:
            RuntimeError: If the loop was already started
        """
        if self._task is not None:
            raise RuntimeError(f"Loop '{self.name}' already started")

        self.surface.claim(self)
        self._task = asyncio.create_task(self._run(), name=f"loop:{self.name}")
        logger.debug(f"Loop '{self.name}' started on surface '{self.surface.name}'")
        return self

    def stop(self) -> None:
        """
        Stop the loop and release the surface.

        Safe to call any number of times, from inside or outside the loop.
        """
        if self._stopped:
            return
        self._stopped = True

        if self._task is not None and not self._task.done():
            if self._task is not asyncio.current_task():
                self._task.cancel()

        self.surface.release(self)
        logger.debug(
            f"Loop '{self.name}' stopped after {self._frames_drawn} frames"
        )

    async def wait(self) -> None:
        """Wait until the loop finishes or is cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        """Draw frames until stopped or the source runs out."""
        try:
            for frame in self._frames:
                if self._stopped:
                    return
                self.surface.draw(frame, owner=self)
                self._frames_drawn += 1

                # Suspend until the next display refresh
                await asyncio.sleep(self.frame_interval)
        except asyncio.CancelledError:
            logger.debug(f"Loop '{self.name}' cancelled")
            raise

        if self._stopped:
            return

        self._completed = True
        self.surface.release(self)
        logger.debug(f"Loop '{self.name}' completed after {self._frames_drawn} frames")

        if self._on_complete is not None:
            self._on_complete()
