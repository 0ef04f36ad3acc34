"""
Display Surface
===============

Latest-frame holder for one display pane.

A surface has at most one owner at a time. Only the owner may draw, so
a cancelled animation loop can never overwrite the frames of the loop
that replaced it.

Design Rules:
    - Holds exactly one frame (the one currently shown)
    - Ownership is explicit: claim() before draw(), release() after
    - Does NOT render or modify frames
"""

import logging
from typing import Optional

from synthesis_reveal.render.frame import Frame


logger = logging.getLogger(__name__)


class SurfaceOwnershipError(Exception):
    """Raised when a non-owner tries to draw to a surface."""
    pass


class DisplaySurface:
    """
    Exclusively owned display pane.

    Attributes:
        name: Pane name used in logs and URLs
        frame: Frame currently shown (None before the first draw)
        version: Increments on every draw

    Example:
        surface = DisplaySurface("synthesis")
        surface.claim(loop)
        surface.draw(frame, owner=loop)
        surface.release(loop)
    """

    def __init__(self, name: str, initial: Optional[Frame] = None) -> None:
        self.name = name
        self._frame: Optional[Frame] = initial
        self._owner: Optional[object] = None
        self._version: int = 0
        self._rejected_count: int = 0

    @property
    def frame(self) -> Optional[Frame]:
        """Frame currently shown."""
        return self._frame

    @property
    def owner(self) -> Optional[object]:
        """Current exclusive writer, if any."""
        return self._owner

    @property
    def version(self) -> int:
        """Number of frames drawn so far."""
        return self._version

    @property
    def rejected_count(self) -> int:
        """Draw attempts refused because the caller was not the owner."""
        return self._rejected_count

    def claim(self, owner: object) -> None:
        """
        Make `owner` the only writer.

        Raises:
            SurfaceOwnershipError: If another owner still holds the surface
        """
        if self._owner is not None and self._owner is not owner:
            raise SurfaceOwnershipError(
                f"Surface '{self.name}' already owned by {self._owner!r}"
            )
        self._owner = owner

    def release(self, owner: object) -> None:
        """Give up ownership. No-op if `owner` does not hold the surface."""
        if self._owner is owner:
            self._owner = None

    def draw(self, frame: Frame, owner: object) -> None:
        """
        Replace the shown frame.

        Args:
            frame: Frame to show
            owner: Caller identity, must match the current owner

        Raises:
            SurfaceOwnershipError: If the caller is not the owner
        """
        if owner is not self._owner:
            self._rejected_count += 1
            logger.warning(
                f"Rejected draw on surface '{self.name}' "
                f"(total rejected: {self._rejected_count})"
            )
            raise SurfaceOwnershipError(
                f"{owner!r} is not the owner of surface '{self.name}'"
            )
        self._frame = frame
        self._version += 1

    def metrics(self) -> dict:
        """Surface metrics for observability."""
        return {
            "name": self.name,
            "version": self._version,
            "owned": self._owner is not None,
            "rejected_count": self._rejected_count,
            "size": self._frame.size if self._frame is not None else None,
        }
