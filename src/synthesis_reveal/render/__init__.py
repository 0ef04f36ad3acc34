"""
Render Module
=============

Pixel pipeline for both display panes.

Components:
    - Frame: Square RGBA buffer shared by all renderers
    - StippleTransform: Capture -> point cloud ("light capture" pane)
    - NoiseFieldRenderer: Unbounded full-spectrum noise frames
    - ProgressiveDenoiser: 90-step noise -> target reveal
    - AnimationLoop: Cancellable per-frame scheduler
    - DisplaySurface: Exclusively owned latest-frame holder

Example:
    from synthesis_reveal.render import AnimationLoop, DisplaySurface, NoiseFieldRenderer

    surface = DisplaySurface("synthesis")
    loop = AnimationLoop("noise", NoiseFieldRenderer(rng), surface).start()
"""

from synthesis_reveal.render.frame import (
    DISPLAY_SIZE,
    LOW_RES_SIZE,
    Frame,
    upscale_nearest,
)
from synthesis_reveal.render.stipple import (
    StippleTransform,
    inclusion_probability,
    luminance,
)
from synthesis_reveal.render.noise import NoiseFieldRenderer, noise_grid
from synthesis_reveal.render.denoise import (
    TOTAL_STEPS,
    AnimationStep,
    ProgressiveDenoiser,
    block_size,
    noise_scale,
    signal_scale,
)
from synthesis_reveal.render.surface import DisplaySurface, SurfaceOwnershipError
from synthesis_reveal.render.loop import AnimationLoop


__all__ = [
    "DISPLAY_SIZE",
    "LOW_RES_SIZE",
    "TOTAL_STEPS",
    "Frame",
    "upscale_nearest",
    "StippleTransform",
    "inclusion_probability",
    "luminance",
    "NoiseFieldRenderer",
    "noise_grid",
    "AnimationStep",
    "ProgressiveDenoiser",
    "block_size",
    "noise_scale",
    "signal_scale",
    "DisplaySurface",
    "SurfaceOwnershipError",
    "AnimationLoop",
]
