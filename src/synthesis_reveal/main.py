"""
Synthesis Reveal Main Application
=================================

FastAPI entry point for the synthesis reveal service.

The service owns one RevealController and one StillImageSource. The
presentation layer posts captures, polls or subscribes to the reveal
state, and fetches the current frame of each pane as PNG.

Endpoints:
    GET  /                  - Service information
    GET  /health            - Liveness probe (is process alive?)
    GET  /ready             - Readiness probe (controller initialized?)
    GET  /metrics           - Controller and backend metrics
    GET  /state             - Current RevealSnapshot
    POST /capture           - Capture gesture (optionally with a new image)
    GET  /panes/{pane}.png  - Current frame of the capture/synthesis pane
    WS   /ws/state          - Real-time state stream
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple

import numpy as np
from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse, Response

from synthesis_reveal.config import settings
from synthesis_reveal.capture import (
    ImageDecodeError,
    StillImageSource,
    decode_base64,
    decode_rgba,
    encode_png,
)
from synthesis_reveal.models import CaptureRequest
from synthesis_reveal.render import StippleTransform
from synthesis_reveal.reveal import RevealController
from synthesis_reveal.synthesis import (
    ConceptExtractor,
    GeminiConceptExtractor,
    GeminiImageGenerator,
    ImageGenerator,
    MockConceptExtractor,
    MockImageGenerator,
    create_client,
)


logger = logging.getLogger(__name__)


PANES = ("capture", "synthesis")


# =============================================================================
# Global State
# =============================================================================

# Shutdown flag
_shutdown_flag: bool = False

_controller: Optional[RevealController] = None
_source: Optional[StillImageSource] = None
_extractor: Optional[ConceptExtractor] = None
_generator: Optional[ImageGenerator] = None

_startup_time: float = 0.0
_is_ready: bool = False

# Error counters
_bad_request_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_controller() -> Optional[RevealController]:
    return _controller

def get_source() -> Optional[StillImageSource]:
    return _source

def is_ready() -> bool:
    return _is_ready


# =============================================================================
# Synthesis Engine Factory
# =============================================================================

def create_synthesis_engines() -> Tuple[ConceptExtractor, ImageGenerator]:
    """
    Create concept extraction and image generation backends based on config.

    Fails fast if the gemini backend is requested without an API key.
    """
    synthesis = settings.synthesis
    backend = synthesis.backend

    if backend == "mock":
        logger.info("Using mock synthesis backend")
        mock = synthesis.mock
        extractor = MockConceptExtractor(
            concept=mock.concept,
            latency=mock.latency_sec,
            fail=mock.fail_concept,
        )
        generator = MockImageGenerator(
            size=mock.image_size,
            latency=mock.latency_sec,
            fail=mock.fail_image,
            empty=mock.empty_image,
        )
        return extractor, generator

    elif backend == "gemini":
        logger.info(
            f"Using Gemini synthesis backend: "
            f"concept_model={synthesis.concept_model}, "
            f"image_model={synthesis.image_model}"
        )
        client = create_client(synthesis.api_key)
        return (
            GeminiConceptExtractor(client, model=synthesis.concept_model),
            GeminiImageGenerator(client, model=synthesis.image_model),
        )

    else:
        raise ValueError(f"Unknown synthesis backend: {backend}")


def create_controller(
    extractor: ConceptExtractor,
    generator: ImageGenerator,
) -> RevealController:
    """Build the reveal controller from settings."""
    stipple = StippleTransform(
        stride=settings.stipple.stride,
        exponent=settings.stipple.exponent,
        dot_size=settings.stipple.dot_size,
        dot_alpha=settings.stipple.dot_alpha,
        jitter=settings.stipple.jitter,
    )
    return RevealController(
        extractor,
        generator,
        rng=np.random.default_rng(settings.animation.seed),
        stipple=stipple,
        jpeg_quality=settings.capture.jpeg_quality,
        frame_interval=settings.animation.frame_interval_sec,
        grid_resolution=settings.animation.grid_resolution,
        display_size=settings.animation.display_size,
        total_steps=settings.animation.total_steps,
        style_suffix=settings.synthesis.style_suffix,
        fallback_concept=settings.synthesis.fallback_concept,
        error_caption=settings.synthesis.error_caption,
    )


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _controller, _source, _extractor, _generator
    global _startup_time, _is_ready, _shutdown_flag, _bad_request_count

    # Startup
    _startup_time = time.time()
    _shutdown_flag = False
    _bad_request_count = 0
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    _extractor, _generator = create_synthesis_engines()
    _controller = create_controller(_extractor, _generator)
    _source = StillImageSource()
    _is_ready = True

    logger.info("All components started")

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")

    _shutdown_flag = True
    _is_ready = False

    if _controller:
        await _controller.close()

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="SynthesisReveal",
    description="Point cloud capture and progressive image reveal",
    version=settings.app.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "SynthesisReveal",
        "version": settings.app.version,
        "name": settings.app.name,
        "status": "running",
        "synthesis_backend": settings.synthesis.backend,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is the service ready to take captures?

    Returns 200 once the controller is initialized, 503 otherwise.
    """
    controller = get_controller()
    source = get_source()

    if _is_ready and controller is not None:
        return JSONResponse({
            "status": "ready",
            "controller_initialized": True,
            "source_ready": source.ready if source else False,
            "state": controller.state.value,
        })
    else:
        return JSONResponse(
            {
                "status": "not_ready",
                "controller_initialized": controller is not None,
            },
            status_code=503,
        )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    controller = get_controller()

    controller_metrics = controller.get_metrics() if controller else {}

    backend_metrics = {}
    for name, engine in (("extractor", _extractor), ("generator", _generator)):
        get_engine_metrics = getattr(engine, "get_metrics", None)
        if get_engine_metrics is not None:
            backend_metrics[name] = get_engine_metrics()

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "synthesis_backend": settings.synthesis.backend,
        "bad_requests": _bad_request_count,
        **controller_metrics,
        **backend_metrics,
    })


@app.get("/state")
async def state() -> JSONResponse:
    """Current reveal state for the presentation layer."""
    controller = get_controller()

    if controller is None:
        return JSONResponse(
            {"error": "Controller not initialized"},
            status_code=503,
        )

    return JSONResponse(controller.snapshot().model_dump(mode="json"))


@app.post("/capture")
async def capture(request: CaptureRequest) -> JSONResponse:
    """
    Capture gesture.

    If the request carries an image it replaces the source image first;
    otherwise the last posted image is captured again.

    Returns 400 for an undecodable image, 409 if no image is available yet.
    """
    global _bad_request_count

    controller = get_controller()
    source = get_source()

    if controller is None or source is None:
        return JSONResponse(
            {"error": "Controller not initialized"},
            status_code=503,
        )

    if request.image is not None:
        try:
            source.update(decode_rgba(decode_base64(request.image)))
        except ImageDecodeError as e:
            _bad_request_count += 1
            logger.warning(f"Rejected capture payload: {e}")
            return JSONResponse({"error": str(e)}, status_code=400)

    taken = await controller.capture(source)
    if not taken:
        return JSONResponse(
            {"error": "Capture source not ready"},
            status_code=409,
        )

    return JSONResponse(controller.snapshot().model_dump(mode="json"))


@app.get("/panes/{pane}.png")
async def pane_png(pane: str) -> Response:
    """Current frame of a display pane, encoded as PNG."""
    controller = get_controller()

    if pane not in PANES:
        return JSONResponse(
            {"error": f"Unknown pane: {pane}"},
            status_code=404,
        )

    if controller is None:
        return JSONResponse(
            {"error": "Controller not initialized"},
            status_code=503,
        )

    surface = (
        controller.capture_surface if pane == "capture"
        else controller.synthesis_surface
    )
    if surface.version == 0 or surface.frame is None:
        return JSONResponse(
            {"error": "No frame rendered yet"},
            status_code=503,
        )

    return Response(
        content=encode_png(surface.frame),
        media_type="image/png",
        headers={"X-Frame-Version": str(surface.version)},
    )


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/state")
async def state_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time reveal state."""
    await websocket.accept()
    logger.info("Client connected to /ws/state")

    try:
        while not _shutdown_flag:
            controller = get_controller()
            if controller:
                await websocket.send_json(controller.snapshot().model_dump(mode="json"))
            await asyncio.sleep(settings.server.state_push_interval_sec)

    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/state")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "synthesis_reveal.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
