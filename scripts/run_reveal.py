#!/usr/bin/env python3
"""
Headless Reveal Script
======================

Standalone script that runs one capture → reveal sequence without the
HTTP service.

This script:
    1. Loads an image file as the capture source
    2. Runs the RevealController with the mock or gemini backend
    3. Logs state and denoise progress while the sequence runs
    4. Writes the final point cloud and synthesis pane as PNG files

Prerequisites:
    - For the gemini backend: GEMINI_API_KEY must be set

Usage:
    python scripts/run_reveal.py photo.jpg
    python scripts/run_reveal.py photo.jpg --backend gemini --out-dir out/
    python scripts/run_reveal.py photo.jpg --seed 7 --frame-interval 0
"""

import argparse
import asyncio
import logging
import os
import sys
import time
from pathlib import Path

import numpy as np

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from synthesis_reveal.capture import ImageDecodeError, StillImageSource, encode_png
from synthesis_reveal.models import RevealState
from synthesis_reveal.reveal import RevealController
from synthesis_reveal.synthesis import (
    GeminiConceptExtractor,
    GeminiImageGenerator,
    MockConceptExtractor,
    MockImageGenerator,
    create_client,
)


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def run_reveal(
    image_path: Path,
    out_dir: Path,
    backend: str,
    seed: int,
    frame_interval: float,
    timeout: float,
    report_interval: float,
) -> dict:
    """
    Run one capture through the full reveal sequence.

    Args:
        image_path: Image file used as the capture
        out_dir: Directory for the output PNG files
        backend: 'mock' or 'gemini'
        seed: Seed for the shared random generator
        frame_interval: Seconds between animation frames
        timeout: Maximum seconds to wait for SETTLED or FAILED
        report_interval: Seconds between progress reports

    Returns:
        Final summary dict
    """
    logger.info("=" * 60)
    logger.info("Synthesis Reveal")
    logger.info("=" * 60)
    logger.info(f"Image: {image_path}")
    logger.info(f"Backend: {backend}")
    logger.info(f"Seed: {seed}")
    logger.info(f"Frame interval: {frame_interval:.4f}s")
    logger.info("=" * 60)

    source = StillImageSource.from_bytes(image_path.read_bytes())

    if backend == "gemini":
        client = create_client(os.environ.get("GEMINI_API_KEY"))
        extractor = GeminiConceptExtractor(client)
        generator = GeminiImageGenerator(client)
    else:
        extractor = MockConceptExtractor(latency=0.5)
        generator = MockImageGenerator(latency=0.5)

    controller = RevealController(
        extractor,
        generator,
        rng=np.random.default_rng(seed),
        frame_interval=frame_interval,
    )

    start_time = time.time()
    await controller.capture(source)

    finished = asyncio.create_task(controller.wait_until_finished(timeout=timeout))
    try:
        while not finished.done():
            snapshot = controller.snapshot()
            logger.info(
                f"  state={snapshot.state.value} "
                f"step={snapshot.denoise_step}/{snapshot.total_steps} "
                f"caption={snapshot.caption!r}"
            )
            await asyncio.wait({finished}, timeout=report_interval)
        final_state = finished.result()
    except asyncio.TimeoutError:
        logger.error(f"Sequence did not finish within {timeout}s")
        final_state = controller.state
    finally:
        await controller.close()

    total_time = time.time() - start_time

    out_dir.mkdir(parents=True, exist_ok=True)
    capture_path = out_dir / "capture.png"
    synthesis_path = out_dir / "synthesis.png"
    capture_path.write_bytes(encode_png(controller.capture_surface.frame))
    synthesis_path.write_bytes(encode_png(controller.synthesis_surface.frame))

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Final state: {final_state.value}")
    logger.info(f"Caption: {controller.caption}")
    logger.info(f"Point cloud: {capture_path}")
    logger.info(f"Synthesis pane: {synthesis_path}")
    logger.info("=" * 60)

    return {
        "duration": total_time,
        "state": final_state.value,
        "concept": controller.concept,
        "error": controller.error,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Run one capture through the synthesis reveal sequence"
    )
    parser.add_argument(
        "image",
        type=Path,
        help="Image file to capture",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("reveal_out"),
        help="Directory for output PNG files (default: reveal_out)",
    )
    parser.add_argument(
        "--backend",
        choices=("mock", "gemini"),
        default=os.environ.get("REVEAL_SYNTHESIS_BACKEND", "mock"),
        help="Synthesis backend (default: mock)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--frame-interval",
        type=float,
        default=1.0 / 60.0,
        help="Seconds between animation frames (default: 1/60)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Seconds to wait for the sequence to finish (default: 120)",
    )
    parser.add_argument(
        "--report-interval",
        type=float,
        default=0.5,
        help="Seconds between progress reports (default: 0.5)",
    )

    args = parser.parse_args()

    try:
        result = asyncio.run(run_reveal(
            image_path=args.image,
            out_dir=args.out_dir,
            backend=args.backend,
            seed=args.seed,
            frame_interval=args.frame_interval,
            timeout=args.timeout,
            report_interval=args.report_interval,
        ))
    except (OSError, ImageDecodeError, ValueError) as e:
        logger.error(f"Reveal could not run: {e}")
        sys.exit(2)

    # Exit with appropriate code
    sys.exit(0 if result["state"] == RevealState.SETTLED.value else 1)


if __name__ == "__main__":
    main()
