#!/usr/bin/env python3
"""Render a sphere scene to a PPM or PNG image.

Builds one of the preset scenes (or loads a JSON scene file), renders it with
progressive refinement and writes the result.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH            Image width in pixels (default: 400)
    --aspect-ratio RATIO     Width / height of the image (default: 16/9)
    --samples SAMPLES        Number of samples per pixel (default: 100)
    --max-depth DEPTH        Maximum ray bounces (default: 50)
    --seed SEED              Seed for reproducible renders (default: random)
    --threads N              CPU worker threads (default: all)
    --arch ARCH              Taichi backend: cpu, gpu, cuda, vulkan, metal
    --scene NAME_OR_FILE     Preset name or JSON scene file (default: default)
    --output OUTPUT          Output file, .ppm or .png (default: image.ppm)
    --batch-size SIZE        Samples per progress update (default: 10)
    --quiet / --verbose      Less or more log output

Example:
    python -m examples.render_spheres --width 200 --samples 20 --seed 7 --output spheres.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from src.raytrace.core.config import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SAMPLES_PER_PIXEL,
    RenderSettings,
    init_backend,
)

logger = logging.getLogger("render_spheres")


def parse_aspect_ratio(value: str) -> float:
    """Parse an aspect ratio given as ``16/9``, ``16:9`` or ``1.777``."""
    for sep in ("/", ":"):
        if sep in value:
            num, den = value.split(sep, 1)
            try:
                return float(num) / float(den)
            except (ValueError, ZeroDivisionError) as e:
                raise argparse.ArgumentTypeError(f"invalid aspect ratio: {value!r}") from e
    try:
        return float(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {value!r}") from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=parse_aspect_ratio,
        default=DEFAULT_ASPECT_RATIO,
        help="Width / height, e.g. 16/9 or 1.5 (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=DEFAULT_SAMPLES_PER_PIXEL,
        help=f"Number of samples per pixel (default: {DEFAULT_SAMPLES_PER_PIXEL})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum ray bounces (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible renders (default: random)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of CPU worker threads (default: all hardware threads)",
    )
    parser.add_argument(
        "--arch",
        default="cpu",
        help="Taichi backend: cpu, gpu, cuda, vulkan or metal (default: cpu)",
    )
    parser.add_argument(
        "--scene",
        default="default",
        help="Preset name (default, showcase) or path to a JSON scene file",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path, .ppm or .png (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only report warnings and errors",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Report scene construction details",
    )
    return parser.parse_args(argv)


def build_scene(name_or_path: str, aspect_ratio: float):
    """Build a preset scene or load one from a JSON file.

    Returns:
        Tuple of (scene, camera).
    """
    # Lazy imports to allow Taichi initialization first
    from src.raytrace.camera.camera import Camera
    from src.raytrace.scene.manager import load_scene_file
    from src.raytrace.scene.presets import PRESETS

    if name_or_path in PRESETS:
        return PRESETS[name_or_path](aspect_ratio)

    path = Path(name_or_path)
    if path.suffix.lower() != ".json":
        raise ValueError(
            f"Unknown scene {name_or_path!r}; expected one of "
            f"{', '.join(sorted(PRESETS))} or a .json file"
        )
    return load_scene_file(path), Camera(aspect_ratio=aspect_ratio)


def render_spheres(
    settings: RenderSettings,
    scene_name: str = "default",
    output_path: str = "image.ppm",
    batch_size: int = 10,
) -> Path:
    """Render a scene and save it to a file.

    Args:
        settings: Image size, sample budget, depth and seed of the render.
        scene_name: Preset name or JSON scene file.
        output_path: Output file path; the extension picks the format.
        batch_size: Number of samples to render between progress updates.

    Returns:
        Path to the saved image file.
    """
    from src.raytrace.camera.camera import setup_camera
    from src.raytrace.core.progressive import ProgressiveRenderer

    scene, camera = build_scene(scene_name, settings.aspect_ratio)
    logger.info("Scene %r: %r", scene_name, scene)
    setup_camera(camera)

    renderer = ProgressiveRenderer(settings)
    if settings.seed is None:
        logger.info("Seed entropy: %d", renderer.seed_entropy)
    renderer.render(batch_size=batch_size)

    output_file = Path(output_path)
    renderer.save_image(output_file)
    logger.info("Saved to: %s", output_file.absolute())
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    level = logging.INFO
    if args.quiet:
        level = logging.WARNING
    elif args.verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = RenderSettings.from_width(
            args.width,
            args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            num_threads=args.threads,
        )
        init_backend(arch=args.arch, num_threads=settings.num_threads)
        render_spheres(
            settings,
            scene_name=args.scene,
            output_path=args.output,
            batch_size=args.batch_size,
        )
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
