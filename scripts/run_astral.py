"""
CLI to weave an illustrated ASTRAL story and optionally mutate it.

Usage:
    python scripts/run_astral.py \
        --prompt "a derelict station drifting past a dead star" \
        --preset betrayal \
        --output astral_story.yaml

Environment variables:
    REPLICATE_API_TOKEN  - required for illustrations
    GEMINI_API_KEY       - or any provider key LiteLLM understands
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from astral import AstralError, AstralOrchestrator, ReplicateImageGenerator  # noqa: E402
from astral.story_generation import MUTATION_PRESETS, Document  # noqa: E402


class ProgressTracker:
    """
    Mirrors store events as command-line progress updates.
    """

    def __init__(self) -> None:
        self._bar: tqdm | None = None

    def __call__(self, event: str, payload: dict[str, Any]) -> None:
        match event:
            case "cycle:started":
                self.close()
                self._write(f"[cycle {payload['epoch']}] Weaving the narrative...")
            case "document:ready":
                document: Document = payload["document"]
                total = len(document.image_blocks())
                self._write(
                    f"[cycle {payload['epoch']}] {len(document)} chapter(s) manifested. "
                    f"Illustrating {total} scene(s)..."
                )
                self._bar = tqdm(total=total, desc="Illustrations", unit="image")
            case "block:resolved":
                if self._bar is not None:
                    self._bar.update(1)
                if payload.get("failed"):
                    self._write(f"  block {payload['block_id']}: image could not be generated.")
            case "cycle:failed":
                self.close()
                self._write(
                    "A Tear in the Fabric. The narrative stream is unstable. "
                    f"Please try again. ({payload['error']})"
                )

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Weave an illustrated story from the ether.")
    parser.add_argument(
        "--prompt",
        default=None,
        help="Seed concept for the story.",
    )
    parser.add_argument(
        "--image",
        default=None,
        help="Path to a seed image sent along with the prompt.",
    )
    parser.add_argument(
        "--mutate",
        action="append",
        default=[],
        metavar="DIRECTIVE",
        help="Mutation directive applied after the story is illustrated (repeatable).",
    )
    parser.add_argument(
        "--preset",
        action="append",
        default=[],
        choices=sorted(MUTATION_PRESETS),
        help="Built-in mutation directive applied after any --mutate directives (repeatable).",
    )
    parser.add_argument(
        "--output",
        default="astral_story.yaml",
        help="Output YAML file for the final illustrated story.",
    )
    parser.add_argument("--story-model", default=None, help="LiteLLM model for the story request.")
    parser.add_argument("--image-model", default=None, help="Replicate model for illustrations.")
    parser.add_argument("--aspect-ratio", default=None, help="Illustration aspect ratio (default 16:9).")
    parser.add_argument(
        "--output-format",
        default=None,
        choices=["jpg", "png", "webp"],
        help="Illustration file format (default jpg).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)
    if not args.prompt and not args.image:
        parser.error("Provide --prompt, --image, or both.")
    return args


def build_image_generator(args: argparse.Namespace) -> ReplicateImageGenerator:
    return ReplicateImageGenerator(
        model_identifier=args.image_model,
        aspect_ratio=args.aspect_ratio,
        output_format=args.output_format,
    )


async def run(
    args: argparse.Namespace,
    image_generator: ReplicateImageGenerator | None = None,
) -> Document:
    tracker = ProgressTracker()
    if image_generator is None:
        image_generator = build_image_generator(args)
    orchestrator = AstralOrchestrator(
        image_generator=image_generator,
        story_model=args.story_model,
        listener=tracker,
    )

    try:
        await orchestrator.generate(args.prompt, args.image)
        await orchestrator.wait_for_illustrations()

        directives = list(args.mutate) + [MUTATION_PRESETS[name] for name in args.preset]
        for directive in directives:
            tqdm.write(f"Mutating: {directive}")
            await orchestrator.mutate(directive)
            await orchestrator.wait_for_illustrations()
    finally:
        tracker.close()

    document = orchestrator.store.document
    if document is None:
        raise RuntimeError("Generation finished without a live story.")
    return document


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        image_generator = build_image_generator(args)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    try:
        document = asyncio.run(run(args, image_generator))
    except AstralError:
        return 1

    output_path = Path(args.output)
    output_path.write_text(document.to_yaml(), encoding="utf-8")
    print(f"Saved story to {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
