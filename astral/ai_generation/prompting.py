"""
Prompt construction utilities for ASTRAL illustration requests.
"""

from __future__ import annotations

from typing import Sequence

DEFAULT_STYLE_SUFFIX = "cinematic, high detail, epic lighting, futuristic, tech noir, cosmic"


def build_illustration_prompt(
    scene_prompt: str,
    *,
    style_suffix: str | Sequence[str] | None = DEFAULT_STYLE_SUFFIX,
) -> str:
    """
    Append the session-wide style suffix to an image prompt from the story.

    The same suffix is used for every slot so illustrations share one look.
    """
    if not scene_prompt or not scene_prompt.strip():
        raise ValueError("scene_prompt must be a non-empty string.")

    scene = scene_prompt.strip().rstrip(",")
    style = _normalize_style(style_suffix)
    if not style:
        return scene
    return f"{scene}, {style}"


def _normalize_style(value: str | Sequence[str] | None) -> str:
    if value is None:
        return ""

    if isinstance(value, str):
        items = [value]
    else:
        items = [str(item) for item in value]

    parts: list[str] = []
    for item in items:
        for raw in item.split(","):
            cleaned = raw.strip()
            if cleaned:
                parts.append(cleaned)
    return ", ".join(parts)
