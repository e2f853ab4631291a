"""
Prompt construction utilities for ASTRAL story generation and mutation.
"""

from __future__ import annotations

from dataclasses import dataclass

from .document import MutationRequest

DEFAULT_AESTHETIC = "cosmic, tech-noir"

MUTATION_PRESETS: dict[str, str] = {
    "cosmic-horror": "Change the genre to cosmic horror, with a sense of dread and unsettling entities.",
    "utopian-ending": "Rewrite it with a hopeful, utopian ending where the conflict is resolved peacefully.",
    "melancholic": "Shift the tone to be more melancholic and somber, focusing on loss and memory.",
    "betrayal": "Introduce a surprising betrayal from a character who seemed to be an ally.",
}


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the text model.
    """

    system: str
    user: str


def _system_instruction(aesthetic: str) -> str:
    return f"""You are an expert speculative fiction author creating an illustrated graphic novel.
Expand the material you are given into a rich, multi-chapter short story.

Format rules:
- Give every chapter a compelling title.
- Within each chapter follow a strict loop: write one paragraph of narrative, then immediately an 'image_prompt' that lets an AI visualize that paragraph. Never place two paragraphs or two image prompts in a row.
- Image prompts must be detailed, descriptive, and aligned with a '{aesthetic}' aesthetic so every illustration shares one visual language.

Output contract:
Your entire output MUST be a JSON object containing a single key "story", which is an array of chapter objects.
Each chapter object has:
1. A "chapter_title" string.
2. A "content_blocks" array. Each item is an object with a "type" that is either "paragraph" or "image_prompt", and a "content" string.

Adhere to the paragraph-then-image structure strictly. Do not include commentary outside the JSON."""


def build_story_prompt(
    seed_prompt: str | None,
    *,
    has_seed_image: bool = False,
    aesthetic: str = DEFAULT_AESTHETIC,
) -> StoryPrompt:
    """
    Build the prompt pair for a fresh story from a text and/or image seed.
    """
    concept = (seed_prompt or "").strip()
    if not concept and not has_seed_image:
        raise ValueError("A seed prompt or a seed image is required.")

    lines: list[str] = []
    if concept:
        lines.append(f'User\'s concept: "{concept}"')
    if has_seed_image:
        lines.append(
            "The attached image is part of the seed. Let its subject, mood, and setting shape the story."
        )
    return StoryPrompt(system=_system_instruction(aesthetic), user="\n\n".join(lines))


def build_mutation_prompt(
    request: MutationRequest,
    *,
    aesthetic: str = DEFAULT_AESTHETIC,
) -> StoryPrompt:
    """
    Build the prompt pair that rewrites a previous story under a directive.
    """
    directive = request.directive.strip()
    if not directive:
        raise ValueError("Mutation directive must be a non-empty string.")
    if not request.previous_text.strip():
        raise ValueError("Mutation requires the text of a previous story.")

    user_prompt = f"""You are now acting as an editor. Rewrite the story below according to a specific directive.
Adhere to the directive, but keep the core essence, characters, and setting of the original story where possible.
You may restructure chapters and blocks freely. Your output must be a complete new story.

Directive: "{directive}"

Original Story:
---
{request.previous_text}
---

Now rewrite the entire story based on the directive, following the JSON structure precisely (a "story" key with an array of chapters, each with "chapter_title" and "content_blocks" containing "type" and "content" in a paragraph-then-image pattern)."""

    return StoryPrompt(system=_system_instruction(aesthetic), user=user_prompt)
