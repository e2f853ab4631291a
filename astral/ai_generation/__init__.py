"""
Seed image encoding and illustration generation for ASTRAL.
"""

from .encoder import InlineImagePart, encode_image
from .prompting import DEFAULT_STYLE_SUFFIX, build_illustration_prompt
from .replicate_service import ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "DEFAULT_STYLE_SUFFIX",
    "InlineImagePart",
    "ReplicateImageGenerator",
    "build_illustration_prompt",
    "encode_image",
    "normalize_image_outputs",
]
