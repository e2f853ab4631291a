"""
Integration with Replicate for ASTRAL illustration generation.
"""

from __future__ import annotations

import base64
import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import replicate
from replicate.exceptions import ReplicateException

from astral.common import ImageGenerationError

DEFAULT_MODEL = "black-forest-labs/flux-schnell"
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_OUTPUT_FORMAT = "jpg"

_FORMAT_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


def _build_flux_input(
    *,
    prompt: str,
    aspect_ratio: str,
    output_format: str,
) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "num_outputs": 1,
        "aspect_ratio": aspect_ratio,
        "output_format": output_format,
        "output_quality": 90,
    }


def _build_imagen_input(
    *,
    prompt: str,
    aspect_ratio: str,
    output_format: str,
) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": aspect_ratio,
        "output_format": output_format,
        "safety_filter_level": "block_only_high",
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-schnell": _build_flux_input,
    "black-forest-labs/flux-dev": _build_flux_input,
    "google/imagen-3": _build_imagen_input,
    "google/imagen-4": _build_imagen_input,
}


def _resolve_input_builder(model_identifier: str) -> Callable[..., dict[str, Any]]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )
    return builder


def mime_type_for_format(output_format: str) -> str:
    return _FORMAT_MIME_TYPES.get(output_format.strip().lower(), "image/jpeg")


class ReplicateImageGenerator:
    """
    Convenience wrapper around the async Replicate client for illustration slots.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back
        to ``ASTRAL_IMAGE_MODEL``, then ``REPLICATE_MODEL``, then flux-schnell.
    aspect_ratio:
        Default aspect ratio for every image. Falls back to ``ASTRAL_IMAGE_ASPECT_RATIO``.
    output_format:
        Default output format (``jpg``, ``png`` or ``webp``). Falls back to
        ``ASTRAL_IMAGE_FORMAT``.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        aspect_ratio: str | None = None,
        output_format: str | None = None,
        client: replicate.Client | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier
            or os.getenv("ASTRAL_IMAGE_MODEL")
            or os.getenv("REPLICATE_MODEL")
            or DEFAULT_MODEL
        )
        self._input_builder = _resolve_input_builder(self._model_identifier)
        self._aspect_ratio = (
            aspect_ratio or os.getenv("ASTRAL_IMAGE_ASPECT_RATIO") or DEFAULT_ASPECT_RATIO
        )
        self._output_format = (
            output_format or os.getenv("ASTRAL_IMAGE_FORMAT") or DEFAULT_OUTPUT_FORMAT
        )
        self._client = client or replicate.Client(api_token=self._api_token)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    @property
    def output_format(self) -> str:
        return self._output_format

    async def generate_image(
        self,
        prompt: str,
        *,
        aspect_ratio: str | None = None,
        output_format: str | None = None,
        **model_kwargs: Any,
    ) -> str:
        """
        Generate one image for ``prompt`` and return a displayable reference.

        Returns
        -------
        str
            An image URL, or a ``data:`` URI when the model returns raw bytes.

        Raises
        ------
        ImageGenerationError
            If Replicate rejects the request or returns no image.
        """
        resolved_format = output_format or self._output_format
        replicate_input = self._input_builder(
            prompt=prompt,
            aspect_ratio=aspect_ratio or self._aspect_ratio,
            output_format=resolved_format,
        )
        # Allow the caller to tweak model-specific knobs (e.g., seed, go_fast).
        replicate_input.update(model_kwargs)

        try:
            outputs = await self._client.async_run(
                self._model_identifier,
                input=replicate_input,
            )
        except ReplicateException as exc:
            raise ImageGenerationError(f"Replicate rejected the illustration request: {exc}") from exc

        references = normalize_image_outputs(outputs, mime_type=mime_type_for_format(resolved_format))
        if not references:
            raise ImageGenerationError("Replicate returned no image for the illustration request.")
        return references[0]


def normalize_image_outputs(raw: Any, *, mime_type: str = "image/jpeg") -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of references.

    File outputs become their URL, strings pass through, and raw bytes are
    inlined as ``data:`` URIs of ``mime_type``.
    """

    if raw is None:
        return []

    if isinstance(raw, str):
        return [raw]

    if isinstance(raw, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(raw)).decode("ascii")
        return [f"data:{mime_type};base64,{encoded}"]

    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            if item is not None:
                normalized.extend(normalize_image_outputs(item, mime_type=mime_type))
        return normalized

    return [str(raw)]
