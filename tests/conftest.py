import asyncio
import json
import os

# Use LiteLLM's bundled model cost map instead of fetching it over the network at import time.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest

from astral.common import ChatResult


class FakeCompletion:
    """Async stand-in for the LiteLLM helper that replays queued responses."""

    def __init__(self, *responses):
        self.calls = []
        self._responses = list(responses)

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return ChatResult(text=item, raw=None)

    def user_text(self, index=-1):
        content = self.calls[index]["messages"][1]["content"]
        return content[0]["text"]


class GatedImageGenerator:
    """Every request waits on its own future so a test decides completion order."""

    def __init__(self):
        self.prompts = []
        self.waiters = []

    async def generate_image(self, prompt, **kwargs):
        self.prompts.append(prompt)
        waiter = asyncio.get_running_loop().create_future()
        self.waiters.append(waiter)
        return await waiter


class InstantImageGenerator:
    def __init__(self, fail_on=()):
        self.prompts = []
        self._fail_on = tuple(fail_on)

    async def generate_image(self, prompt, **kwargs):
        self.prompts.append(prompt)
        if any(marker in prompt for marker in self._fail_on):
            raise RuntimeError("image service unavailable")
        return f"https://images.test/{len(self.prompts)}.jpg"


async def settle(rounds=5):
    for _ in range(rounds):
        await asyncio.sleep(0)


def story_json(*chapters):
    """Build a story response from (title, [(type, content), ...]) tuples."""
    return json.dumps(
        {
            "story": [
                {
                    "chapter_title": title,
                    "content_blocks": [
                        {"type": block_type, "content": content} for block_type, content in blocks
                    ],
                }
                for title, blocks in chapters
            ]
        }
    )


@pytest.fixture(name="make_story_json")
def make_story_json_fixture():
    return story_json


@pytest.fixture(name="two_chapter_story")
def two_chapter_story_fixture():
    return story_json(
        (
            "The Drift",
            [
                ("paragraph", "The station turned slowly in the cold light."),
                ("image_prompt", "A ruined orbital station against a black sun"),
            ],
        ),
        (
            "The Signal",
            [
                ("paragraph", "A voice answered from the dark."),
                ("image_prompt", "A lone figure before a glowing console"),
                ("paragraph", "Nobody should have been left aboard."),
                ("image_prompt", "An empty corridor lit by emergency strobes"),
            ],
        ),
    )


@pytest.fixture(name="make_completion")
def make_completion_fixture():
    return FakeCompletion


@pytest.fixture(name="gated_images")
def gated_images_fixture():
    return GatedImageGenerator()


@pytest.fixture(name="make_instant_images")
def make_instant_images_fixture():
    return InstantImageGenerator


@pytest.fixture(name="settle")
def settle_fixture():
    return settle
