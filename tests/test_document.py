import pytest
import yaml

from astral.story_generation import (
    BlockId,
    BlockStatus,
    ContentBlock,
    MutationRequest,
    parse_story,
)


@pytest.fixture(name="document")
def document_fixture(two_chapter_story):
    return parse_story(two_chapter_story)


def test_block_id_renders_and_orders():
    assert str(BlockId(1, 3)) == "1-3"
    assert sorted([BlockId(1, 0), BlockId(0, 2), BlockId(0, 1)]) == [
        BlockId(0, 1),
        BlockId(0, 2),
        BlockId(1, 0),
    ]


def test_image_blocks_follow_chapter_then_block_order(document):
    assert [block.id for block in document.image_blocks()] == [
        BlockId(0, 1),
        BlockId(1, 1),
        BlockId(1, 3),
    ]
    assert not document.is_complete


def test_find_block_out_of_range(document):
    assert document.find_block(BlockId(5, 0)) is None
    assert document.find_block(BlockId(0, 9)) is None
    assert document.find_block(BlockId(-1, 0)) is None


def test_replace_block_touches_only_one_block(document):
    target = BlockId(1, 1)
    resolved = document.find_block(target).resolve("https://images.test/1.jpg")

    updated = document.replace_block(target, resolved)

    assert updated is not document
    assert document.find_block(target).status is BlockStatus.PENDING
    assert updated.find_block(target).payload == "https://images.test/1.jpg"
    assert updated.chapters[0] is document.chapters[0]
    for old, new in zip(document.chapters[1].blocks, updated.chapters[1].blocks):
        if old.id != target:
            assert new is old


def test_replace_block_rejects_unknown_or_mismatched_id(document):
    block = document.find_block(BlockId(0, 1))
    with pytest.raises(KeyError):
        document.replace_block(BlockId(9, 9), block)
    with pytest.raises(ValueError):
        document.replace_block(BlockId(1, 1), block)


def test_image_block_resolves_exactly_once():
    block = ContentBlock.image(BlockId(0, 0), "prompt")

    loaded = block.resolve("https://images.test/a.jpg")

    assert loaded.status is BlockStatus.LOADED
    assert loaded.source_text == "prompt"
    with pytest.raises(ValueError):
        loaded.resolve("https://images.test/b.jpg")


def test_paragraph_cannot_be_resolved():
    with pytest.raises(ValueError):
        ContentBlock.paragraph(BlockId(0, 0), "text").resolve("x")


def test_plain_text_snapshot_uses_source_text(document):
    resolved = document.replace_block(
        BlockId(0, 1),
        document.find_block(BlockId(0, 1)).resolve("data:image/jpeg;base64,AAAA"),
    )

    snapshot = resolved.to_plain_text()

    assert snapshot == (
        "Chapter: The Drift\n"
        "The station turned slowly in the cold light.\n"
        "A ruined orbital station against a black sun\n"
        "\n"
        "Chapter: The Signal\n"
        "A voice answered from the dark.\n"
        "A lone figure before a glowing console\n"
        "Nobody should have been left aboard.\n"
        "An empty corridor lit by emergency strobes"
    )
    assert "base64" not in snapshot


def test_mutation_request_from_document(document):
    request = MutationRequest.from_document("add a betrayal", document)

    assert request.directive == "add a betrayal"
    assert request.previous_text == document.to_plain_text()


def test_yaml_export_round_trips_through_safe_load(document):
    data = yaml.safe_load(document.to_yaml())

    assert [chapter["title"] for chapter in data["chapters"]] == ["The Drift", "The Signal"]
    first_image = data["chapters"][0]["blocks"][1]
    assert first_image == {
        "id": "0-1",
        "kind": "image",
        "status": "pending",
        "payload": "A ruined orbital station against a black sun",
        "source_text": "A ruined orbital station against a black sun",
        "failed": False,
    }
