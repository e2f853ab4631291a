import pytest

from astral.pipeline import DocumentStore
from astral.story_generation import BlockId, BlockStatus, parse_story


@pytest.fixture(name="document")
def document_fixture(two_chapter_story):
    return parse_story(two_chapter_story)


@pytest.fixture(name="events")
def events_fixture():
    return []


@pytest.fixture(name="store")
def store_fixture(events):
    store = DocumentStore()
    store.subscribe(lambda event, payload: events.append((event, payload)))
    return store


def test_begin_cycle_clears_state_and_bumps_epoch(store, document):
    first = store.begin_cycle()
    store.publish(first, document)

    second = store.begin_cycle()

    assert second == first + 1
    assert store.document is None
    assert store.error is None
    assert store.is_loading


def test_publish_for_current_epoch(store, document, events):
    epoch = store.begin_cycle()

    assert store.publish(epoch, document)
    assert store.document is document
    assert not store.is_loading
    assert [event for event, _ in events] == ["cycle:started", "document:ready"]


def test_publish_for_stale_epoch_is_ignored(store, document):
    stale = store.begin_cycle()
    store.begin_cycle()

    assert not store.publish(stale, document)
    assert store.document is None


def test_fail_replaces_content_with_error(store, document, events):
    epoch = store.begin_cycle()
    store.publish(epoch, document)
    epoch = store.begin_cycle()

    assert store.fail(epoch, "connection lost")

    snapshot = store.snapshot()
    assert snapshot.document is None
    assert snapshot.error == "connection lost"
    assert not snapshot.is_loading
    assert events[-1] == ("cycle:failed", {"epoch": epoch, "error": "connection lost"})


def test_stale_failure_is_ignored(store):
    stale = store.begin_cycle()
    store.begin_cycle()

    assert not store.fail(stale, "late error")
    assert store.error is None


def test_resolve_block_updates_exactly_one_block(store, document):
    epoch = store.begin_cycle()
    store.publish(epoch, document)
    target = BlockId(1, 1)

    assert store.resolve_block(epoch, target, "https://images.test/1.jpg")

    live = store.document
    assert live.find_block(target).status is BlockStatus.LOADED
    assert live.find_block(target).payload == "https://images.test/1.jpg"
    for old, new in zip(document.iter_blocks(), live.iter_blocks()):
        if old.id != target:
            assert new == old


def test_resolve_block_from_stale_epoch_is_noop(store, document, two_chapter_story):
    old_epoch = store.begin_cycle()
    store.publish(old_epoch, document)
    new_epoch = store.begin_cycle()
    new_document = parse_story(two_chapter_story)
    store.publish(new_epoch, new_document)

    assert not store.resolve_block(old_epoch, BlockId(0, 1), "https://images.test/old.jpg")
    assert store.document is new_document


def test_first_write_wins_for_duplicate_results(store, document):
    epoch = store.begin_cycle()
    store.publish(epoch, document)
    target = BlockId(0, 1)

    assert store.resolve_block(epoch, target, "https://images.test/first.jpg")
    after_first = store.document
    assert not store.resolve_block(epoch, target, "https://images.test/second.jpg")

    assert store.document is after_first
    assert store.document.find_block(target).payload == "https://images.test/first.jpg"


def test_resolve_unknown_or_paragraph_block_is_noop(store, document):
    epoch = store.begin_cycle()
    store.publish(epoch, document)

    assert not store.resolve_block(epoch, BlockId(7, 0), "x")
    assert not store.resolve_block(epoch, BlockId(0, 0), "x")
    assert store.document is document


def test_failed_resolution_is_flagged(store, document, events):
    epoch = store.begin_cycle()
    store.publish(epoch, document)

    store.resolve_block(epoch, BlockId(0, 1), "Error: Image could not be generated.", failed=True)

    assert store.document.find_block(BlockId(0, 1)).failed
    event, payload = events[-1]
    assert event == "block:resolved"
    assert payload["block_id"] == BlockId(0, 1)
    assert payload["failed"] is True


def test_unsubscribe_stops_notifications(document):
    store = DocumentStore()
    received = []
    unsubscribe = store.subscribe(lambda event, payload: received.append(event))

    store.begin_cycle()
    unsubscribe()
    store.begin_cycle()

    assert received == ["cycle:started"]
