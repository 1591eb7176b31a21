"""Tests for the concurrent channel fan-out."""

import pytest

from server import aggregator
from server.blobstore.base import MediaKind

BASE_TIMESTAMP = 1_700_000_000


async def test_counts_every_document_across_categories(fake_store):
    for location in (-100, -101):
        fake_store.add_item(location, file_name="a.pdf")
        fake_store.add_item(location, file_name="b.pdf")

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100, "Theory": -101}}, per_location_limit=50)

    assert result.total_count == 4
    assert result.subject_counts == {"Math": 4}
    assert len(result.recent_items) == 4


async def test_failing_location_contributes_nothing(fake_store):
    fake_store.add_item(-100, file_name="a.pdf")
    fake_store.add_item(-200, file_name="b.pdf")
    fake_store.failing_locations.add(-200)

    result = await aggregator.aggregate(
        fake_store, {"Math": {"Main": -100}, "Physics": {"Main": -200}}, per_location_limit=50
    )

    assert result.total_count == 1
    assert result.subject_counts == {"Math": 1, "Physics": 0}


async def test_all_locations_failing_yields_empty_result(fake_store):
    fake_store.failing_locations.update({-100, -101})

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100, "Theory": -101}}, per_location_limit=50)

    assert result.total_count == 0
    assert result.recent_items == []


async def test_messages_without_payload_are_ignored(fake_store):
    fake_store.add_item(-100, media_kind=MediaKind.NONE)
    fake_store.add_item(-100, media_kind=MediaKind.PHOTO)

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100}}, per_location_limit=50)

    assert result.total_count == 1
    assert result.recent_items[0].name == "photo_2.jpg"


async def test_document_without_filename_gets_default_name(fake_store):
    fake_store.add_item(-100, file_name=None)

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100}}, per_location_limit=50)

    assert result.recent_items[0].name == "file_1"


async def test_recent_items_are_newest_first_and_limited(fake_store):
    for offset in (5, 1, 9, 3, 7, 2):
        fake_store.add_item(-100, file_name=f"{offset}.pdf", timestamp=BASE_TIMESTAMP + offset)

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100}}, per_location_limit=50, top_n=3)

    assert [s.name for s in result.recent_items] == ["9.pdf", "7.pdf", "5.pdf"]
    assert result.recent_items[0].uploaded_at_ms == (BASE_TIMESTAMP + 9) * 1000
    assert result.total_count == 6


async def test_composite_ids_are_unique_per_channel(fake_store):
    fake_store.add_item(-100, file_name="main.pdf")
    fake_store.add_item(-101, file_name="theory.pdf")

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100, "Theory": -101}}, per_location_limit=50)

    assert sorted(s.id for s in result.recent_items) == ["Math-Main-1", "Math-Theory-1"]


async def test_duplicate_ids_are_kept_once(fake_store):
    item = fake_store.add_item(-100, file_name="a.pdf")
    fake_store.items[-100].append(item)

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100}}, per_location_limit=50)

    assert [s.id for s in result.recent_items] == ["Math-Main-1"]
    assert result.total_count == 2


async def test_equal_timestamps_keep_discovery_order(fake_store):
    fake_store.add_item(-100, file_name="a.pdf", timestamp=BASE_TIMESTAMP)
    fake_store.add_item(-101, file_name="b.pdf", timestamp=BASE_TIMESTAMP)

    catalog = {"Math": {"Main": -100, "Theory": -101}}
    result = await aggregator.aggregate(fake_store, catalog, per_location_limit=50)

    assert [s.id for s in result.recent_items] == ["Math-Main-1", "Math-Theory-1"]


async def test_per_location_limit_applies(fake_store):
    for i in range(10):
        fake_store.add_item(-100, file_name=f"{i}.pdf")

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": -100}}, per_location_limit=4)

    assert result.total_count == 4


async def test_positive_catalog_ids_are_normalized(fake_store):
    fake_store.add_item(-100, file_name="a.pdf")

    result = await aggregator.aggregate(fake_store, {"Math": {"Main": 100}}, per_location_limit=50)

    assert result.total_count == 1


async def test_concurrency_is_bounded(fake_store):
    fake_store.fetch_delay = 0.01
    catalog = {f"S{i}": {"Main": -(i + 1)} for i in range(12)}

    await aggregator.aggregate(fake_store, catalog, per_location_limit=5, concurrency=3)

    assert fake_store.fetch_calls == 12
    assert 1 <= fake_store.max_in_flight <= 3


async def test_invalid_concurrency_rejected(fake_store):
    with pytest.raises(ValueError):
        await aggregator.aggregate(fake_store, {"Math": {"Main": -100}}, per_location_limit=5, concurrency=0)


async def test_collect_items_returns_every_payload_item(fake_store):
    for i in range(7):
        fake_store.add_item(-103, file_name=f"{i}.pdf")

    collected = await aggregator.collect_items(fake_store, {"Math": {"Public": -103}}, per_location_limit=50)

    assert len(collected) == 7
    assert all(c.subject == "Math" and c.category == "Public" for c in collected)
