"""Tests for the client-side channel directory store."""

import json

from cli.channel_store import ChannelDirectoryStore
from cli.storage import FileBroadcast, JsonFileStorage, LocalBroadcast, MemoryStorage
from common.constants import DIRECTORY_STORAGE_KEY
from common.types import DirectoryRecord, SubLocation


def make_record(subject, main, *subs):
    return DirectoryRecord(
        subject=subject,
        main_location=main,
        sub_locations=[SubLocation(name=name, location=location) for name, location in subs],
    )


def make_store(shared=None, broadcast=None):
    return ChannelDirectoryStore(MemoryStorage(shared), broadcast or LocalBroadcast())


class TestDirectoryOperations:
    def test_set_channels_replaces_previous_contents(self):
        store = make_store()
        store.set_channels([make_record("A", 1), make_record("B", 2)])
        store.set_channels([make_record("C", 3)])

        assert store.get_all_subjects() == ["C"]
        assert not store.has_subject("A")

    def test_ids_are_normalized_on_write(self):
        store = make_store()
        store.add_channel(make_record("Math", 100, ("Math-Theory", 101)))

        assert store.get_main_channel_id("Math") == -100
        assert store.get_channel_id("Math", "Theory") == -101

    def test_lookup_misses_return_none(self):
        store = make_store()
        store.add_channel(make_record("Math", -100, ("Math-Theory", -101)))

        assert store.get_channel_id("Physics", "Theory") is None
        assert store.get_channel_id("Math", "Practical") is None
        assert store.get_main_channel_id("Physics") is None

    def test_category_lookup_matches_by_substring(self):
        store = make_store()
        store.add_channel(make_record("S", -1, ("Theory Notes", -7)))

        assert store.get_channel_id("S", "Theory") == -7

    def test_first_matching_sub_location_wins(self):
        store = make_store()
        store.add_channel(make_record("S", -1, ("Theory Notes", -7), ("Theory Extra", -8)))

        assert store.get_channel_id("S", "Theory") == -7

    def test_add_channel_upserts(self):
        store = make_store()
        store.add_channel(make_record("Math", -100, ("Math-Theory", -101)))
        store.add_channel(make_record("Math", -100, ("Math-Practical", -102)))

        assert store.get_channel_id("Math", "Theory") is None
        assert store.get_channel_id("Math", "Practical") == -102

    def test_clear_store_removes_persisted_copy(self):
        shared = {}
        store = make_store(shared)
        store.add_channel(make_record("Math", -100))

        store.clear_store()

        assert store.get_all_subjects() == []
        assert DIRECTORY_STORAGE_KEY not in shared


class TestPersistence:
    def test_records_survive_a_new_store(self):
        shared = {}
        make_store(shared).set_channels([make_record("Math", -100, ("Math-Theory", -101))])

        reloaded = make_store(shared)
        assert reloaded.get_channel_id("Math", "Theory") == -101

    def test_positive_ids_in_storage_are_normalized_on_load(self):
        shared = {DIRECTORY_STORAGE_KEY: json.dumps([
            {"subject": "Math", "mainChannelId": 100, "subChannels": [{"name": "Math-Theory", "id": 101}]}
        ])}
        store = make_store(shared)

        assert store.get_main_channel_id("Math") == -100
        assert store.get_channel_id("Math", "Theory") == -101

    def test_corrupt_storage_leaves_store_empty(self):
        shared = {DIRECTORY_STORAGE_KEY: "{not json"}
        store = make_store(shared)

        assert store.get_all_subjects() == []

    def test_malformed_entry_resets_whole_store(self):
        shared = {DIRECTORY_STORAGE_KEY: json.dumps([
            {"subject": "Math", "mainChannelId": -100},
            {"mainChannelId": -200},
        ])}
        store = make_store(shared)

        assert store.get_all_subjects() == []

    def test_json_file_storage(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "channels.json")
        store = ChannelDirectoryStore(storage, LocalBroadcast())
        store.add_channel(make_record("Math", -100))

        other = ChannelDirectoryStore(JsonFileStorage(tmp_path / "channels.json"), LocalBroadcast())
        assert other.has_subject("Math")


class TestCrossContextSync:
    def test_other_store_reloads_and_notifies(self):
        shared = {}
        hub = LocalBroadcast()
        first = make_store(shared, hub)
        second = make_store(shared, hub)

        notified = []
        second.on_change(lambda: notified.append(True))

        first.set_channels([make_record("X", -5, ("X-Theory", -6))])

        assert second.get_all_subjects() == ["X"]
        assert second.get_channel_id("X", "Theory") == -6
        assert notified == [True]

    def test_writer_does_not_reload_its_own_change(self):
        hub = LocalBroadcast()
        store = make_store({}, hub)
        notified = []
        store.on_change(lambda: notified.append(True))

        store.add_channel(make_record("X", -5))

        # One notification from the write itself, none from the broadcast echo
        assert notified == [True]

    def test_different_storage_keys_are_independent(self):
        shared = {}
        hub = LocalBroadcast()
        first = ChannelDirectoryStore(MemoryStorage(shared), hub, storage_key="a")
        second = ChannelDirectoryStore(MemoryStorage(shared), hub, storage_key="b")

        first.add_channel(make_record("X", -5))

        assert second.get_all_subjects() == []

    def test_clear_propagates(self):
        shared = {}
        hub = LocalBroadcast()
        first = make_store(shared, hub)
        second = make_store(shared, hub)
        first.add_channel(make_record("X", -5))

        second.clear_store()

        assert first.get_all_subjects() == []

    def test_file_broadcast_between_processes(self, tmp_path):
        storage_path = tmp_path / "channels.json"
        marker_path = tmp_path / "channels.changed"

        writer = ChannelDirectoryStore(JsonFileStorage(storage_path), FileBroadcast(marker_path))
        reader_broadcast = FileBroadcast(marker_path)
        reader = ChannelDirectoryStore(JsonFileStorage(storage_path), reader_broadcast)

        writer.add_channel(make_record("Math", -100))
        assert reader.get_all_subjects() == []

        assert reader_broadcast.poll() is True
        assert reader.get_all_subjects() == ["Math"]
        assert reader_broadcast.poll() is False
