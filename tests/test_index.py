"""Tests for the folder index."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from mediatrie.catalog import DEFAULT_SOURCES, CatalogError, CatalogSource
from mediatrie.index import DEFAULT_LIBRARY_NAME, FolderIndex
from mediatrie.models import folder_item, track_item


def _tracks(prefix, count):
    def produce():
        return [
            track_item(f"{prefix}_{n}", f"{prefix} {n}", f"/media/{prefix}/{n}.mp3")
            for n in range(1, count + 1)
        ]

    return produce


@pytest.fixture()
def index():
    return FolderIndex.build(DEFAULT_SOURCES)


@pytest.fixture()
def nested_index():
    """music/{jazz,rock} with tracks at every level, plus an empty folder."""
    sources = [
        CatalogSource(
            "music",
            lambda: [folder_item("music/jazz"), folder_item("music/rock"), *_tracks("m", 2)()],
        ),
        CatalogSource("music/jazz", _tracks("jazz", 3)),
        CatalogSource("music/rock", _tracks("rock", 12)),
        CatalogSource("playlists", list),
    ]
    return FolderIndex.build(sources, library_name="Car Audio")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestBuild:
    def test_root_item(self, index):
        root = index.root_item
        assert root.id == "root"
        assert root.title == DEFAULT_LIBRARY_NAME
        assert root.browsable and not root.playable

    def test_library_name(self, nested_index):
        assert nested_index.root_item.title == "Car Audio"

    def test_top_level_folders_in_order(self, index):
        assert list(index.root.children) == ["music", "playlists"]

    def test_folder_item_from_route(self, index):
        item = index.root.children["playlists"].item
        assert item.id == "playlists"
        assert item.title == "Playlists"
        assert item.browsable and not item.playable

    def test_producers_not_called_at_build(self):
        producer = MagicMock(return_value=[])
        FolderIndex.build([CatalogSource("music", producer)])
        producer.assert_not_called()

    def test_children_mapping_is_read_only(self, index):
        with pytest.raises(TypeError):
            index.root.children["extra"] = index.root  # type: ignore[index]

    def test_rejects_duplicate_routes(self):
        with pytest.raises(CatalogError):
            FolderIndex.build([CatalogSource("a", list), CatalogSource("a", list)])

    def test_root_without_source_lists_top_folders(self, nested_index):
        ids = [item.id for item in nested_index.list_children("", 0, 10)]
        assert ids == ["music", "playlists"]

    def test_nested_routes_become_subfolders(self, nested_index):
        music = nested_index.resolve_path("music")
        assert list(music.children) == ["jazz", "rock"]
        assert music.children["jazz"].item.id == "music/jazz"
        assert music.children["jazz"].item.title == "Jazz"

    def test_nested_route_before_parent(self):
        idx = FolderIndex.build(
            [CatalogSource("a/b", _tracks("b", 1)), CatalogSource("a", _tracks("a", 1))]
        )
        node = idx.resolve_path("a")
        assert list(node.children) == ["b"]
        assert [i.id for i in node.load_children()] == ["a_1"]

    def test_missing_intermediate_folder_lists_subfolders(self):
        idx = FolderIndex.build([CatalogSource("a/b", _tracks("b", 1))])
        assert [i.id for i in idx.list_children("a", 0, 10)] == ["a/b"]
        assert [i.id for i in idx.list_children("a/b", 0, 10)] == ["b_1"]


# ---------------------------------------------------------------------------
# resolve_path
# ---------------------------------------------------------------------------

class TestResolvePath:
    @pytest.mark.parametrize("path", ["", "/", "root", None, "/root", "root/"])
    def test_root_aliases(self, index, path):
        assert index.resolve_path(path) is index.root

    @pytest.mark.parametrize("route", ["music", "playlists"])
    def test_registered_routes(self, index, route):
        assert index.resolve_path(route).segment == route

    def test_leading_separator(self, index):
        assert index.resolve_path("/music") is index.resolve_path("music")

    def test_root_prefix(self, index):
        assert index.resolve_path("root/music") is index.resolve_path("music")

    def test_nested_path(self, nested_index):
        assert nested_index.resolve_path("music/jazz").segment == "jazz"

    def test_empty_segments_ignored(self, nested_index):
        assert nested_index.resolve_path("music//jazz/").segment == "jazz"

    @pytest.mark.parametrize("path", ["bogus", "Music", "mus", "music/nope", "track_1"])
    def test_unregistered_path(self, index, path):
        assert index.resolve_path(path) is None

    def test_resolve_segments(self, nested_index):
        node = nested_index.resolve_segments(["music", "", "rock"])
        assert node.segment == "rock"
        assert nested_index.resolve_segments([]) is nested_index.root
        assert nested_index.resolve_segments(["rock"]) is None


# ---------------------------------------------------------------------------
# list_children
# ---------------------------------------------------------------------------

class TestListChildren:
    def test_music(self, index):
        items = index.list_children("music", 0, 10)
        assert [i.id for i in items] == ["track_1", "track_2"]

    def test_empty_folder(self, index):
        assert index.list_children("playlists", 0, 10) == []

    def test_missing_folder_is_empty(self, index):
        assert index.list_children("bogus", 0, 10) == []

    def test_root_children(self, index):
        assert [i.id for i in index.list_children("root", 0, 10)] == ["music", "playlists"]

    def test_page_slices(self, nested_index):
        page = nested_index.list_children("music/rock", 1, 5)
        assert [i.id for i in page] == [f"rock_{n}" for n in range(6, 11)]

    def test_last_page_is_partial(self, nested_index):
        page = nested_index.list_children("music/rock", 2, 5)
        assert [i.id for i in page] == ["rock_11", "rock_12"]

    def test_page_past_end_is_empty(self, nested_index):
        assert nested_index.list_children("music/rock", 3, 4) == []
        assert nested_index.list_children("music/rock", 100, 1) == []

    @pytest.mark.parametrize("page_size", [1, 2, 3, 5, 12, 13, 50])
    def test_pages_reconstruct_full_listing(self, nested_index, page_size):
        full = nested_index.load_children_for_path("music/rock")
        collected = []
        page = 0
        while True:
            chunk = nested_index.list_children("music/rock", page, page_size)
            if not chunk:
                break
            collected.extend(chunk)
            page += 1
        assert collected == full
        assert page * page_size >= len(full)

    def test_producer_called_per_request(self):
        producer = MagicMock(return_value=[track_item("a", "A", "/a.mp3")])
        idx = FolderIndex.build([CatalogSource("music", producer)])
        idx.list_children("music", 0, 10)
        idx.list_children("music", 0, 10)
        assert producer.call_count == 2

    def test_negative_page_rejected(self, index):
        with pytest.raises(ValueError):
            index.list_children("music", -1, 10)

    @pytest.mark.parametrize("page_size", [0, -3])
    def test_non_positive_page_size_rejected(self, index, page_size):
        with pytest.raises(ValueError):
            index.list_children("music", 0, page_size)

    def test_load_children_for_missing_path(self, index):
        assert index.load_children_for_path("nope") == []


# ---------------------------------------------------------------------------
# resolve_item
# ---------------------------------------------------------------------------

class TestResolveItem:
    def test_track(self, index):
        item = index.resolve_item("track_1")
        assert item.title == "Android Spot (15 sec)"
        assert item.playable

    def test_unknown(self, index):
        assert index.resolve_item("bogus") is None

    @pytest.mark.parametrize("media_id", ["", None])
    def test_empty_id(self, index, media_id):
        assert index.resolve_item(media_id) is None

    def test_root_sentinel(self, index):
        assert index.resolve_item("root") == index.root_item

    def test_folder_by_route(self, index):
        assert index.resolve_item("music") == index.resolve_path("music").item

    def test_nested_folder_by_full_route(self, nested_index):
        jazz = nested_index.resolve_path("music/jazz").item
        assert nested_index.resolve_item("music/jazz") == jazz

    def test_track_named_like_nested_folder_segment(self):
        idx = FolderIndex.build(
            [
                CatalogSource("music/jazz", list),
                CatalogSource("podcasts/jazz", list),
                CatalogSource("singles", lambda: [track_item("jazz", "Jazz", "/jazz.mp3")]),
            ]
        )
        item = idx.resolve_item("jazz")
        assert item.id == "jazz"
        assert item.playable
        assert idx.resolve_item("podcasts/jazz").id == "podcasts/jazz"

    def test_deep_track(self, nested_index):
        assert nested_index.resolve_item("rock_12").source_locator == "/media/rock/12.mp3"

    def test_round_trip_for_every_produced_item(self, nested_index):
        for node in nested_index.walk():
            for item in node.load_children():
                assert nested_index.resolve_item(item.id) == item

    def test_find_item_by_id_searches_produced_items(self, index):
        assert index.find_item_by_id("playlists") == folder_item("playlists")
        assert index.find_item_by_id("") is None

    def test_stops_at_first_match(self):
        later = MagicMock(return_value=[])
        idx = FolderIndex.build(
            [CatalogSource("a", _tracks("x", 1)), CatalogSource("b", later)]
        )
        assert idx.resolve_item("x_1").id == "x_1"
        later.assert_not_called()


# ---------------------------------------------------------------------------
# Whole-tree properties
# ---------------------------------------------------------------------------

class TestTreeProperties:
    def test_walk_order(self, nested_index):
        segments = [node.segment for node in nested_index.walk()]
        assert segments == ["root", "music", "jazz", "rock", "playlists"]

    def test_every_item_is_folder_or_track(self, nested_index):
        for node in nested_index.walk():
            for item in [node.item, *node.load_children()]:
                assert item.browsable != item.playable
                assert bool(item.source_locator) == item.playable

    def test_concurrent_reads(self, nested_index):
        errors = []

        def worker():
            try:
                for _ in range(50):
                    assert nested_index.resolve_item("rock_7").id == "rock_7"
                    assert len(nested_index.list_children("music/jazz", 0, 10)) == 3
            except AssertionError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
