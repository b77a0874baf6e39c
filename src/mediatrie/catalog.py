"""Catalog sources: the fixed registration table of library folders.

Each :class:`CatalogSource` pairs a route with a producer that lists the
folder's items when invoked.  The empty route is reserved for the root::

    ""           -> music, playlists
    "music"      -> track_1, track_2
    "playlists"  -> (empty)

Producers take no arguments, never return ``None`` and must be safe to call
from several threads at once.  They are only invoked when a folder's children
are requested, never while the catalog is registered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence

from mediatrie.models import (
    ROOT_ID,
    ROUTE_SEPARATOR,
    MediaItem,
    folder_item,
    track_item,
)

if TYPE_CHECKING:
    from mediatrie.config import FolderConfig

ROOT_ROUTE = ""

Producer = Callable[[], Sequence[MediaItem]]


class CatalogError(ValueError):
    """Raised when a catalog definition is inconsistent."""


@dataclass(frozen=True)
class CatalogSource:
    """A folder route together with the producer of its children."""

    route: str
    load_children: Producer

    @property
    def is_root(self) -> bool:
        return self.route == ROOT_ROUTE


def _no_children() -> list[MediaItem]:
    return []


def _music_tracks() -> list[MediaItem]:
    return [
        track_item(
            "track_1",
            "Android Spot (15 sec)",
            "https://storage.googleapis.com/exoplayer-test-media-1/mp3/android_spot_15sec.mp3",
        ),
        track_item(
            "track_2",
            "Ice Cream (15 sec)",
            "https://storage.googleapis.com/exoplayer-test-media-1/mp3/ice_cream_15sec.mp3",
        ),
    ]


def _list_folders(routes: Sequence[str]) -> Producer:
    """Return a producer listing the folder items for *routes*."""
    routes = tuple(routes)

    def produce() -> list[MediaItem]:
        return [folder_item(route) for route in routes]

    return produce


DEFAULT_SOURCES: tuple[CatalogSource, ...] = (
    CatalogSource(ROOT_ROUTE, _list_folders(["music", "playlists"])),
    CatalogSource("music", _music_tracks),
    CatalogSource("playlists", _no_children),
)


def validate_sources(sources: Sequence[CatalogSource]) -> None:
    """Check that routes are unique and well formed."""
    seen: set[str] = set()
    for source in sources:
        route = source.route
        if route in seen:
            raise CatalogError(f"Duplicate catalog route '{route}'.")
        seen.add(route)
        if source.is_root:
            continue
        segments = route.split(ROUTE_SEPARATOR)
        if any(not segment for segment in segments):
            raise CatalogError(f"Malformed catalog route '{route}'.")
        if segments[0] == ROOT_ID:
            raise CatalogError(f"Route '{route}' shadows the root folder.")


def sources_from_config(folders: Sequence[FolderConfig]) -> tuple[CatalogSource, ...]:
    """Build a registration table from configured folders.

    Every folder lists its direct sub-folders first, then its tracks.  The
    root lists the top-level folders.  Tracks are turned into items once,
    here, so producers only copy a prepared list.
    """
    routes = [folder.route for folder in folders]
    if len(set(routes)) != len(routes):
        raise CatalogError("Duplicate folder routes in configuration.")

    # parent folders that are only implied by a nested route are listed too
    known: dict[str, None] = {}
    for route in routes:
        segments = route.split(ROUTE_SEPARATOR)
        for depth in range(1, len(segments) + 1):
            known.setdefault(ROUTE_SEPARATOR.join(segments[:depth]))

    def subfolders_of(parent: str) -> list[str]:
        return [
            route
            for route in known
            if route.rpartition(ROUTE_SEPARATOR)[0] == parent
        ]

    sources = [CatalogSource(ROOT_ROUTE, _list_folders(subfolders_of(ROOT_ROUTE)))]
    for folder in folders:
        folders_producer = _list_folders(subfolders_of(folder.route))
        tracks = tuple(
            track_item(track.id, track.title, track.uri) for track in folder.tracks
        )

        def produce(
            folders_producer: Producer = folders_producer,
            tracks: tuple[MediaItem, ...] = tracks,
        ) -> list[MediaItem]:
            return [*folders_producer(), *tracks]

        sources.append(CatalogSource(folder.route, produce))

    result = tuple(sources)
    validate_sources(result)
    return result
