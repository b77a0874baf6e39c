"""Media items exposed by the catalog.

An item is either a *folder* (browsable, never playable) or a *track*
(playable, never browsable).  Only tracks carry a source locator, e.g. the
URI handed to the playback engine.
"""

from __future__ import annotations

from dataclasses import dataclass

ROUTE_SEPARATOR = "/"
ROOT_ID = "root"


@dataclass(frozen=True)
class MediaItem:
    """Immutable description of a folder or a track."""

    id: str
    title: str
    browsable: bool
    playable: bool
    source_locator: str | None = None

    def __post_init__(self) -> None:
        if self.browsable == self.playable:
            raise ValueError(
                f"Item '{self.id}' must be either browsable or playable."
            )
        if self.playable and not self.source_locator:
            raise ValueError(f"Track '{self.id}' has no source locator.")
        if self.browsable and self.source_locator is not None:
            raise ValueError(f"Folder '{self.id}' cannot have a source locator.")


def display_title(route: str) -> str:
    """Capitalize the last segment of *route*: ``"music/jazz"`` → ``"Jazz"``."""
    name = route.rsplit(ROUTE_SEPARATOR, 1)[-1]
    return name[:1].upper() + name[1:]


def folder_item(route: str, title: str | None = None) -> MediaItem:
    """Return the browsable item representing the folder at *route*."""
    return MediaItem(
        id=route,
        title=title if title is not None else display_title(route),
        browsable=True,
        playable=False,
    )


def track_item(media_id: str, title: str, uri: str) -> MediaItem:
    """Return a playable item pointing at *uri*."""
    return MediaItem(
        id=media_id,
        title=title,
        browsable=False,
        playable=True,
        source_locator=uri,
    )
