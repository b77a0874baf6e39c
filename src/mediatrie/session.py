"""Media library session: browse and playback on top of a folder index.

The session is what a remote controller talks to.  It answers browse
requests from the :class:`~mediatrie.index.FolderIndex` and drives an
optional :class:`~mediatrie.audio.AudioPlayer` with the tracks the
controller queues.

Browse operations
-----------------
- get_library_root()                    → root folder item
- get_item(media_id)                    → item, or ERROR_BAD_VALUE if unknown
- get_children(parent_id, page, size)   → one page of items (empty if unknown)

Playback states
---------------
- playing : a queued track is being played.
- paused  : playback is paused (initial state).

Allowed transitions
-------------------
From *paused*:
    play(media_id)       → playing   (queues the single track and plays it)
    play()               → playing   (resumes; requires a loaded queue)
    next_track()         → playing   (requires a loaded queue)
    previous_track()     → playing   (requires a loaded queue)

From *playing*:
    pause()              → paused
    next_track()         → playing   (wraps around at the end of the queue)
    previous_track()     → playing   (wraps around at the start)
    play(media_id)       → playing   (replaces the queue)

From any state:
    add_media_items(ids) → paused    (replaces the queue with resolved tracks)
    release()            → paused    (stops and detaches the audio player)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import TYPE_CHECKING, Iterable

from mediatrie.models import MediaItem

if TYPE_CHECKING:
    from mediatrie.audio import AudioPlayer
    from mediatrie.index import FolderIndex

logger = logging.getLogger(__name__)


class State(Enum):
    PLAYING = auto()
    PAUSED = auto()


class ResultCode(IntEnum):
    """Outcome codes reported to the controller."""

    OK = 0
    ERROR_BAD_VALUE = -3


class InvalidTransitionError(Exception):
    """Raised when a transition is not allowed from the current state."""


@dataclass(frozen=True)
class LibraryResult:
    """Reply to a browse request: one item, a list of items, or an error."""

    code: ResultCode = ResultCode.OK
    item: MediaItem | None = None
    items: tuple[MediaItem, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.code is ResultCode.OK

    @classmethod
    def of_item(cls, item: MediaItem) -> LibraryResult:
        return cls(item=item)

    @classmethod
    def of_items(cls, items: Iterable[MediaItem]) -> LibraryResult:
        return cls(items=tuple(items))

    @classmethod
    def of_error(cls, code: ResultCode = ResultCode.ERROR_BAD_VALUE) -> LibraryResult:
        return cls(code=code)


class MediaLibrarySession:
    """Browse and playback front-end for one folder index."""

    def __init__(self, index: FolderIndex, audio: AudioPlayer | None = None) -> None:
        self._index = index
        self._audio = audio
        self._state: State = State.PAUSED
        self._queue: list[MediaItem] = []
        self._queue_index: int = 0

        if self._audio is not None:
            self._audio.set_end_callback(self.on_track_end)

    # -- public properties ---------------------------------------------------

    @property
    def index(self) -> FolderIndex:
        return self._index

    @property
    def state(self) -> State:
        return self._state

    @property
    def queue(self) -> tuple[MediaItem, ...]:
        return tuple(self._queue)

    @property
    def current_track(self) -> MediaItem | None:
        if not self._queue:
            return None
        return self._queue[self._queue_index]

    # -- browsing ------------------------------------------------------------

    def get_library_root(self) -> LibraryResult:
        return LibraryResult.of_item(self._index.root_item)

    def get_item(self, media_id: str) -> LibraryResult:
        item = self._index.resolve_item(media_id)
        if item is None:
            logger.warning("get_item: no item found for id '%s'", media_id)
            return LibraryResult.of_error()
        return LibraryResult.of_item(item)

    def get_children(self, parent_id: str, page: int, page_size: int) -> LibraryResult:
        """Return one page of children; unknown folders give an empty page."""
        logger.debug(
            "get_children: parent_id=%s, page=%d, page_size=%d",
            parent_id,
            page,
            page_size,
        )
        try:
            items = self._index.list_children(parent_id, page, page_size)
        except ValueError as exc:
            logger.warning("get_children: %s", exc)
            return LibraryResult.of_error()
        return LibraryResult.of_items(items)

    def add_media_items(self, media_ids: Iterable[str]) -> list[MediaItem]:
        """Resolve *media_ids* and load the playable ones as the new queue.

        Ids that do not resolve are dropped.  Returns every resolved item,
        folders included, in request order.
        """
        resolved: list[MediaItem] = []
        for media_id in media_ids:
            item = self._index.resolve_item(media_id)
            if item is None:
                logger.warning("add_media_items: failed to resolve id '%s'", media_id)
                continue
            logger.debug(
                "add_media_items: resolved '%s' -> %s", media_id, item.source_locator
            )
            resolved.append(item)

        self._stop_audio()
        self._queue = [item for item in resolved if item.playable]
        self._queue_index = 0
        self._state = State.PAUSED
        return resolved

    # -- transitions ---------------------------------------------------------

    def play(self, media_id: str | None = None) -> None:
        """Start or resume playback.

        Parameters
        ----------
        media_id:
            Id of a track to play right away; it replaces the queue.  If
            ``None``, resumes the current queue.
        """
        if media_id is not None:
            item = self._index.resolve_item(media_id)
            if item is None:
                raise ValueError(f"No item found for id '{media_id}'.")
            if not item.playable:
                raise ValueError(f"Item '{media_id}' is not playable.")
            self._queue = [item]
            self._queue_index = 0
            self._state = State.PLAYING
            self._play_current()
            return

        if not self._queue:
            raise InvalidTransitionError(
                "Cannot resume without a queue. Use play(media_id) first."
            )
        if self._state is State.PLAYING:
            return
        self._state = State.PLAYING
        if self._audio is None:
            return
        if self._audio.is_loaded:
            self._audio.unpause()
        else:
            self._play_current()

    def pause(self) -> None:
        """Pause playback.  Only allowed from *playing*."""
        if self._state is not State.PLAYING:
            raise InvalidTransitionError(
                f"pause() is only allowed in PLAYING state, "
                f"current state is {self._state.name}."
            )
        if self._audio is not None:
            self._audio.pause()
        self._state = State.PAUSED

    def next_track(self) -> None:
        """Advance to the next queued track, wrapping around at the end."""
        if not self._queue:
            raise InvalidTransitionError("next_track() requires a loaded queue.")
        self._queue_index = (self._queue_index + 1) % len(self._queue)
        self._state = State.PLAYING
        self._play_current()

    def previous_track(self) -> None:
        """Go back to the previous queued track, wrapping around at the start."""
        if not self._queue:
            raise InvalidTransitionError("previous_track() requires a loaded queue.")
        self._queue_index = (self._queue_index - 1) % len(self._queue)
        self._state = State.PLAYING
        self._play_current()

    def on_track_end(self) -> None:
        """Handle end-of-track event from the audio backend.

        Auto-advances to the next track.  After the last queued track the
        session pauses and rewinds, so resuming starts the queue over.
        """
        if not self._queue:
            return
        if self._queue_index >= len(self._queue) - 1:
            self._queue_index = 0
            self._state = State.PAUSED
        else:
            self._queue_index += 1
            self._play_current()

    def release(self) -> None:
        """Stop playback and detach the audio player."""
        self._stop_audio()
        if self._audio is not None:
            self._audio.set_end_callback(None)
            self._audio = None
        self._state = State.PAUSED

    # -- internal helpers ----------------------------------------------------

    def _play_current(self) -> None:
        track = self.current_track
        if self._audio is not None and track is not None:
            self._audio.play(track.source_locator)  # type: ignore[arg-type]

    def _stop_audio(self) -> None:
        if self._audio is not None:
            self._audio.stop()
