"""Audio playback backend using sounddevice and soundfile.

Plays the source locator of a resolved track.  Local paths and ``file://``
URIs are streamed straight from disk; ``http(s)://`` locators are downloaded
into memory with requests before decoding.
"""

from __future__ import annotations

import io
import logging
import threading
from typing import BinaryIO, Callable
from urllib.parse import unquote, urlparse

import requests
import sounddevice as sd
import soundfile as sf

logger = logging.getLogger(__name__)

# Number of frames to read per chunk during streaming playback.
_BLOCK_SIZE = 2048

_REQUEST_TIMEOUT = 30


def open_source(locator: str) -> str | BinaryIO:
    """Return something :class:`soundfile.SoundFile` can open for *locator*."""
    parsed = urlparse(locator)
    if parsed.scheme in ("http", "https"):
        response = requests.get(locator, timeout=_REQUEST_TIMEOUT)
        response.raise_for_status()
        return io.BytesIO(response.content)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    return locator


class AudioPlayer:
    """Streams tracks through the default output device via sounddevice."""

    def __init__(self) -> None:
        self._end_callback: Callable[[], None] | None = None
        self._paused = threading.Event()
        self._paused.set()  # starts in "not paused" state
        self._stop_event = threading.Event()
        self._track_ended = threading.Event()
        self._playback_thread: threading.Thread | None = None

    @property
    def is_loaded(self) -> bool:
        """Whether a track is streaming, possibly paused."""
        return self._playback_thread is not None and self._playback_thread.is_alive()

    # -- playback controls ---------------------------------------------------

    def play(self, locator: str) -> None:
        """Load and play the track at *locator* from the beginning."""
        self.stop()
        self._stop_event.clear()
        self._track_ended.clear()
        self._paused.set()
        self._playback_thread = threading.Thread(
            target=self._stream,
            args=(locator,),
            daemon=True,
        )
        self._playback_thread.start()

    def pause(self) -> None:
        """Pause the currently playing track."""
        self._paused.clear()

    def unpause(self) -> None:
        """Resume a paused track."""
        self._paused.set()

    def stop(self) -> None:
        """Stop playback entirely."""
        self._stop_event.set()
        self._paused.set()  # unblock the thread if it is waiting on pause
        if self._playback_thread is not None:
            self._playback_thread.join(timeout=2.0)
            self._playback_thread = None

    # -- end-of-track callback -----------------------------------------------

    def set_end_callback(self, callback: Callable[[], None] | None) -> None:
        """Register a callback invoked when a track finishes playing."""
        self._end_callback = callback

    def check_events(self) -> None:
        """Fire the end-of-track callback if the last track finished.

        Must be called periodically (e.g. from the main loop).
        """
        if self._track_ended.is_set():
            self._track_ended.clear()
            if self._end_callback is not None:
                self._end_callback()

    # -- internal ------------------------------------------------------------

    def _stream(self, locator: str) -> None:
        """Worker that streams *locator* through an output stream."""
        try:
            source = open_source(locator)
            with sf.SoundFile(source) as f:
                stream = sd.OutputStream(
                    samplerate=f.samplerate,
                    channels=f.channels,
                    dtype="float32",
                )
                stream.start()
                try:
                    while True:
                        self._paused.wait()
                        if self._stop_event.is_set():
                            return
                        data = f.read(_BLOCK_SIZE, dtype="float32")
                        if len(data) == 0:
                            break
                        stream.write(data)
                finally:
                    stream.stop()
                    stream.close()
        except Exception:
            logger.exception("Playback of %s failed", locator)
            return

        # Only signal track-end when playback finished naturally.
        if not self._stop_event.is_set():
            self._track_ended.set()
