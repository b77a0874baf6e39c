"""Simple interactive CLI for browsing and playing the media library."""

from __future__ import annotations

import argparse
import logging

from mediatrie.audio import AudioPlayer
from mediatrie.catalog import DEFAULT_SOURCES, sources_from_config
from mediatrie.config import DEFAULT_CONFIG_PATH, Config, load_config
from mediatrie.index import FolderIndex
from mediatrie.models import MediaItem
from mediatrie.session import InvalidTransitionError, MediaLibrarySession

COMMANDS = "root, ls [path] [page], get <id>, play <id>, pause, resume, next, prev, status, quit"


def _format_item(item: MediaItem) -> str:
    kind = "dir " if item.browsable else "track"
    line = f"  [{kind}] {item.id:<16} {item.title}"
    if item.source_locator:
        line += f"  <{item.source_locator}>"
    return line


def _print_status(session: MediaLibrarySession) -> None:
    track = session.current_track
    print(
        f"  [{session.state.name}]"
        f"  track: {track.title if track else '–'}"
        f"  queue: {len(session.queue)}"
    )


def _list(session: MediaLibrarySession, arg: str | None, page_size: int) -> None:
    path, page = "", 0
    if arg:
        parts = arg.rsplit(maxsplit=1)
        if len(parts) == 2 and parts[1].isdigit():
            path, page = parts[0], int(parts[1])
        else:
            path = arg
    result = session.get_children(path, page, page_size)
    if not result.items:
        print("  (empty)")
    for item in result.items:
        print(_format_item(item))


def build_index(cfg: Config, *, library_name: str | None = None) -> FolderIndex:
    """Build the folder index described by *cfg*."""
    sources = sources_from_config(cfg.folders) if cfg.folders else DEFAULT_SOURCES
    return FolderIndex.build(
        sources,
        library_name=library_name if library_name is not None else cfg.library_name,
    )


def build_session(
    cfg: Config,
    *,
    library_name: str | None = None,
    audio: AudioPlayer | None = None,
) -> MediaLibrarySession:
    """Build the folder index described by *cfg* and wrap it in a session."""
    return MediaLibrarySession(build_index(cfg, library_name=library_name), audio=audio)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="mediatrie – browse and play a folder-based media library",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Path to TOML config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--library-name",
        default=None,
        help="Display name of the library root",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Number of items listed per page",
    )
    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Browse only, without opening an audio output",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Catalog and TOML errors are both ValueErrors
    try:
        cfg = load_config(args.config)
        index = build_index(cfg, library_name=args.library_name)
    except ValueError as exc:
        parser.error(str(exc))

    # CLI flags override config values (only when explicitly provided)
    page_size = args.page_size if args.page_size is not None else cfg.page_size
    if page_size <= 0:
        parser.error("--page-size must be positive")

    audio = None if args.no_audio else AudioPlayer()
    session = MediaLibrarySession(index, audio=audio)

    print(f"mediatrie – {session.index.root_item.title}")
    print(f"Available commands: {COMMANDS}")
    print()

    try:
        while True:
            try:
                raw = input("mediatrie> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break

            if audio is not None:
                audio.check_events()

            if not raw:
                continue

            parts = raw.split(maxsplit=1)
            cmd = parts[0].lower()
            arg = parts[1] if len(parts) > 1 else None

            try:
                if cmd == "quit":
                    break
                elif cmd == "root":
                    print(_format_item(session.get_library_root().item))
                elif cmd == "ls":
                    _list(session, arg, page_size)
                elif cmd == "get":
                    result = session.get_item(arg or "")
                    if result.ok:
                        print(_format_item(result.item))
                    else:
                        print(f"  Not found: {arg}")
                elif cmd == "play":
                    session.play(arg)
                    _print_status(session)
                elif cmd == "resume":
                    session.play()
                    _print_status(session)
                elif cmd == "pause":
                    session.pause()
                    _print_status(session)
                elif cmd == "next":
                    session.next_track()
                    _print_status(session)
                elif cmd == "prev":
                    session.previous_track()
                    _print_status(session)
                elif cmd == "status":
                    _print_status(session)
                else:
                    print(f"  Unknown command: {cmd}")
            except (InvalidTransitionError, ValueError) as exc:
                print(f"  Error: {exc}")
    finally:
        session.release()


if __name__ == "__main__":
    main()
