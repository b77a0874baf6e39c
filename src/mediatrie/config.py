"""Load mediatrie configuration from a TOML file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mediatrie.catalog import CatalogError
from mediatrie.index import DEFAULT_LIBRARY_NAME

DEFAULT_CONFIG_PATH = Path("/etc/mediatrie.toml")


@dataclass(frozen=True)
class TrackConfig:
    """A preconfigured track descriptor."""

    id: str
    title: str
    uri: str


@dataclass(frozen=True)
class FolderConfig:
    """A configured folder and the tracks it contains."""

    route: str
    tracks: tuple[TrackConfig, ...] = ()


@dataclass
class Config:
    """Mediatrie configuration."""

    library_name: str = DEFAULT_LIBRARY_NAME
    page_size: int = 20
    folders: tuple[FolderConfig, ...] = field(default_factory=tuple)


def _parse_track(route: str, data: dict[str, Any]) -> TrackConfig:
    media_id = data.get("id")
    uri = data.get("uri")
    if not media_id or not uri:
        raise CatalogError(f"Track in folder '{route}' needs both 'id' and 'uri'.")
    return TrackConfig(id=media_id, title=data.get("title", media_id), uri=uri)


def _parse_folder(data: dict[str, Any]) -> FolderConfig:
    route = data.get("route")
    if not route:
        raise CatalogError("Every [[folders]] entry needs a non-empty 'route'.")
    tracks = tuple(_parse_track(route, track) for track in data.get("tracks", []))
    return FolderConfig(route=route, tracks=tracks)


def load_config(path: Path | str) -> Config:
    """Load configuration from a TOML file.

    Returns a :class:`Config` with defaults for any missing keys.
    If the file does not exist, returns a default :class:`Config`.
    Raises :class:`~mediatrie.catalog.CatalogError` for malformed folders.
    """
    path = Path(path)
    if not path.is_file():
        return Config()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    page_size = data.get("page-size", Config.page_size)
    if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size <= 0:
        raise ValueError(f"page-size must be a positive integer, got {page_size!r}.")

    return Config(
        library_name=data.get("library-name", Config.library_name),
        page_size=page_size,
        folders=tuple(_parse_folder(folder) for folder in data.get("folders", [])),
    )
