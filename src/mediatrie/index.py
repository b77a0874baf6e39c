"""Folder index: an in-memory trie of library folders.

The tree is built once from the catalog's registration table and never
changes afterwards.  Only folders are nodes; tracks exist solely in the
lists returned by a node's producer, which is invoked fresh each time the
children of that folder are requested.

Paths use ``/`` as separator.  ``""``, ``"/"`` and ``"root"`` all name the
root folder, and a leading ``root`` segment is accepted in longer paths
(``"root/music"`` is the same folder as ``"music"``).

Lookups never raise for missing entries: absent folders resolve to ``None``
and list as empty.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence

from mediatrie.catalog import (
    DEFAULT_SOURCES,
    CatalogSource,
    Producer,
    validate_sources,
)
from mediatrie.models import ROOT_ID, ROUTE_SEPARATOR, MediaItem, folder_item

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_NAME = "TAAutomotive"


class FolderNode:
    """One folder of the trie.

    When no producer is given the node lists the items of its own
    sub-folders, which is what intermediate folders of nested routes do.
    """

    def __init__(
        self,
        segment: str,
        item: MediaItem,
        load_children: Producer | None = None,
    ) -> None:
        self._segment = segment
        self._item = item
        self._load_children = (
            load_children if load_children is not None else self._list_subfolders
        )
        self._children: dict[str, FolderNode] = {}

    @property
    def segment(self) -> str:
        return self._segment

    @property
    def item(self) -> MediaItem:
        """The browsable item shown for this folder inside its parent."""
        return self._item

    @property
    def children(self) -> Mapping[str, FolderNode]:
        return MappingProxyType(self._children)

    def get_child(self, segment: str) -> FolderNode | None:
        return self._children.get(segment)

    def load_children(self) -> list[MediaItem]:
        """Return this folder's items (sub-folders and tracks)."""
        return list(self._load_children())

    def _list_subfolders(self) -> list[MediaItem]:
        return [child.item for child in self._children.values()]

    def __repr__(self) -> str:
        return f"FolderNode({self._segment!r}, children={list(self._children)})"


class FolderIndex:
    """Resolves paths and item ids against an immutable folder trie."""

    def __init__(self, root: FolderNode) -> None:
        self._root = root

    @classmethod
    def build(
        cls,
        sources: Sequence[CatalogSource] = DEFAULT_SOURCES,
        *,
        library_name: str = DEFAULT_LIBRARY_NAME,
    ) -> FolderIndex:
        """Create the trie from a registration table.

        The root entry (empty route), if any, supplies the root's producer.
        Every other entry becomes a folder keyed by its route; routes with
        separators are nested below their parent folder.
        """
        validate_sources(sources)
        root_source = next((source for source in sources if source.is_root), None)
        root = FolderNode(
            ROOT_ID,
            folder_item(ROOT_ID, title=library_name),
            root_source.load_children if root_source is not None else None,
        )
        for source in sources:
            if not source.is_root:
                _insert(root, source)
        logger.debug(
            "Folder index built: %d folders under '%s'",
            sum(1 for _ in _walk(root)) - 1,
            library_name,
        )
        return cls(root)

    # -- queries -------------------------------------------------------------

    @property
    def root(self) -> FolderNode:
        return self._root

    @property
    def root_item(self) -> MediaItem:
        return self._root.item

    def resolve_path(self, path: str | None) -> FolderNode | None:
        """Return the folder at *path*, or ``None`` if there is none."""
        if not path:
            return self._root
        normalized = path[1:] if path.startswith(ROUTE_SEPARATOR) else path
        return self.resolve_segments(normalized.split(ROUTE_SEPARATOR))

    def resolve_segments(self, segments: Iterable[str]) -> FolderNode | None:
        """Walk *segments* from the root, ignoring empty ones."""
        remaining = [segment for segment in segments if segment]
        if remaining and remaining[0] == ROOT_ID:
            remaining = remaining[1:]
        current = self._root
        for segment in remaining:
            child = current.get_child(segment)
            if child is None:
                logger.debug("No folder '%s' below '%s'", segment, current.segment)
                return None
            current = child
        return current

    def load_children_for_path(self, path: str | None) -> list[MediaItem]:
        """Return every item of the folder at *path*, or ``[]`` if missing."""
        node = self.resolve_path(path)
        return node.load_children() if node is not None else []

    def list_children(
        self, parent_path: str | None, page: int, page_size: int
    ) -> list[MediaItem]:
        """Return one page of the items of the folder at *parent_path*.

        A missing folder lists exactly like an empty one.  Pages past the
        end are empty.  Raises ``ValueError`` for a negative *page* or a
        non-positive *page_size*.
        """
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}.")
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}.")

        node = self.resolve_path(parent_path)
        if node is None:
            logger.warning("No folder found for path '%s'", parent_path)
            return []
        items = node.load_children()
        start = page * page_size
        if start >= len(items):
            return []
        end = min(start + page_size, len(items))
        logger.debug(
            "Listing '%s': items %d-%d of %d", parent_path, start, end, len(items)
        )
        return items[start:end]

    def resolve_item(self, media_id: str | None) -> MediaItem | None:
        """Return the item with *media_id* anywhere in the library.

        The root is addressable through its id ``"root"``; an empty id
        resolves to nothing.  Folders are matched by item id, which is the
        full route (``"music/jazz"``), before produced items are searched.
        """
        if not media_id:
            return None
        if media_id == ROOT_ID:
            return self._root.item
        for node in self.walk():
            if node.item.id == media_id:
                return node.item
        item = self.find_item_by_id(media_id)
        if item is None:
            logger.debug("No item found for id '%s'", media_id)
        return item

    def find_item_by_id(self, media_id: str | None) -> MediaItem | None:
        """Search the items produced by every folder, depth first."""
        if not media_id:
            return None
        return _find_item(self._root, media_id)

    def walk(self) -> Iterator[FolderNode]:
        """Yield every folder, depth first, in insertion order."""
        return _walk(self._root)


def _insert(root: FolderNode, source: CatalogSource) -> None:
    segments = source.route.split(ROUTE_SEPARATOR)
    parent = root
    for depth, segment in enumerate(segments[:-1], start=1):
        child = parent.get_child(segment)
        if child is None:
            route = ROUTE_SEPARATOR.join(segments[:depth])
            child = FolderNode(segment, folder_item(route))
            parent._children[segment] = child
        parent = child

    leaf = segments[-1]
    node = FolderNode(leaf, folder_item(source.route), source.load_children)
    placeholder = parent.get_child(leaf)
    if placeholder is not None:
        # a nested route registered before its parent folder
        node._children.update(placeholder._children)
    parent._children[leaf] = node


def _walk(node: FolderNode) -> Iterator[FolderNode]:
    yield node
    for child in node._children.values():
        yield from _walk(child)


def _find_item(node: FolderNode, media_id: str) -> MediaItem | None:
    for item in node.load_children():
        if item.id == media_id:
            return item
    for child in node._children.values():
        found = _find_item(child, media_id)
        if found is not None:
            return found
    return None
