"""Walks over the folder tree of a cabinet.

Folders link to their first child with the child pointer, and children
link to each other with the next pointer. Pointer data comes from the
file, so every walk keeps a visited set and fails with MalformedGraphError
instead of looping when the pointers form a cycle.
"""

import logging
from typing import Iterator, Optional

from .container import Container
from .errors import MalformedGraphError
from .record import NO_POINTER, Record

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256

# walk() event kinds
ENTER = "enter"
ITEM = "item"
LEAVE = "leave"


class CabinetWalker:
    """Read-only traversal of a Container's folder tree."""

    def __init__(self, container: Container, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Args:
            container: Completed cabinet
            max_depth: Deepest folder nesting walk() will follow
        """
        self.container = container
        self.max_depth = max_depth

    def _resolve(self, index: int, source: Record, pointer: str) -> Record:
        if not self.container.has_record(index):
            raise MalformedGraphError(
                f"Record {source.index} {pointer} pointer {index} is outside the cabinet"
            )
        return self.container.records[index]

    def iter_children(self, folder: Record, visited: Optional[set] = None) -> Iterator[Record]:
        """
        Yield the direct children of a folder in sibling order.

        Raises:
            MalformedGraphError: If the sibling chain loops or leaves the cabinet
        """
        seen = visited if visited is not None else set()
        index = folder.pointers.child
        pointer, source = "child", folder

        while index != NO_POINTER:
            if index in seen:
                raise MalformedGraphError(
                    f"Record {index} reached twice below folder {folder.index}"
                )
            seen.add(index)
            child = self._resolve(index, source, pointer)
            yield child
            index = child.pointers.next
            pointer, source = "next", child

    def item_count(self, folder: Record) -> int:
        """Number of non-folder children."""
        return sum(1 for child in self.iter_children(folder) if not child.is_folder)

    def item_at(self, folder: Record, row: int) -> Optional[Record]:
        """The row-th non-folder child, or None."""
        count = -1
        for child in self.iter_children(folder):
            if not child.is_folder:
                count += 1
                if count == row:
                    return child
        return None

    def iter_items(self, folder: Record) -> Iterator[Record]:
        """Non-folder children of a folder."""
        return (child for child in self.iter_children(folder) if not child.is_folder)

    def folder_count(self, folder: Record) -> int:
        """Number of sub-folder children."""
        return sum(1 for child in self.iter_children(folder) if child.is_folder)

    def iter_folders(self, folder: Record) -> Iterator[Record]:
        """Sub-folder children of a folder."""
        return (child for child in self.iter_children(folder) if child.is_folder)

    def folder_at(self, folder: Record, position: int) -> Optional[Record]:
        """
        The position-th sub-folder.

        Returns the last sub-folder when position is past the end, and None
        when the folder has no sub-folders.
        """
        last = None
        count = -1
        for child in self.iter_folders(folder):
            count += 1
            if count == position:
                return child
            last = child
        return last

    def index_of_folder(self, parent: Optional[Record], child: Optional[Record]) -> int:
        """Position of child among the sub-folders of parent, or -1."""
        if parent is None or child is None:
            return -1
        for position, folder in enumerate(self.iter_folders(parent)):
            if folder.index == child.index:
                return position
        return -1

    def walk(self, folder: Record) -> Iterator[tuple[str, Record]]:
        """
        Depth-first walk of a folder's subtree.

        Yields (ENTER, folder), then (ITEM, envelope) for each non-folder
        child and the nested events of each sub-folder in sibling order,
        then (LEAVE, folder).

        Raises:
            MalformedGraphError: On a pointer cycle or when nesting exceeds max_depth
        """
        visited = {folder.index}
        yield from self._walk(folder, 0, visited)

    def _walk(self, folder: Record, depth: int, visited: set) -> Iterator[tuple[str, Record]]:
        if depth > self.max_depth:
            raise MalformedGraphError(
                f"Folder nesting deeper than {self.max_depth} at record {folder.index}"
            )

        yield ENTER, folder
        for child in self.iter_children(folder, visited):
            if child.is_folder:
                yield from self._walk(child, depth + 1, visited)
            else:
                yield ITEM, child
        yield LEAVE, folder

    def iter_subtree_items(self, folder: Record) -> Iterator[Record]:
        """Every non-folder envelope below a folder, depth-first."""
        for event, record in self.walk(folder):
            if event == ITEM:
                yield record

    def folder_path(self, record: Record) -> str:
        """
        Slash-joined labels from the top folder down to record.

        Raises:
            MalformedGraphError: If the parent chain loops
        """
        labels = []
        seen = set()
        current: Optional[Record] = record

        while current is not None:
            if current.index in seen:
                raise MalformedGraphError(
                    f"Parent chain of record {record.index} loops at {current.index}"
                )
            seen.add(current.index)
            labels.append(current.label)

            parent = current.pointers.parent
            if parent == NO_POINTER:
                break
            current = self._resolve(parent, current, "parent")

        return "/".join(reversed(labels))
