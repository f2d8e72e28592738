"""Tests for folder tree traversal."""

import pytest

from pfc_explorer.core.container import Container
from pfc_explorer.core.errors import MalformedGraphError
from pfc_explorer.core.record import decode_record
from pfc_explorer.core.traversal import ENTER, ITEM, LEAVE, CabinetWalker

from tests.builders import envelope, folder, sample_records


def make_container(records) -> Container:
    decoded = tuple(
        decode_record(content if content is not None else bytes(4), index=i)
        for i, content in enumerate(records)
    )
    return Container(0, 0, len(decoded), 0, decoded)


@pytest.fixture
def walker():
    return CabinetWalker(make_container(sample_records()))


class TestChildren:
    """Test direct child enumeration."""

    def test_iter_children_follows_siblings(self, walker):
        root = walker.container.root
        assert [c.index for c in walker.iter_children(root)] == [2, 5, 7]

    def test_items_and_folders(self, walker):
        root = walker.container.root
        assert [r.index for r in walker.iter_items(root)] == [5]
        assert [r.index for r in walker.iter_folders(root)] == [2, 7]
        assert walker.item_count(root) == 1
        assert walker.folder_count(root) == 2

    def test_item_at(self, walker):
        inbox = walker.container[2]
        assert walker.item_at(inbox, 0).index == 3
        assert walker.item_at(inbox, 1) is None

    def test_folder_at(self, walker):
        root = walker.container.root
        assert walker.folder_at(root, 0).index == 2
        assert walker.folder_at(root, 1).index == 7
        # Past the end yields the last folder
        assert walker.folder_at(root, 5).index == 7
        assert walker.folder_at(walker.container[2], 0) is None

    def test_index_of_folder(self, walker):
        root = walker.container.root
        assert walker.index_of_folder(root, walker.container[7]) == 1
        assert walker.index_of_folder(root, walker.container[3]) == -1
        assert walker.index_of_folder(None, root) == -1

    def test_empty_folder(self):
        walker = CabinetWalker(make_container([None, folder("Empty")]))
        assert list(walker.iter_children(walker.container.root)) == []


class TestWalk:
    """Test depth-first subtree walks."""

    def test_event_order(self, walker):
        events = [(event, record.index) for event, record in walker.walk(walker.container.root)]
        assert events == [
            (ENTER, 1),
            (ENTER, 2),
            (ITEM, 3),
            (LEAVE, 2),
            (ITEM, 5),
            (ENTER, 7),
            (ITEM, 8),
            (LEAVE, 7),
            (LEAVE, 1),
        ]

    def test_subtree_items(self, walker):
        assert [r.index for r in walker.iter_subtree_items(walker.container.root)] == [3, 5, 8]

    def test_folder_path(self, walker):
        assert walker.folder_path(walker.container[3]) == "Main/Inbox/12/2/01\talice@x.com\tHello"
        assert walker.folder_path(walker.container[7]) == "Main/Places"


class TestMalformedGraphs:
    """Test that bad pointers fail instead of looping."""

    def test_two_cycle_in_siblings(self):
        walker = CabinetWalker(make_container([
            None,
            folder("Main", child=2),
            envelope(kind=12, next=3),
            envelope(kind=12, next=2),
        ]))
        with pytest.raises(MalformedGraphError):
            list(walker.iter_children(walker.container.root))
        with pytest.raises(MalformedGraphError):
            walker.item_count(walker.container.root)

    def test_child_points_back_to_ancestor(self):
        walker = CabinetWalker(make_container([
            None,
            folder("Main", child=2),
            folder("Loop", child=1),
        ]))
        with pytest.raises(MalformedGraphError):
            list(walker.walk(walker.container.root))

    def test_self_child(self):
        walker = CabinetWalker(make_container([None, folder("Self", child=1)]))
        with pytest.raises(MalformedGraphError):
            list(walker.walk(walker.container.root))

    def test_pointer_outside_cabinet(self):
        walker = CabinetWalker(make_container([None, folder("Main", child=40)]))
        with pytest.raises(MalformedGraphError):
            list(walker.iter_children(walker.container.root))

    def test_depth_limit(self):
        walker = CabinetWalker(
            make_container([
                None,
                folder("a", child=2),
                folder("b", child=3, parent=1),
                folder("c", parent=2),
            ]),
            max_depth=1,
        )
        with pytest.raises(MalformedGraphError):
            list(walker.walk(walker.container.root))

    def test_parent_cycle(self):
        walker = CabinetWalker(make_container([
            None,
            folder("a", parent=2),
            folder("b", parent=1),
        ]))
        with pytest.raises(MalformedGraphError):
            walker.folder_path(walker.container[1])
