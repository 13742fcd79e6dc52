"""Tests for process tree construction and flattening."""

import pytest

from procscope.errors import TreeBuildError
from procscope.models import ProcessRecord
from procscope.tree import Focus, ProcessTree, recover_selection, tree_prefixes


def records(*triples: tuple[int, int, str]) -> list[ProcessRecord]:
    return [ProcessRecord(pid=pid, ppid=ppid, cmdline=cmd) for pid, ppid, cmd in triples]


# 1 ─┬─ 10 ─┬─ 100
#    │      └─ 101 ── 1000
#    ├─ 20
#    └─ 30 ── 300
SAMPLE = records(
    (1, 0, "init"),
    (10, 1, "sshd"),
    (20, 1, "cron"),
    (30, 1, "dockerd"),
    (100, 10, "sshd: alice"),
    (101, 10, "sshd: bob"),
    (300, 30, "containerd"),
    (1000, 101, "bash"),
)


class TestBuild:
    """Tests for ProcessTree.build without pruning."""

    def test_every_reachable_pid_present(self):
        """Test the unpruned tree holds one entry per enumerated process."""
        tree = ProcessTree.build(SAMPLE)
        assert set(tree.entries) == {r.pid for r in SAMPLE}
        assert len(tree) == len(SAMPLE)

    def test_root_entry(self):
        """Test pid 1 is the root with parent 0."""
        tree = ProcessTree.build(SAMPLE)
        root = tree.get(1)
        assert root is not None
        assert root.ppid == 0
        assert root.cmdline == "init"
        assert root.children == [10, 20, 30]

    def test_parent_links_and_siblings(self):
        """Test each entry points at its parent and counts its siblings."""
        tree = ProcessTree.build(SAMPLE)
        for pid, entry in tree.entries.items():
            if pid == 1:
                continue
            parent = tree.get(entry.ppid)
            assert parent is not None
            assert pid in parent.children
            assert entry.num_siblings == len(parent.children)

    def test_missing_root_raises(self):
        """Test building without pid 1 fails."""
        with pytest.raises(TreeBuildError):
            ProcessTree.build(records((2, 0, "kthreadd"), (3, 2, "kworker")))

    def test_orphans_are_left_out(self):
        """Test processes whose parent was not enumerated are unreachable."""
        tree = ProcessTree.build(records((1, 0, "init"), (5, 4, "orphan")))
        assert 5 not in tree
        assert len(tree) == 1

    def test_duplicate_pid_keeps_first(self):
        """Test a recycled pid seen twice only appears once."""
        tree = ProcessTree.build(records((1, 0, "init"), (2, 1, "first"), (2, 1, "second")))
        assert tree.get(2).cmdline == "first"
        assert tree.get(1).children == [2]


class TestFlatten:
    """Tests for ProcessTree.flatten."""

    def test_preorder_with_depths(self):
        """Test flatten walks depth-first, root at depth 0."""
        flattened = ProcessTree.build(SAMPLE).flatten()
        assert [(depth, entry.pid) for depth, entry in flattened] == [
            (0, 1),
            (1, 10),
            (2, 100),
            (2, 101),
            (3, 1000),
            (1, 20),
            (1, 30),
            (2, 300),
        ]

    def test_depth_is_parent_depth_plus_one(self):
        """Test every non-root depth is one more than its parent's."""
        tree = ProcessTree.build(SAMPLE)
        depths = {entry.pid: depth for depth, entry in tree.flatten()}
        for pid, depth in depths.items():
            if pid != 1:
                assert depth == depths[tree.get(pid).ppid] + 1

    def test_empty_tree(self):
        """Test a tree without entries flattens to nothing."""
        assert ProcessTree({}).flatten() == []

    def test_index_of(self):
        """Test index_of finds positions in the flattened order."""
        tree = ProcessTree.build(SAMPLE)
        assert tree.index_of(1) == 0
        assert tree.index_of(1000) == 4
        assert tree.index_of(4242) is None


class TestAncestors:
    """Tests for ProcessTree.ancestors."""

    def test_chain_nearest_first(self):
        """Test the chain runs from the parent up to pid 1."""
        tree = ProcessTree.build(SAMPLE)
        assert tree.ancestors(1000) == [101, 10, 1]

    def test_unknown_pid_ends_at_root(self):
        """Test an unknown pid still yields the root."""
        assert ProcessTree.build(SAMPLE).ancestors(4242) == [1]


class TestPrune:
    """Tests for the pruned view."""

    def test_keeps_focus_children_and_ancestors(self):
        """Test the pruned tree is exactly focus, children, ancestors and root."""
        tree = ProcessTree.build(SAMPLE, focus=Focus(pid=10))
        assert set(tree.entries) == {1, 10, 100, 101}

    def test_grandchildren_dropped(self):
        """Test only direct children of the focus survive."""
        tree = ProcessTree.build(SAMPLE, focus=Focus(pid=10))
        assert 1000 not in tree
        assert tree.get(101).children == []

    def test_deep_focus(self):
        """Test the whole chain above a deep focus is kept."""
        tree = ProcessTree.build(SAMPLE, focus=Focus(pid=1000))
        assert set(tree.entries) == {1, 10, 101, 1000}

    def test_num_siblings_from_full_tree(self):
        """Test pruning keeps the sibling counts of the full tree."""
        tree = ProcessTree.build(SAMPLE, focus=Focus(pid=10))
        assert tree.get(10).num_siblings == 3
        assert tree.get(1).children == [10]

    def test_no_dangling_parents(self):
        """Test every kept non-root entry has its parent in the tree."""
        for focus in (1, 10, 20, 101, 1000, 300):
            tree = ProcessTree.build(SAMPLE, focus=Focus(pid=focus))
            for pid, entry in tree.entries.items():
                if pid != 1:
                    assert entry.ppid in tree

    def test_exited_focus_keeps_cached_chain(self):
        """Test the cached ancestors are used once the focus is gone."""
        alive = [r for r in SAMPLE if r.pid != 1000]
        tree = ProcessTree.build(alive, focus=Focus(pid=1000, ancestors=(101, 10, 1)))
        assert set(tree.entries) == {1, 10, 101}

    def test_stale_chain_is_not_dangling(self):
        """Test a cached ancestor that moved away is only kept if reachable."""
        moved = records((1, 0, "init"), (10, 1, "sshd"), (101, 20, "moved"), (20, 1, "cron"))
        tree = ProcessTree.build(moved, focus=Focus(pid=1000, ancestors=(101, 10, 1)))
        assert 101 not in tree
        for pid, entry in tree.entries.items():
            if pid != 1:
                assert entry.ppid in tree


class TestRecoverSelection:
    """Tests for recover_selection."""

    def test_selection_survives(self):
        """Test a live selection is kept."""
        tree = ProcessTree.build(SAMPLE)
        assert recover_selection(tree, 1000, [101, 10, 1]) == 1000

    def test_nearest_live_ancestor(self):
        """Test an exited selection moves to its nearest live ancestor."""
        alive = ProcessTree.build([r for r in SAMPLE if r.pid not in (1000, 101)])
        assert recover_selection(alive, 1000, [101, 10, 1]) == 10

    def test_falls_back_to_root(self):
        """Test the root is chosen when nothing in the chain survives."""
        tree = ProcessTree.build(records((1, 0, "init")))
        assert recover_selection(tree, 1000, [101, 10]) == 1


class TestTreePrefixes:
    """Tests for tree_prefixes."""

    def test_small_tree(self):
        """Test connectors for a root with a nested and a leaf child."""
        tree = ProcessTree.build(records((1, 0, "init"), (2, 1, "a"), (4, 2, "c"), (3, 1, "b")))
        assert tree_prefixes(tree.flatten()) == [
            "━┳╸",
            " ┣┳╸",
            " ┆┗━╸",
            " ┗━╸",
        ]

    def test_single_root(self):
        """Test a lone root gets the root connector."""
        tree = ProcessTree.build(records((1, 0, "init")))
        assert tree_prefixes(tree.flatten()) == ["━┳╸"]

    def test_one_prefix_per_row(self):
        """Test the prefix list lines up with the flattened rows."""
        flattened = ProcessTree.build(SAMPLE).flatten()
        assert len(tree_prefixes(flattened)) == len(flattened)
