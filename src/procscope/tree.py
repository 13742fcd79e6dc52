"""Process tree construction, pruning and flattening."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from procscope.errors import TreeBuildError
from procscope.models import ProcessRecord, ProcessTreeEntry

ROOT_PID = 1


@dataclass(slots=True, frozen=True)
class Focus:
    """What a pruned build should keep.

    Attributes:
        pid: The process whose neighbourhood is kept.
        ancestors: Its ancestor chain as known from the previous tree,
            nearest parent first. Used when ``pid`` itself has exited.
    """

    pid: int
    ancestors: tuple[int, ...] = ()


class ProcessTree:
    """Immutable snapshot of the process hierarchy, keyed by pid.

    Build one with ``ProcessTree.build`` from a flat enumeration. The tree
    is never mutated after construction; rebuild it on every refresh.
    """

    def __init__(self, entries: dict[int, ProcessTreeEntry]) -> None:
        self._entries = entries

    @property
    def entries(self) -> dict[int, ProcessTreeEntry]:
        """Mapping from pid to entry."""
        return self._entries

    def __contains__(self, pid: object) -> bool:
        return pid in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, pid: int) -> ProcessTreeEntry | None:
        """Look up an entry by pid."""
        return self._entries.get(pid)

    @classmethod
    def build(
        cls,
        records: Iterable[ProcessRecord],
        focus: Focus | None = None,
    ) -> "ProcessTree":
        """
        Build a tree from a flat process enumeration.

        Args:
            records: Every readable process on the host. Processes that
                vanished mid-scan are simply absent.
            focus: When given, prune the result to the focus, its direct
                children and its ancestor chain up to pid 1.

        Raises:
            TreeBuildError: If pid 1 is not part of the enumeration.
        """
        by_pid: dict[int, ProcessRecord] = {}
        child_map: dict[int, list[int]] = {}

        for record in records:
            # A pid can only appear once; a later duplicate is a recycled pid
            if record.pid in by_pid:
                continue
            by_pid[record.pid] = record
            child_map.setdefault(record.ppid, []).append(record.pid)

        root_record = by_pid.get(ROOT_PID)
        if root_record is None:
            raise TreeBuildError("pid 1 missing from the process enumeration")

        root = ProcessTreeEntry(pid=ROOT_PID, ppid=0, cmdline=root_record.cmdline)
        entries: dict[int, ProcessTreeEntry] = {ROOT_PID: root}
        _build_entry(root, entries, by_pid, child_map)

        if focus is not None:
            entries = _prune(entries, by_pid, child_map, focus)

        return cls(entries)

    def ancestors(self, pid: int) -> list[int]:
        """
        Return the ancestor chain of ``pid``, nearest parent first.

        The chain always ends with pid 1, even when ``pid`` is unknown.
        """
        chain: list[int] = []
        current = self._entries.get(pid)
        while current is not None and current.pid != ROOT_PID:
            chain.append(current.ppid)
            current = self._entries.get(current.ppid)
        if not chain or chain[-1] != ROOT_PID:
            chain.append(ROOT_PID)
        return chain

    def flatten(self) -> list[tuple[int, ProcessTreeEntry]]:
        """
        Pre-order depth-first walk from pid 1.

        Returns:
            (depth, entry) pairs; the root has depth 0.
        """
        flattened: list[tuple[int, ProcessTreeEntry]] = []
        if ROOT_PID in self._entries:
            self._flatten_into(flattened, ROOT_PID, 0)
        return flattened

    def _flatten_into(
        self,
        out: list[tuple[int, ProcessTreeEntry]],
        pid: int,
        depth: int,
    ) -> None:
        entry = self._entries[pid]
        out.append((depth, entry))
        for child_pid in entry.children:
            if child_pid in self._entries:
                self._flatten_into(out, child_pid, depth + 1)

    def index_of(self, pid: int) -> int | None:
        """Position of ``pid`` in ``flatten()``, if present."""
        for idx, (_, entry) in enumerate(self.flatten()):
            if entry.pid == pid:
                return idx
        return None


def _build_entry(
    entry: ProcessTreeEntry,
    entries: dict[int, ProcessTreeEntry],
    by_pid: dict[int, ProcessRecord],
    child_map: dict[int, list[int]],
) -> None:
    child_pids = child_map.get(entry.pid, [])
    for child_pid in child_pids:
        # A racy enumeration can report a parent cycle
        if child_pid in entries:
            continue
        record = by_pid[child_pid]
        child = ProcessTreeEntry(
            pid=child_pid,
            ppid=entry.pid,
            cmdline=record.cmdline,
            num_siblings=len(child_pids),
        )
        entry.children.append(child_pid)
        entries[child_pid] = child
        _build_entry(child, entries, by_pid, child_map)


def _prune(
    entries: dict[int, ProcessTreeEntry],
    by_pid: dict[int, ProcessRecord],
    child_map: dict[int, list[int]],
    focus: Focus,
) -> dict[int, ProcessTreeEntry]:
    keep: set[int] = {ROOT_PID, focus.pid}
    keep.update(focus.ancestors)
    keep.update(child_map.get(focus.pid, []))

    # Confirm the live ancestor chain from the fresh enumeration
    pid = focus.pid
    while pid in by_pid and pid != ROOT_PID:
        pid = by_pid[pid].ppid
        keep.add(pid)

    # Only keep what is still connected to the root through kept entries
    pruned: dict[int, ProcessTreeEntry] = {}
    stack = [ROOT_PID]
    while stack:
        entry = entries[stack.pop()]
        kept_children = [c for c in entry.children if c in keep and c in entries]
        pruned[entry.pid] = ProcessTreeEntry(
            pid=entry.pid,
            ppid=entry.ppid,
            cmdline=entry.cmdline,
            num_siblings=entry.num_siblings,
            children=kept_children,
        )
        stack.extend(reversed(kept_children))
    return pruned


def recover_selection(tree: ProcessTree, selected: int, chain: Sequence[int]) -> int:
    """
    Pick the pid to select after a rebuild.

    Args:
        tree: The freshly built tree.
        selected: The pid selected before the rebuild.
        chain: Ancestors of ``selected`` recorded before the rebuild,
            nearest parent first.

    Returns:
        ``selected`` if it survived, else the first surviving ancestor,
        else the root.
    """
    if selected in tree:
        return selected
    for pid in chain:
        if pid in tree:
            return pid
    return ROOT_PID


def tree_prefixes(flattened: Sequence[tuple[int, ProcessTreeEntry]]) -> list[str]:
    """
    Box-drawing connector prefix for every row of a flattened tree.

    Keeps a stack with the number of siblings still to come at each depth,
    so a column gets a vertical rule while siblings remain below and a
    corner at the last one.
    """
    prefixes: list[str] = []
    remaining: list[int] = []
    last_depth = 0

    for idx, (depth, entry) in enumerate(flattened):
        if depth > last_depth:
            remaining.append(entry.num_siblings)
        elif depth < last_depth:
            del remaining[depth:]
        last_depth = depth
        if depth > 0 and remaining[depth - 1] > 0:
            remaining[depth - 1] -= 1

        if idx == 0:
            prefixes.append("━┳╸")
            continue

        columns = []
        for level, count in enumerate(remaining):
            own = level == depth - 1
            if count > 0:
                columns.append("┣" if own else "┆")
            else:
                columns.append("┗" if own else " ")

        has_children = idx + 1 < len(flattened) and flattened[idx + 1][0] > depth
        prefixes.append(" " + "".join(columns) + ("┳╸" if has_children else "━╸"))

    return prefixes
