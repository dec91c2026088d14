"""Usage set: canonical identifiers observed as used, with their evidence."""
import threading
from collections import defaultdict
from collections.abc import Mapping
from typing import Dict, FrozenSet, Iterable, Iterator, Set, Tuple


class UsageSet(Mapping):
    """Immutable mapping of identifier -> sorted evidence strings.

    Evidence is a project-relative file path for direct references, or a
    parenthesized marker for identifiers added by a heuristic.
    """

    def __init__(self, evidence: Mapping[str, Iterable[str]] | None = None):
        self._evidence: Dict[str, Tuple[str, ...]] = {
            name: tuple(sorted(set(sources)))
            for name, sources in (evidence or {}).items()
        }

    def __getitem__(self, name: str) -> Tuple[str, ...]:
        return self._evidence[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._evidence)

    def __len__(self) -> int:
        return len(self._evidence)

    def __repr__(self) -> str:
        return f"UsageSet({sorted(self._evidence)!r})"

    def names(self) -> FrozenSet[str]:
        return frozenset(self._evidence)

    def evidence(self, name: str) -> Tuple[str, ...]:
        return self._evidence.get(name, ())

    def with_additions(self, additions: Mapping[str, Iterable[str]]) -> 'UsageSet':
        """Return a new UsageSet with extra identifiers/evidence merged in."""
        merged: Dict[str, Set[str]] = {name: set(sources) for name, sources in self._evidence.items()}
        for name, sources in additions.items():
            merged.setdefault(name, set()).update(sources)
        return UsageSet(merged)


class UsageAccumulator:
    """Thread-safe builder for a UsageSet.

    Inserts are idempotent and commutative, so files can be merged in any
    order from any worker.
    """

    def __init__(self):
        self._evidence: Dict[str, Set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    def add(self, identifier: str, source: str):
        with self._lock:
            self._evidence[identifier].add(source)

    def add_all(self, identifiers: Iterable[str], source: str):
        identifiers = list(identifiers)
        with self._lock:
            for identifier in identifiers:
                self._evidence[identifier].add(source)

    def freeze(self) -> UsageSet:
        with self._lock:
            return UsageSet(self._evidence)
