"""Usage heuristics applied once the per-file usage set is complete.

Each heuristic is a pure function ``(UsageSet, declared) -> UsageSet`` and
they run in the order of DEFAULT_HEURISTICS. A heuristic only ever adds
identifiers, it never removes one.
"""
from typing import Callable, Dict, List, Sequence, Tuple

from .manifest import DeclaredDependency
from .normalizer import scope_of
from .usage_set import UsageSet

Heuristic = Callable[[UsageSet, Sequence[DeclaredDependency]], UsageSet]

# Core package -> packages consumed implicitly by tooling whenever it is used
FRAMEWORK_COMPANIONS: Dict[str, Tuple[str, ...]] = {
    'react': ('react-dom',),
}


def framework_companions(usage: UsageSet, declared: Sequence[DeclaredDependency]) -> UsageSet:
    """Mark renderer packages as used when their framework core is used.

    Added unconditionally, whether or not the companion is declared.
    """
    additions: Dict[str, List[str]] = {}
    for core, companions in FRAMEWORK_COMPANIONS.items():
        if core not in usage:
            continue
        for companion in companions:
            additions.setdefault(companion, []).append(f"(implied by {core})")
    return usage.with_additions(additions)


def shared_scope(usage: UsageSet, declared: Sequence[DeclaredDependency]) -> UsageSet:
    """Mark every declared ``@scope/*`` package used once any package of that scope is.

    Component libraries (``@radix-ui``, ``@heroui``...) are often consumed
    through re-exports and peer dependencies that no import names directly.

    Note that the synthetic types identifiers put ``@types`` in the used
    scopes as soon as anything is referenced, so declared ``@types/*``
    packages are then always considered used.
    """
    used_scopes = {scope_of(name) for name in usage.names()}
    used_scopes.discard(None)
    if not used_scopes:
        return usage

    additions: Dict[str, List[str]] = {}
    for dependency in declared:
        scope = scope_of(dependency.name)
        if scope in used_scopes and dependency.name not in usage:
            additions.setdefault(dependency.name, []).append(f"(shares scope {scope})")
    return usage.with_additions(additions)


DEFAULT_HEURISTICS: Tuple[Heuristic, ...] = (
    framework_companions,
    shared_scope,
)


def apply_heuristics(usage: UsageSet, declared: Sequence[DeclaredDependency],
                     heuristics: Sequence[Heuristic] = DEFAULT_HEURISTICS) -> UsageSet:
    """Run heuristics in order, each seeing the previous one's output."""
    for heuristic in heuristics:
        usage = heuristic(usage, declared)
    return usage
