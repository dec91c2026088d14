"""Declared dependencies vs. observed usage."""
from dataclasses import dataclass, field
from typing import AbstractSet, List, Optional, Sequence, Tuple

from .manifest import DeclaredDependency, DependencySection
from .usage import ScanDiagnostic
from .usage_set import UsageSet

IGNORED_EVIDENCE = '(ignored)'


@dataclass(frozen=True)
class UsageVerdict:
    name: str
    is_used: bool
    evidence: Tuple[str, ...] = ()
    section: Optional[DependencySection] = None


def reconcile(declared: Sequence[DeclaredDependency], usage: UsageSet,
              ignore: AbstractSet[str] = frozenset()) -> List[UsageVerdict]:
    """Produce one verdict per declared dependency, in declaration order.

    Ignored names are always used, with ``(ignored)`` as their only evidence.
    Everything else is used iff it is in the usage set.
    """
    verdicts = []
    for dependency in declared:
        if dependency.name in ignore:
            verdicts.append(UsageVerdict(dependency.name, True, (IGNORED_EVIDENCE,), dependency.section))
            continue

        is_used = dependency.name in usage
        verdicts.append(UsageVerdict(
            dependency.name,
            is_used,
            usage.evidence(dependency.name) if is_used else (),
            dependency.section,
        ))
    return verdicts


@dataclass
class AnalysisReport:
    """Outcome of one scan."""
    verdicts: List[UsageVerdict]
    diagnostics: List[ScanDiagnostic] = field(default_factory=list)
    files_scanned: int = 0
    usage: UsageSet = field(default_factory=UsageSet)

    @property
    def unused(self) -> List[UsageVerdict]:
        return [v for v in self.verdicts if not v.is_used]

    @property
    def used(self) -> List[UsageVerdict]:
        return [v for v in self.verdicts if v.is_used]
