"""Usage set construction across a whole project.

Three phases:
1. Discovery: list source files under the project root
2. Extraction: parse each file (or replay the cache), normalize every
   reference and accumulate identifiers with the file as evidence
3. Heuristics: expand the final set once, against the declared dependencies
"""
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import structlog

from depsweep.errors import ParseFailure
from .cache import CachedFile, ReferenceCache
from .discovery import discover_source_files
from .extractor import RawReference, ReferenceExtractor
from .heuristics import DEFAULT_HEURISTICS, Heuristic, apply_heuristics
from .manifest import load_manifest
from .normalizer import canonical_identifiers
from .usage_set import UsageAccumulator, UsageSet

log = structlog.get_logger("depsweep.analyzer.usage")


@dataclass(frozen=True)
class ScanDiagnostic:
    """A recovered per-file problem."""
    path: str
    message: str


@dataclass
class FileScan:
    path: Path
    references: List[RawReference]
    syntax_error: Optional[Tuple[int, int]] = None
    failure: Optional[ParseFailure] = None


class UsageSetBuilder:
    """Build the UsageSet for one project.

    Every call to build() starts from an empty accumulator, so repeated
    builds over an unchanged tree return equal sets.
    """

    def __init__(self, project_root: str | Path, include_dev: bool = False,
                 include_peer: bool = False, include_optional: bool = False,
                 cache: Optional[ReferenceCache] = None, workers: int = 1,
                 error_recovery: bool = True,
                 heuristics: Sequence[Heuristic] = DEFAULT_HEURISTICS):
        """Initialize builder.

        Args:
            project_root: Root directory of the project
            include_dev: Consider devDependencies for scope sharing
            include_peer: Consider peerDependencies for scope sharing
            include_optional: Consider optionalDependencies for scope sharing
            cache: Optional reference cache; only touched from the calling thread
            workers: Number of extraction threads (1 = sequential)
            error_recovery: Walk files with syntax errors instead of failing them
            heuristics: Ordered heuristics applied after extraction
        """
        self.project_root = Path(project_root).resolve()
        self.include_dev = include_dev
        self.include_peer = include_peer
        self.include_optional = include_optional
        self.cache = cache
        self.workers = max(1, workers)
        self.extractor = ReferenceExtractor(error_recovery=error_recovery)
        self.heuristics = tuple(heuristics)

        self.diagnostics: List[ScanDiagnostic] = []
        self.files_scanned = 0

    def build(self) -> UsageSet:
        """Scan the project and return the heuristic-expanded UsageSet.

        Per-file failures are recorded in self.diagnostics and never raised.

        Raises:
            ManifestError: If package.json cannot be re-read for scope sharing
        """
        self.diagnostics = []
        files = discover_source_files(self.project_root)
        self.files_scanned = len(files)
        log.debug("files_discovered", root=str(self.project_root), count=len(files))

        accumulator = UsageAccumulator()
        for scan in self._scan_files(files):
            self._record(scan, accumulator)

        usage = accumulator.freeze()

        # Scope sharing needs the declared list; read it only now that the
        # direct usage set is final
        declared = load_manifest(self.project_root).declared(
            include_dev=self.include_dev,
            include_peer=self.include_peer,
            include_optional=self.include_optional,
        )
        return apply_heuristics(usage, declared, self.heuristics)

    def _scan_files(self, files: List[Path]) -> List[FileScan]:
        """Extract references from all files, replaying the cache where possible."""
        scans: List[Optional[FileScan]] = [None] * len(files)
        misses: List[int] = []

        for index, file_path in enumerate(files):
            cached = self._cache_get(file_path)
            if cached is None:
                misses.append(index)
                continue
            if cached.syntax_error and not self.extractor.error_recovery:
                line, column = cached.syntax_error
                failure = ParseFailure(file_path, f"syntax error at line {line}, column {column}")
                scans[index] = FileScan(file_path, [], cached.syntax_error, failure)
            else:
                scans[index] = FileScan(file_path, cached.references, cached.syntax_error)

        miss_paths = [files[i] for i in misses]
        if self.workers > 1 and len(miss_paths) > 1:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(miss_paths))) as executor:
                fresh = list(executor.map(self._extract, miss_paths))
        else:
            fresh = [self._extract(path) for path in miss_paths]

        for index, scan in zip(misses, fresh):
            scans[index] = scan
            if scan.failure is None:
                self._cache_put(scan)

        return scans

    def _cache_get(self, file_path: Path) -> Optional[CachedFile]:
        if self.cache is None:
            return None
        try:
            return self.cache.get_references(file_path)
        except sqlite3.Error as e:
            self._disable_cache(e)
            return None

    def _cache_put(self, scan: FileScan):
        if self.cache is None:
            return
        try:
            self.cache.set_references(scan.path, scan.references, scan.syntax_error)
        except sqlite3.Error as e:
            self._disable_cache(e)

    def _disable_cache(self, error: Exception):
        """Stop using a failing cache for the rest of this build."""
        log.warning("cache_unavailable", cache_dir=str(self.cache.cache_dir), error=str(error),
                    hint="continuing without the reference cache")
        self.cache = None

    def _extract(self, file_path: Path) -> FileScan:
        """Extract one file. Runs on worker threads; touches no shared state."""
        errors: List[Tuple[int, int]] = []
        try:
            references = list(self.extractor.extract_file(
                file_path, on_syntax_error=lambda line, column: errors.append((line, column))
            ))
        except ParseFailure as e:
            return FileScan(file_path, [], failure=e)

        return FileScan(file_path, references, errors[0] if errors else None)

    def _record(self, scan: FileScan, accumulator: UsageAccumulator):
        display_path = self._display_path(scan.path)

        if scan.failure is not None:
            self.diagnostics.append(ScanDiagnostic(display_path, scan.failure.message))
            log.warning("parse_failed", path=display_path, error=scan.failure.message,
                        hint="usage in this file may be missed")
            return

        if scan.syntax_error is not None:
            line, column = scan.syntax_error
            message = f"recovered from syntax error at line {line}, column {column}"
            self.diagnostics.append(ScanDiagnostic(display_path, message))
            log.debug("syntax_error_recovered", path=display_path, line=line, column=column)

        for reference in scan.references:
            identifiers = canonical_identifiers(reference.specifier)
            if not identifiers:
                continue
            log.debug("reference_found", path=display_path, specifier=reference.specifier,
                      identifier=identifiers[0], form=reference.form.value)
            accumulator.add_all(identifiers, display_path)

    def _display_path(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self.project_root).as_posix()
        except ValueError:
            return str(file_path)
