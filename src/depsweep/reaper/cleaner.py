"""Removal of unused dependencies from package.json."""
import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import structlog

from depsweep.analyzer.manifest import MANIFEST_NAME, DependencySection, load_manifest
from depsweep.errors import ManifestError, ManifestNotFound

log = structlog.get_logger("depsweep.reaper.cleaner")

BACKUP_SUFFIX = '.bak'


@dataclass
class RemovalResult:
    """What a removal did to the manifest."""
    removed: List[Tuple[DependencySection, str]] = field(default_factory=list)
    backup_path: Path | None = None

    @property
    def removed_count(self) -> int:
        return len(self.removed)


class ManifestCleaner:
    """Rewrites package.json without the given dependencies.

    A copy of the original is always written to ``package.json.bak``
    before the manifest is touched.
    """

    def __init__(self, project_root: str | Path):
        """Initialize cleaner.

        Args:
            project_root: Directory containing package.json
        """
        self.project_root = Path(project_root).resolve()
        self.manifest_path = self.project_root / MANIFEST_NAME
        self.backup_path = self.manifest_path.with_name(MANIFEST_NAME + BACKUP_SUFFIX)

    def backup(self) -> Path:
        """Copy package.json to package.json.bak.

        Returns:
            Path of the backup file

        Raises:
            ManifestNotFound: If package.json does not exist
            ManifestError: If the backup cannot be written
        """
        if not self.manifest_path.is_file():
            raise ManifestNotFound(self.manifest_path)
        try:
            shutil.copy2(self.manifest_path, self.backup_path)
        except OSError as e:
            raise ManifestError(f"could not back up {self.manifest_path}: {e}") from e
        log.info("manifest_backed_up", backup=str(self.backup_path))
        return self.backup_path

    def remove_dependencies(self, names: Iterable[str]) -> RemovalResult:
        """Delete names from every dependency section and rewrite the manifest.

        Sections left empty are dropped. Other keys keep their order.

        Args:
            names: Dependency names to remove

        Returns:
            RemovalResult listing each (section, name) actually removed

        Raises:
            ManifestNotFound: If package.json does not exist
            ManifestInvalid: If package.json is unreadable or not a JSON object
            ManifestError: If the rewritten manifest cannot be saved
        """
        names = list(dict.fromkeys(names))
        if not names:
            return RemovalResult()

        # Read and validate before the backup is taken
        data = load_manifest(self.project_root).data
        backup_path = self.backup()

        result = RemovalResult(backup_path=backup_path)
        for section in DependencySection:
            key = section.manifest_key
            entries = data.get(key)
            if not isinstance(entries, dict):
                continue
            for name in names:
                if name in entries:
                    del entries[name]
                    result.removed.append((section, name))
            if not entries:
                del data[key]

        self._write_manifest(data)
        log.info("dependencies_removed", count=result.removed_count)
        return result

    def _write_manifest(self, data: Dict):
        """Write manifest to disk atomically.

        Args:
            data: Manifest dictionary to write

        Raises:
            ManifestError: If the temp file cannot be written or moved into place
        """
        temp_path = self.manifest_path.with_suffix('.tmp')
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write('\n')
            temp_path.replace(self.manifest_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise ManifestError(f"could not write {self.manifest_path}: {e}") from e
