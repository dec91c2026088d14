"""package.json reading."""
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List

from depsweep.errors import ManifestInvalid, ManifestNotFound

MANIFEST_NAME = 'package.json'


class DependencySection(str, Enum):
    """Dependency sections of package.json, in scan order."""
    RUNTIME = 'runtime'
    DEV = 'dev'
    PEER = 'peer'
    OPTIONAL = 'optional'

    @property
    def manifest_key(self) -> str:
        return _MANIFEST_KEYS[self]


_MANIFEST_KEYS = {
    DependencySection.RUNTIME: 'dependencies',
    DependencySection.DEV: 'devDependencies',
    DependencySection.PEER: 'peerDependencies',
    DependencySection.OPTIONAL: 'optionalDependencies',
}


@dataclass(frozen=True)
class DeclaredDependency:
    name: str
    section: DependencySection
    version_range: str = '*'


@dataclass
class Manifest:
    """Parsed package.json with its dependency sections in file order."""
    path: Path
    data: Dict
    sections: Dict[DependencySection, Dict[str, str]] = field(default_factory=dict)

    def declared(self, include_dev: bool = False, include_peer: bool = False,
                 include_optional: bool = False) -> List[DeclaredDependency]:
        """Return the selected declared dependencies in declaration order.

        Runtime dependencies are always included. A name listed in several
        selected sections is returned once, at its first position.

        Args:
            include_dev: Include devDependencies
            include_peer: Include peerDependencies
            include_optional: Include optionalDependencies

        Returns:
            List of DeclaredDependency
        """
        selected = [DependencySection.RUNTIME]
        if include_dev:
            selected.append(DependencySection.DEV)
        if include_peer:
            selected.append(DependencySection.PEER)
        if include_optional:
            selected.append(DependencySection.OPTIONAL)

        seen = set()
        declared = []
        for section in selected:
            for name, version_range in self.sections.get(section, {}).items():
                if name in seen:
                    continue
                seen.add(name)
                declared.append(DeclaredDependency(name, section, str(version_range)))
        return declared


def load_manifest(project_root: str | Path) -> Manifest:
    """Read ``package.json`` from the project root.

    Args:
        project_root: Directory containing package.json

    Returns:
        Manifest instance

    Raises:
        ManifestNotFound: If package.json does not exist
        ManifestInvalid: If package.json is not a JSON object
    """
    manifest_path = Path(project_root) / MANIFEST_NAME
    if not manifest_path.is_file():
        raise ManifestNotFound(manifest_path)

    try:
        with open(manifest_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestInvalid(manifest_path, str(e)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestInvalid(manifest_path, str(e)) from e

    if not isinstance(data, dict):
        raise ManifestInvalid(manifest_path, "top-level value is not an object")

    sections = {}
    for section in DependencySection:
        entries = data.get(section.manifest_key)
        # Malformed sections contribute nothing
        sections[section] = dict(entries) if isinstance(entries, dict) else {}

    return Manifest(path=manifest_path, data=data, sections=sections)
