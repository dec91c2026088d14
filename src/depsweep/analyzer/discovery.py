"""Source file discovery."""
import os
from pathlib import Path
from typing import Iterable, List

SOURCE_EXTENSIONS = ('.js', '.jsx', '.ts', '.tsx', '.mjs', '.cjs', '.mts', '.cts')

# Build output, installed packages and tool state; excluded at any depth
EXCLUDED_DIRS = frozenset({
    'node_modules',
    'dist', 'build', 'coverage',
    '.git', '.depsweep_cache',
})


def discover_source_files(project_root: str | Path,
                          extensions: Iterable[str] = SOURCE_EXTENSIONS,
                          excluded_dirs: Iterable[str] = EXCLUDED_DIRS) -> List[Path]:
    """Find all JavaScript/TypeScript sources under a project root.

    Excluded directories are pruned during the walk, so large
    ``node_modules`` trees are never descended into. Only names below the
    project root are checked, so a project that itself lives under e.g.
    ``build/`` is still scanned.

    Args:
        project_root: Root directory of the project
        extensions: File suffixes to include
        excluded_dirs: Directory names to skip at any depth

    Returns:
        Sorted list of absolute file paths
    """
    project_root = Path(project_root).resolve()
    suffixes = {ext.lower() for ext in extensions}
    excluded = frozenset(excluded_dirs)

    files = []
    for dirpath, dirnames, filenames in os.walk(project_root):
        dirnames[:] = [d for d in dirnames if d not in excluded]
        for filename in filenames:
            if os.path.splitext(filename)[1].lower() in suffixes:
                files.append(Path(dirpath) / filename)

    return sorted(files)
