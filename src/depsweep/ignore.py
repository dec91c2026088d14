"""Ignore-list loading.

Two project-level sources are read when present:

- ``.unusedignore``: one dependency name per line, ``#`` comments allowed
- ``.unusedrc.json``: ``{"ignore": ["name", ...]}``

An explicit ignore file replaces both. A source that cannot be read or
parsed is skipped with a warning; the baseline and earlier sources still
apply.
"""
import json
from pathlib import Path
from typing import FrozenSet, List, Optional

import structlog

from depsweep.errors import MalformedIgnoreFile

log = structlog.get_logger("depsweep.ignore")

DEFAULT_IGNORE = ('@types/node', 'typescript', 'ts-node')
IGNORE_FILES = ('.unusedignore', '.unusedrc.json')


def parse_ignore_text(content: str) -> List[str]:
    """Parse a flat ignore file (gitignore-style: blanks and comments skipped)."""
    names = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith('#'):
            names.append(line)
    return names


def parse_ignore_json(content: str, path: str | Path) -> List[str]:
    """Parse the ``ignore`` array of a JSON ignore file.

    Raises:
        MalformedIgnoreFile: Invalid JSON or an ``ignore`` value that is not
            a list of strings
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedIgnoreFile(path, str(e)) from e

    if not isinstance(data, dict):
        raise MalformedIgnoreFile(path, "top-level value is not an object")

    ignore = data.get('ignore', [])
    if not isinstance(ignore, list) or not all(isinstance(name, str) for name in ignore):
        raise MalformedIgnoreFile(path, "'ignore' must be a list of strings")
    return [name.strip() for name in ignore if name.strip()]


def read_ignore_file(path: Path) -> List[str]:
    """Read one ignore source; format is chosen by the ``.json`` suffix.

    Raises:
        MalformedIgnoreFile: If the file cannot be read or parsed
    """
    try:
        content = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedIgnoreFile(path, str(e)) from e

    if path.suffix.lower() == '.json':
        return parse_ignore_json(content, path)
    return parse_ignore_text(content)


def load_ignore_list(project_root: str | Path, ignore_file: Optional[str | Path] = None) -> FrozenSet[str]:
    """Build the ignore set for a project.

    Args:
        project_root: Directory the ignore files are resolved against
        ignore_file: Explicit ignore file; replaces the default sources

    Returns:
        Baseline exemptions plus every name from readable sources
    """
    project_root = Path(project_root)
    ignore = set(DEFAULT_IGNORE)

    if ignore_file is not None:
        candidates = [project_root / ignore_file]
    else:
        candidates = [project_root / name for name in IGNORE_FILES]

    for path in candidates:
        if not path.exists():
            if ignore_file is not None:
                log.warning("ignore_file_missing", path=str(path))
            continue
        try:
            names = read_ignore_file(path)
        except MalformedIgnoreFile as e:
            log.warning("ignore_file_skipped", path=e.path, error=e.message)
            continue
        log.debug("ignore_file_loaded", path=str(path), count=len(names))
        ignore.update(names)

    return frozenset(ignore)
