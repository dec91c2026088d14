"""Reference cache for repeat scans.

Stores the raw module references extracted from each source file so an
unchanged file is never parsed twice.

Cache Strategy:
- One row per file: extracted references (JSON) plus the first syntax error
- File mtime + size as cache key
- Parse failures are never cached, so the file is retried next scan

Cache Format: SQLite database
Location: .depsweep_cache/ in project root
"""

import json
import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple

from .extractor import RawReference, ReferenceForm

CACHE_DIR_NAME = '.depsweep_cache'


class CachedFile:
    """Replayable extraction result for one file."""

    def __init__(self, references: List[RawReference], syntax_error: Optional[Tuple[int, int]] = None):
        self.references = references
        self.syntax_error = syntax_error


class ReferenceCache:
    """SQLite-backed cache of per-file references."""

    def __init__(self, project_root: Path, cache_dir: str | Path = CACHE_DIR_NAME):
        """Open (and create if needed) the cache database.

        Args:
            project_root: Root directory of the project being scanned
            cache_dir: Cache directory, relative to project_root unless absolute

        Raises:
            OSError: If the cache directory cannot be created
            sqlite3.Error: If the database cannot be opened or initialized
        """
        self.project_root = Path(project_root)
        cache_dir = Path(cache_dir)
        self.cache_dir = cache_dir if cache_dir.is_absolute() else self.project_root / cache_dir
        self.cache_file = self.cache_dir / 'references.db'

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(self.cache_file))
        try:
            self._init_database()
        except sqlite3.Error:
            self.close()
            raise

    def _init_database(self):
        """Create cache tables if they don't exist."""
        cursor = self.conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS file_references (
                file_path TEXT PRIMARY KEY,
                mtime REAL NOT NULL,
                size INTEGER NOT NULL,
                reference_data TEXT NOT NULL,
                syntax_error TEXT
            )
        ''')
        self.conn.commit()

    @staticmethod
    def _get_cache_key(file_path: Path) -> Optional[Tuple[float, int]]:
        """Return (mtime, size) for a file, or None if it cannot be stat'ed."""
        try:
            stat = file_path.stat()
        except OSError:
            return None
        return stat.st_mtime, stat.st_size

    def get_references(self, file_path: Path) -> Optional[CachedFile]:
        """Return cached references for an unchanged file, or None on miss.

        Args:
            file_path: Path to source file

        Returns:
            CachedFile or None
        """
        key = self._get_cache_key(file_path)
        if key is None:
            return None

        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT mtime, size, reference_data, syntax_error FROM file_references
            WHERE file_path = ?
        ''', (str(file_path),))

        result = cursor.fetchone()
        if not result:
            return None

        cached_mtime, cached_size, reference_data, syntax_error = result
        if (cached_mtime, cached_size) != key:
            return None

        try:
            references = [
                RawReference(r['specifier'], ReferenceForm(r['form']), r['line'])
                for r in json.loads(reference_data)
            ]
            error = tuple(json.loads(syntax_error)) if syntax_error else None
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None

        return CachedFile(references, error)

    def set_references(self, file_path: Path, references: List[RawReference],
                       syntax_error: Optional[Tuple[int, int]] = None):
        """Store the extraction result for a file.

        Args:
            file_path: Path to source file
            references: References extracted from the file
            syntax_error: (line, column) of the first recovered syntax error
        """
        key = self._get_cache_key(file_path)
        if key is None:
            return

        mtime, size = key
        reference_data = json.dumps([
            {'specifier': r.specifier, 'form': r.form.value, 'line': r.line}
            for r in references
        ])

        cursor = self.conn.cursor()
        cursor.execute('''
            INSERT OR REPLACE INTO file_references (file_path, mtime, size, reference_data, syntax_error)
            VALUES (?, ?, ?, ?, ?)
        ''', (str(file_path), mtime, size, reference_data,
              json.dumps(list(syntax_error)) if syntax_error else None))
        self.conn.commit()

    def clear(self) -> int:
        """Delete every cached entry.

        Returns:
            Number of entries removed
        """
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM file_references')
        removed = cursor.rowcount
        self.conn.commit()
        return removed

    def get_cache_stats(self) -> dict:
        """Return counts for the cache stats display."""
        cursor = self.conn.cursor()
        cursor.execute('SELECT COUNT(*), COUNT(syntax_error) FROM file_references')
        total_files, with_errors = cursor.fetchone()
        return {
            'total_files': total_files,
            'files_with_syntax_errors': with_errors,
        }

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
