"""Tree-sitter parser for JavaScript and TypeScript dialects."""
from pathlib import Path
from typing import Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript

from depsweep.errors import ParseFailure


class LanguageParser:
    """Dialect-aware parser using the tree-sitter v0.22+ API."""

    SUPPORTED_EXTENSIONS = {
        '.js': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.jsx': 'jsx',
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
    }

    DIALECTS = ('javascript', 'jsx', 'typescript', 'tsx')

    def __init__(self, dialect: str):
        """Initialize parser for given dialect.

        Args:
            dialect: One of 'javascript', 'jsx', 'typescript', 'tsx'

        Raises:
            ValueError: If dialect is not supported
        """
        self.dialect = dialect
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Build a Parser bound to the grammar for this dialect.

        The JavaScript grammar parses JSX natively, so plain scripts and
        ``.jsx`` files share it. TypeScript needs its TSX variant for JSX.
        """
        if self.dialect not in self.DIALECTS:
            raise ValueError(f"Unsupported dialect: {self.dialect}")

        if self.dialect == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.dialect == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            lang = Language(tsjavascript.language())

        return Parser(lang)

    def parse_source(self, source_code: bytes) -> Tree:
        """Parse in-memory source. Never fails: errors become ERROR nodes."""
        return self.parser.parse(source_code)

    def parse_file(self, file_path: str | Path) -> tuple[Tree, bytes]:
        """Read and parse a file.

        Args:
            file_path: Path to source file to parse

        Returns:
            Tuple of (tree, source bytes)

        Raises:
            ParseFailure: If the file cannot be read
        """
        file_path = Path(file_path)
        try:
            source_code = file_path.read_bytes()
        except OSError as e:
            raise ParseFailure(file_path, e.strerror or str(e)) from e

        return self.parse_source(source_code), source_code

    @classmethod
    def dialect_for(cls, file_path: str | Path) -> Optional[str]:
        return cls.SUPPORTED_EXTENSIONS.get(Path(file_path).suffix.lower())

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Args:
            file_path: Path to determine dialect from

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        dialect = cls.dialect_for(file_path)
        if dialect:
            return cls(dialect)
        return None
