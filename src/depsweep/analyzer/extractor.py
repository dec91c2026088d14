"""Module reference extraction from JavaScript/TypeScript syntax trees.

Finds the specifier string of every construct that pulls in another module:

    import x from 'mod'              import 'mod'
    require('mod')                   import('mod')
    import fs = require('fs')        (TypeScript)
    export { a } from 'mod'          export * from 'mod'
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Tuple

from tree_sitter import Node, Tree

from depsweep.errors import ParseFailure
from .parser import LanguageParser


class ReferenceForm(str, Enum):
    """Syntactic form a reference was found in."""
    IMPORT = 'import'
    REQUIRE = 'require'
    DYNAMIC_IMPORT = 'dynamic_import'
    REEXPORT = 'reexport'
    REEXPORT_ALL = 'reexport_all'


@dataclass(frozen=True)
class RawReference:
    specifier: str
    form: ReferenceForm
    line: int


SyntaxErrorCallback = Callable[[int, int], None]


def _text(node: Node, source_code: bytes) -> str:
    return source_code[node.start_byte:node.end_byte].decode('utf-8', errors='replace')


def _string_value(node: Optional[Node], source_code: bytes) -> Optional[str]:
    """Return the contents of a plain string literal, None for anything else."""
    if node is None or node.type != 'string':
        return None
    return _text(node, source_code).strip('"\'')


def _line(node: Node) -> int:
    return node.start_point[0] + 1


class ReferenceExtractor:
    """Walks a syntax tree and yields RawReference values.

    The walk uses an explicit stack and a node-type dispatch table, so
    references nested anywhere (a require() inside a function, an import
    inside an ERROR node) are found.
    """

    def __init__(self, error_recovery: bool = True):
        """Initialize extractor.

        Args:
            error_recovery: If True, files with syntax errors are still walked
                and whatever the parser recovered is reported. If False, any
                syntax error raises ParseFailure.
        """
        self.error_recovery = error_recovery
        self._handlers: Dict[str, Callable[[Node, bytes], Optional[RawReference]]] = {
            'import_statement': self._from_import,
            'call_expression': self._from_call,
            'export_statement': self._from_export,
        }

    def extract_file(self, file_path: str | Path,
                     on_syntax_error: Optional[SyntaxErrorCallback] = None) -> Iterator[RawReference]:
        """Lazily parse a file and yield its references.

        Nothing is read until the first item is requested.

        Args:
            file_path: Source file; its extension selects the dialect
            on_syntax_error: Called with (line, column) of the first syntax
                error when the file is walked despite errors

        Raises:
            ParseFailure: Unreadable file, unsupported extension, or a syntax
                error while error recovery is off
        """
        parser = LanguageParser.from_file_extension(file_path)
        if parser is None:
            raise ParseFailure(file_path, "unsupported file extension")

        tree, source_code = parser.parse_file(file_path)
        yield from self._extract_checked(tree, source_code, file_path, on_syntax_error)

    def extract_source(self, source_code: str | bytes, dialect: str = 'javascript',
                       file_path: str = '<memory>',
                       on_syntax_error: Optional[SyntaxErrorCallback] = None) -> Iterator[RawReference]:
        """Like extract_file, for in-memory source."""
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')

        tree = LanguageParser(dialect).parse_source(source_code)
        yield from self._extract_checked(tree, source_code, file_path, on_syntax_error)

    def _extract_checked(self, tree: Tree, source_code: bytes, file_path,
                         on_syntax_error: Optional[SyntaxErrorCallback]) -> Iterator[RawReference]:
        error = self.first_syntax_error(tree)
        if error is not None:
            line, column = error
            if not self.error_recovery:
                raise ParseFailure(file_path, f"syntax error at line {line}, column {column}")
            if on_syntax_error is not None:
                on_syntax_error(line, column)

        yield from self.extract_references(tree, source_code)

    def extract_references(self, tree: Tree, source_code: bytes) -> Iterator[RawReference]:
        """Yield every module reference in source order."""
        stack = [tree.root_node]

        while stack:
            node = stack.pop()

            handler = self._handlers.get(node.type)
            if handler is not None:
                reference = handler(node, source_code)
                if reference is not None:
                    yield reference

            # Reversed so siblings pop in document order
            stack.extend(reversed(node.named_children))

    @staticmethod
    def first_syntax_error(tree: Tree) -> Optional[Tuple[int, int]]:
        """Return 1-based (line, column) of the first ERROR or MISSING node."""
        root = tree.root_node
        if not root.has_error:
            return None

        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == 'ERROR' or node.is_missing:
                row, column = node.start_point
                return row + 1, column + 1
            stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))

        # has_error was set but no node carries it; report the root
        return 1, 1

    def _from_import(self, node: Node, source_code: bytes) -> Optional[RawReference]:
        specifier = _string_value(node.child_by_field_name('source'), source_code)
        if specifier is not None:
            return RawReference(specifier, ReferenceForm.IMPORT, _line(node))

        # TypeScript: import fs = require('fs')
        for child in node.named_children:
            if child.type == 'import_require_clause':
                source_node = child.child_by_field_name('source')
                if source_node is None:
                    source_node = next((c for c in child.named_children if c.type == 'string'), None)
                specifier = _string_value(source_node, source_code)
                if specifier is not None:
                    return RawReference(specifier, ReferenceForm.REQUIRE, _line(node))
        return None

    def _from_call(self, node: Node, source_code: bytes) -> Optional[RawReference]:
        function_node = node.child_by_field_name('function')
        if function_node is None:
            return None

        if function_node.type == 'import':
            form = ReferenceForm.DYNAMIC_IMPORT
        elif function_node.type == 'identifier' and _text(function_node, source_code) == 'require':
            form = ReferenceForm.REQUIRE
        else:
            return None

        args_node = node.child_by_field_name('arguments')
        if args_node is None or args_node.named_child_count == 0:
            return None

        # Template literals and computed specifiers are not resolvable
        specifier = _string_value(args_node.named_children[0], source_code)
        if specifier is None:
            return None
        return RawReference(specifier, form, _line(node))

    def _from_export(self, node: Node, source_code: bytes) -> Optional[RawReference]:
        specifier = _string_value(node.child_by_field_name('source'), source_code)
        if specifier is None:
            return None

        is_wildcard = any(child.type in ('*', 'namespace_export') for child in node.children)
        form = ReferenceForm.REEXPORT_ALL if is_wildcard else ReferenceForm.REEXPORT
        return RawReference(specifier, form, _line(node))
