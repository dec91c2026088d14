"""Module specifier normalization.

Turns raw module specifiers (``lodash/fp``, ``@babel/core/lib/x``) into the
package names they would be declared under in package.json.
"""
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional, Tuple

TYPES_SCOPE = '@types'


def is_local_specifier(specifier: str) -> bool:
    """Return True for relative and absolute file paths."""
    if specifier.startswith('.'):
        return True
    return PurePosixPath(specifier).is_absolute() or PureWindowsPath(specifier).is_absolute()


def normalize(specifier: str) -> Optional[str]:
    """Map a module specifier to its canonical package identifier.

    Args:
        specifier: Raw string from an import/require/export source clause

    Returns:
        ``@scope/name`` for scoped specifiers, the first path segment for
        everything else, or None for local paths and malformed scoped names
    """
    if not specifier or is_local_specifier(specifier):
        return None

    parts = specifier.split('/')
    if specifier.startswith('@'):
        if len(parts) < 2 or parts[0] == '@' or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"

    return parts[0]


def types_package_for(identifier: str) -> str:
    """Return the DefinitelyTyped package name for a canonical identifier.

    ``lodash`` -> ``@types/lodash``, ``@babel/core`` -> ``@types/babel__core``.
    """
    bare = identifier[1:] if identifier.startswith('@') else identifier
    return f"{TYPES_SCOPE}/{bare.replace('/', '__', 1)}"


def canonical_identifiers(specifier: str) -> Tuple[str, ...]:
    """Return every identifier a specifier marks as used.

    The types package is always included so a declared ``@types/*`` entry is
    never reported while its runtime package is in use. This also applies to
    ``@types/*`` specifiers themselves, which yields names like
    ``@types/types__node`` that nothing ever declares.
    """
    identifier = normalize(specifier)
    if identifier is None:
        return ()
    return (identifier, types_package_for(identifier))


def scope_of(identifier: str) -> Optional[str]:
    """Return ``@scope`` for a scoped identifier, else None."""
    if not identifier.startswith('@') or '/' not in identifier:
        return None
    return identifier.split('/', 1)[0]
