"""Exception hierarchy for depsweep.

Manifest errors are fatal to a scan. Parse and ignore-file errors are
recovered where they occur and only reduce precision.
"""
from pathlib import Path


class DepsweepError(Exception):
    """Base class for all depsweep errors."""


class ManifestError(DepsweepError):
    """The declared-dependency baseline could not be established."""


class ManifestNotFound(ManifestError):
    """No package.json exists at the project root."""

    def __init__(self, manifest_path: str | Path):
        self.manifest_path = Path(manifest_path)
        super().__init__(f"package.json not found: {self.manifest_path}")


class ManifestInvalid(ManifestError):
    """package.json exists but is not a JSON object."""

    def __init__(self, manifest_path: str | Path, message: str):
        self.manifest_path = Path(manifest_path)
        self.message = message
        super().__init__(f"Invalid package.json ({self.manifest_path}): {message}")


class ParseFailure(DepsweepError):
    """A single source file could not be read or parsed."""

    def __init__(self, path: str | Path, message: str):
        self.path = str(path)
        self.message = message
        super().__init__(f"Failed to parse {self.path}: {message}")


class MalformedIgnoreFile(DepsweepError):
    """An ignore source could not be read or parsed."""

    def __init__(self, path: str | Path, message: str):
        self.path = str(path)
        self.message = message
        super().__init__(f"Failed to parse ignore file {self.path}: {message}")
