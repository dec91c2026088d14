"""Tests for module specifier normalization."""
import pytest

from depsweep.analyzer.normalizer import (
    canonical_identifiers,
    normalize,
    scope_of,
    types_package_for,
)


class TestLocalSpecifiers:
    """Relative and absolute paths never name a package."""

    @pytest.mark.parametrize("specifier", [
        "./local",
        "../utils/helpers",
        ".",
        "..",
        "./components/Button.jsx",
        "/usr/lib/node/module.js",
        "/abs",
        "C:\\project\\lib\\index.js",
        "C:/project/lib/index.js",
    ])
    def test_local_paths_have_no_identifier(self, specifier):
        assert normalize(specifier) is None
        assert canonical_identifiers(specifier) == ()

    def test_empty_specifier(self):
        assert normalize("") is None


class TestScopedSpecifiers:
    """@scope/name/... always reduces to @scope/name."""

    @pytest.mark.parametrize("specifier", [
        "@acme/button",
        "@acme/button/dist/index.js",
        "@acme/button/a/b/c/d",
    ])
    def test_trailing_path_depth_is_ignored(self, specifier):
        assert normalize(specifier) == "@acme/button"

    @pytest.mark.parametrize("specifier", ["@acme", "@", "@/button", "@acme/"])
    def test_malformed_scoped_reference(self, specifier):
        assert normalize(specifier) is None


class TestUnscopedSpecifiers:

    @pytest.mark.parametrize("specifier, expected", [
        ("lodash", "lodash"),
        ("lodash/fp", "lodash"),
        ("lodash/fp/map", "lodash"),
        ("react-dom/client", "react-dom"),
        ("fs", "fs"),
        ("node:fs", "node:fs"),
    ])
    def test_first_segment(self, specifier, expected):
        assert normalize(specifier) == expected


class TestTypesPackage:

    def test_unscoped(self):
        assert types_package_for("lodash") == "@types/lodash"

    def test_scoped(self):
        assert types_package_for("@babel/core") == "@types/babel__core"

    def test_canonical_identifiers_include_types(self):
        assert canonical_identifiers("lodash/fp") == ("lodash", "@types/lodash")
        assert canonical_identifiers("@babel/core/lib/x") == ("@babel/core", "@types/babel__core")

    def test_types_identifier_is_generated_even_for_types_packages(self):
        # Over-generation is kept: the extra name is harmless since nothing declares it
        assert canonical_identifiers("@types/node") == ("@types/node", "@types/types__node")


class TestScopeOf:

    def test_scoped(self):
        assert scope_of("@acme/button") == "@acme"

    def test_unscoped(self):
        assert scope_of("lodash") is None
        assert scope_of("@acme") is None
