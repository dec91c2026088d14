"""End-to-end tests for the scan and clean commands."""
import json

import pytest
from structlog.testing import capture_logs
from typer.testing import CliRunner

from depsweep.main import analyze_project, app

runner = CliRunner()

LODASH_PROJECT = (
    {"dependencies": {"lodash": "*", "@types/lodash": "*", "leftpad": "*"}},
    {"src/index.js": "import _ from 'lodash';\n"},
)


def verdicts_by_name(report):
    return {v.name: v for v in report.verdicts}


class TestAnalyzeProject:

    def test_types_package_follows_runtime_package(self, make_project):
        root = make_project(*LODASH_PROJECT)
        verdicts = verdicts_by_name(analyze_project(root, use_cache=False))

        assert verdicts['lodash'].is_used
        assert verdicts['lodash'].evidence == ('src/index.js',)
        assert verdicts['@types/lodash'].is_used
        assert not verdicts['leftpad'].is_used

    def test_react_dom_is_used_with_react(self, make_project):
        root = make_project(
            {"dependencies": {"react": "^18", "react-dom": "^18"}},
            {"src/App.tsx": "import React from 'react';\nexport const App = () => <main />;\n"},
        )
        verdicts = verdicts_by_name(analyze_project(root, use_cache=False))
        assert verdicts['react-dom'].is_used
        assert verdicts['react-dom'].evidence == ('(implied by react)',)

    def test_scope_sibling_is_used(self, make_project):
        root = make_project(
            {"dependencies": {"@acme/button": "*", "@acme/icons": "*"}},
            {"ui.js": "import { Button } from '@acme/button';\n"},
        )
        verdicts = verdicts_by_name(analyze_project(root, use_cache=False))
        assert verdicts['@acme/icons'].is_used

    def test_ignored_dependency(self, make_project):
        root = make_project({"dependencies": {"leftpad": "*", "lodash": "*"}},
                            {"a.js": "require('lodash');"})
        verdicts = verdicts_by_name(analyze_project(root, ignore=frozenset({'leftpad', 'lodash'}),
                                                    use_cache=False))

        assert verdicts['leftpad'].is_used
        assert verdicts['leftpad'].evidence == ('(ignored)',)
        assert verdicts['lodash'].evidence == ('(ignored)',)

    def test_dev_dependencies_only_with_flag(self, make_project):
        root = make_project({"dependencies": {}, "devDependencies": {"jest": "*"}}, {})
        assert analyze_project(root, use_cache=False).verdicts == []
        assert [v.name for v in analyze_project(root, include_dev=True, use_cache=False).unused] == ['jest']

    def test_cache_is_written_in_project(self, make_project):
        root = make_project(*LODASH_PROJECT)
        first = analyze_project(root)
        second = analyze_project(root)

        assert (root / ".depsweep_cache" / "references.db").exists()
        assert first.verdicts == second.verdicts

    def test_unusable_cache_dir_is_not_fatal(self, make_project):
        root = make_project(*LODASH_PROJECT)
        (root / ".depsweep_cache").write_text("not a directory", encoding="utf-8")

        with capture_logs() as logs:
            report = analyze_project(root)

        assert [v.name for v in report.unused] == ['leftpad']
        assert any(entry['event'] == 'cache_unavailable' for entry in logs)


class TestScanCommand:

    def test_reports_unused(self, make_project):
        root = make_project(*LODASH_PROJECT)
        result = runner.invoke(app, ["scan", str(root), "--no-cache"])

        assert result.exit_code == 0, result.output
        assert "Found 1 unused dependencies" in result.output
        assert "leftpad" in result.output

    def test_clean_project(self, make_project):
        root = make_project({"dependencies": {"lodash": "*"}}, {"a.js": "require('lodash/fp');"})
        result = runner.invoke(app, ["scan", str(root), "--no-cache"])

        assert result.exit_code == 0, result.output
        assert "No unused dependencies found!" in result.output

    def test_missing_manifest_exits_nonzero(self, make_project):
        root = make_project(None, {"a.js": "require('lodash');"})
        result = runner.invoke(app, ["scan", str(root), "--no-cache"])

        assert result.exit_code == 1
        assert "package.json not found" in result.output

    def test_missing_project_path(self, tmp_path):
        result = runner.invoke(app, ["scan", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_corrupt_file_does_not_fail_scan(self, make_project):
        root = make_project(
            {"dependencies": {"lodash": "*"}},
            {"good.js": "require('lodash');", "bad.js": "import { from ;;; }}}\nconst = require(;\n"},
        )
        result = runner.invoke(app, ["scan", str(root), "--no-cache", "--verbose"])

        assert result.exit_code == 0, result.output
        assert "No unused dependencies found!" in result.output
        assert "bad.js" in result.output

    def test_ignore_file_option(self, make_project):
        root = make_project(*LODASH_PROJECT)
        (root / "keep.txt").write_text("leftpad\n", encoding="utf-8")
        result = runner.invoke(app, ["scan", str(root), "--no-cache", "--ignore", "keep.txt"])

        assert result.exit_code == 0, result.output
        assert "No unused dependencies found!" in result.output

    def test_parallel_jobs(self, make_project):
        root = make_project(*LODASH_PROJECT)
        result = runner.invoke(app, ["scan", str(root), "--no-cache", "--jobs", "3"])
        assert result.exit_code == 0, result.output
        assert "leftpad" in result.output

    def test_scan_without_usable_cache(self, make_project):
        root = make_project(*LODASH_PROJECT)
        (root / ".depsweep_cache").write_text("not a directory", encoding="utf-8")
        result = runner.invoke(app, ["scan", str(root)])

        assert result.exit_code == 0, result.output
        assert "Found 1 unused dependencies" in result.output
        assert (root / ".depsweep_cache").is_file()


class TestCleanCommand:

    def test_removes_unused_with_backup(self, make_project):
        root = make_project(*LODASH_PROJECT)
        result = runner.invoke(app, ["clean", "--project", str(root), "--yes", "--no-cache"])

        assert result.exit_code == 0, result.output
        assert "Removed 1 unused dependencies." in result.output
        assert (root / "package.json.bak").exists()

        data = json.loads((root / "package.json").read_text(encoding="utf-8"))
        assert data["dependencies"] == {"lodash": "*", "@types/lodash": "*"}

    def test_dry_run_changes_nothing(self, make_project):
        root = make_project(*LODASH_PROJECT)
        before = (root / "package.json").read_text(encoding="utf-8")
        result = runner.invoke(app, ["clean", "--project", str(root), "--dry-run", "--no-cache"])

        assert result.exit_code == 0, result.output
        assert "Dry run enabled" in result.output
        assert (root / "package.json").read_text(encoding="utf-8") == before
        assert not (root / "package.json.bak").exists()

    def test_declined_confirmation(self, make_project):
        root = make_project(*LODASH_PROJECT)
        result = runner.invoke(app, ["clean", "--project", str(root), "--no-cache"], input="n\n")

        assert result.exit_code == 0, result.output
        assert "Aborted" in result.output
        assert not (root / "package.json.bak").exists()

    @pytest.mark.parametrize("package", ["lodash", "not-declared"])
    def test_targeting_used_or_unknown_package(self, make_project, package):
        root = make_project(*LODASH_PROJECT)
        result = runner.invoke(app, ["clean", package, "--project", str(root), "--yes", "--no-cache"])

        assert result.exit_code == 0, result.output
        assert "either used or not found" in result.output
        assert not (root / "package.json.bak").exists()

    def test_targeting_unused_package(self, make_project):
        root = make_project(
            {"dependencies": {"leftpad": "*", "moment": "*"}},
            {"a.js": "console.log('no imports');"},
        )
        result = runner.invoke(app, ["clean", "moment", "--project", str(root), "--yes", "--no-cache"])

        assert result.exit_code == 0, result.output
        data = json.loads((root / "package.json").read_text(encoding="utf-8"))
        assert data["dependencies"] == {"leftpad": "*"}


class TestMisc:

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "depsweep" in result.output

    def test_cache_clear(self, make_project):
        root = make_project(*LODASH_PROJECT)
        analyze_project(root)
        result = runner.invoke(app, ["cache", "clear", str(root)])

        assert result.exit_code == 0, result.output
        assert "Cache cleared" in result.output

    def test_cache_stats(self, make_project):
        root = make_project(*LODASH_PROJECT)
        analyze_project(root)
        result = runner.invoke(app, ["cache", "stats", str(root)])

        assert result.exit_code == 0, result.output
        assert "Files Cached" in result.output

    @pytest.mark.parametrize("command", ["clear", "stats"])
    def test_cache_commands_report_bad_config(self, make_project, clean_env, command):
        root = make_project(*LODASH_PROJECT)
        clean_env.setenv("DEPSWEEP_WORKERS", "many")
        result = runner.invoke(app, ["cache", command, str(root)])

        assert result.exit_code == 1
        assert "DEPSWEEP_WORKERS must be an integer" in result.output

    def test_cache_commands_report_unusable_cache_dir(self, make_project):
        root = make_project(*LODASH_PROJECT)
        (root / ".depsweep_cache").write_text("not a directory", encoding="utf-8")
        result = runner.invoke(app, ["cache", "stats", str(root)])

        assert result.exit_code == 1
        assert "Cache unavailable" in result.output
