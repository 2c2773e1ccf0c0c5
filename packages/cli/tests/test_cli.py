"""Tests for the CLI entry point and the YAML snapshot host."""

import types
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from buildlens_cli.cli import _build_log, main
from buildlens_cli.snapshot import SnapshotInspectionSource, load_snapshot
from buildlens_log.console import ConsoleBuildLog
from buildlens_log.memory import MemoryBuildLog
from buildlens_log.sqlite import SQLiteBuildLog

SNAPSHOT = """\
build_id: "1234"
vcs_url: https://github.com/acme/widgets.git
features:
  - type: GithubCommentingBuildFeature
    parameters: {username: bot, token: tok, branch: "{branch}"}
statistics: {total: 3, new_total: 1, old_total: 2, errors: 1, new_errors: 0, old_errors: 1}
inspection_types:
  - {id: 7, name: UnusedImport, count: 2}
  - {id: 8, name: Broken, count: -1}
changes:
  - Foo.java
  - Foo.java
  - {path: src/Bar.java, file_name: module/src/Bar.java}
findings:
  - {file: Foo.java, inspection_id: 7, line: 10, message: unused import, severity: 4}
  - {file: Foo.java, inspection_id: 8, line: 11, message: never shown, severity: 1}
"""

PATCH = "@@ -9,2 +9,3 @@\n context\n+import foo\n context\n"


def _write_snapshot(tmp_path, branch="42"):
    path = tmp_path / "build.yml"
    path.write_text(SNAPSHOT.replace("{branch}", branch))
    return str(path)


def _write_config(tmp_path, text=""):
    path = tmp_path / ".buildlens.yml"
    path.write_text(text)
    return str(path)


def _github():
    gh = MagicMock()
    gh.get_user.return_value.login = "bot"
    pr = gh.get_repo.return_value.get_pull.return_value
    pr.get_files.return_value = [types.SimpleNamespace(filename="Foo.java", patch=PATCH)]
    return gh


# ---------------------------------------------------------------------------
# Snapshot host
# ---------------------------------------------------------------------------


class TestLoadSnapshot:
    def test_loads_build(self, tmp_path):
        build = load_snapshot(_write_snapshot(tmp_path))
        assert build.build_id == "1234"
        assert build.vcs_root_urls() == ["https://github.com/acme/widgets.git"]
        assert build.get_build_features_of_type("GithubCommentingBuildFeature")[0].parameters["branch"] == "42"
        assert build.get_build_features_of_type("Other") == []
        assert isinstance(build.build_log, MemoryBuildLog)

    def test_changes_with_explicit_file_name(self, tmp_path):
        build = load_snapshot(_write_snapshot(tmp_path))
        changes = build.get_changed_files("SINCE_LAST_COMPLETE_BUILD", False)
        assert changes[-1].relative_path == "src/Bar.java"
        assert changes[-1].file_name == "module/src/Bar.java"

    def test_inspection_info(self, tmp_path):
        build = load_snapshot(_write_snapshot(tmp_path))
        info = SnapshotInspectionSource().get_inspection_info(build)
        assert info.statistics().errors == 1
        assert [t.name for t in info.inspection_types()] == ["UnusedImport", "Broken"]
        records = info.details(7, "Foo.java")
        assert len(records) == 1
        assert records[0].inspection_name == "UnusedImport"
        assert records[0].repeat_count == 1
        assert info.details(7, "Nope.java") == []

    def test_snapshot_without_inspections(self, tmp_path):
        path = tmp_path / "build.yml"
        path.write_text("build_id: 1\nchanges: [a.py]\n")
        build = load_snapshot(str(path))
        assert SnapshotInspectionSource().get_inspection_info(build) is None

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(str(tmp_path / "nope.yml"))


# ---------------------------------------------------------------------------
# Build log factory
# ---------------------------------------------------------------------------


class TestBuildLogFactory:
    def test_default_is_console(self):
        assert isinstance(_build_log({}, "1"), ConsoleBuildLog)

    def test_sqlite(self, tmp_path):
        log = _build_log({"log": "sqlite", "log_path": str(tmp_path / "log.db")}, "1")
        assert isinstance(log, SQLiteBuildLog)
        assert log.build_id == "1"
        log.close()

    def test_unknown_falls_back_to_console(self):
        assert isinstance(_build_log({"log": "s3"}, "1"), ConsoleBuildLog)


# ---------------------------------------------------------------------------
# report command
# ---------------------------------------------------------------------------


class TestReportCommand:
    def test_posts_review_and_prints_log(self, tmp_path, mocker):
        gh = _github()
        mock_connect = mocker.patch("buildlens_cli.commands.report.connect", return_value=gh)

        result = CliRunner().invoke(
            main, ["--config", _write_config(tmp_path), "report", "--snapshot", _write_snapshot(tmp_path)]
        )

        assert result.exit_code == 0, result.output
        assert "unused import On line: 10 with severity: 4" in result.output
        assert "never shown" not in result.output
        assert "Review posted to acme/widgets#42" in result.output
        assert mock_connect.call_args.kwargs["timeout"] == 15
        gh.get_repo.return_value.get_pull.return_value.create_review.assert_called_once()

    def test_no_submit_flag(self, tmp_path, mocker):
        gh = _github()
        mocker.patch("buildlens_cli.commands.report.connect", return_value=gh)

        result = CliRunner().invoke(
            main,
            ["--config", _write_config(tmp_path), "report", "--snapshot", _write_snapshot(tmp_path), "--no-submit"],
        )

        assert result.exit_code == 0, result.output
        assert "prepared but not submitted" in result.output
        gh.get_repo.return_value.get_pull.return_value.create_review.assert_not_called()

    def test_timeout_override(self, tmp_path, mocker):
        mock_connect = mocker.patch("buildlens_cli.commands.report.connect", return_value=_github())

        CliRunner().invoke(
            main,
            ["--config", _write_config(tmp_path), "report", "--snapshot", _write_snapshot(tmp_path), "--timeout", "3"],
        )

        assert mock_connect.call_args.kwargs["timeout"] == 3

    def test_non_numeric_branch_exits_nonzero(self, tmp_path, mocker):
        mock_connect = mocker.patch("buildlens_cli.commands.report.connect")

        result = CliRunner().invoke(
            main,
            ["--config", _write_config(tmp_path), "report", "--snapshot", _write_snapshot(tmp_path, "feature-x")],
        )

        assert result.exit_code == 1
        assert "CONFIGURATION_ERROR" in result.output
        mock_connect.assert_not_called()

    def test_build_without_feature_is_noop(self, tmp_path, mocker):
        mock_connect = mocker.patch("buildlens_cli.commands.report.connect")
        path = tmp_path / "build.yml"
        path.write_text("build_id: 7\nvcs_url: https://github.com/acme/widgets.git\nchanges: [Foo.java]\n")

        result = CliRunner().invoke(main, ["--config", _write_config(tmp_path), "report", "--snapshot", str(path)])

        assert result.exit_code == 0
        assert "Nothing to do" in result.output
        mock_connect.assert_not_called()

    def test_missing_snapshot_is_usage_error(self, tmp_path):
        result = CliRunner().invoke(
            main, ["--config", _write_config(tmp_path), "report", "--snapshot", str(tmp_path / "nope.yml")]
        )
        assert result.exit_code != 0
        assert "Snapshot file not found" in result.output


# ---------------------------------------------------------------------------
# log command
# ---------------------------------------------------------------------------


class TestLogCommand:
    def test_requires_sqlite_log(self, tmp_path):
        result = CliRunner().invoke(main, ["--config", _write_config(tmp_path), "log", "--build-id", "1234"])
        assert result.exit_code != 0
        assert "log: sqlite" in result.output

    def test_shows_persisted_report(self, tmp_path, mocker):
        mocker.patch("buildlens_cli.commands.report.connect", return_value=_github())
        db = tmp_path / "log.db"
        config = _write_config(tmp_path, f"log: sqlite\nlog_path: {db}\n")
        snapshot = _write_snapshot(tmp_path)

        report = CliRunner().invoke(main, ["--config", config, "report", "--snapshot", snapshot])
        assert report.exit_code == 0, report.output

        result = CliRunner().invoke(main, ["--config", config, "log", "--build-id", "1234"])
        assert result.exit_code == 0, result.output
        assert "Github PR Commenting" in result.output
        assert "Discovered Inspections:" in result.output

    def test_empty_build(self, tmp_path):
        config = _write_config(tmp_path, f"log: sqlite\nlog_path: {tmp_path / 'log.db'}\n")
        result = CliRunner().invoke(main, ["--config", config, "log", "--build-id", "nope"])
        assert result.exit_code == 0
        assert "No log entries found" in result.output
