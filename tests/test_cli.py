"""
Tests for the branchsync CLI.

Runs the Typer app against real throwaway repositories and checks output
and exit codes.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

from conftest import WORKFLOW, WORKFLOW_CONTENT, GitRunner
from typer.testing import CliRunner

from branchsync import __version__
from branchsync.cli import app
from branchsync.cli.errors import ExitCode

runner = CliRunner()


def invoke(repo: Path, upstream: Path, *args: str):
    return runner.invoke(app, ["-C", str(repo), "--upstream-url", str(upstream), *args])


class TestSyncCommand:
    """Tests for running branchsync without a subcommand."""

    def test_full_sync(
        self, work_repo: Path, upstream_repo: Path, origin_repo: Path, git: GitRunner
    ) -> None:
        result = invoke(work_repo, upstream_repo)

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Current version: w1-24" in result.output
        assert "Latest upstream: w1-26" in result.output
        assert "Pushed to remote" in result.output
        assert git(origin_repo, "log", "-1", "--pretty=%B", "main") == "Sync to upstream w1-26"
        assert (work_repo / WORKFLOW).read_text() == WORKFLOW_CONTENT

    def test_second_run_reports_up_to_date(self, work_repo: Path, upstream_repo: Path) -> None:
        invoke(work_repo, upstream_repo)

        result = invoke(work_repo, upstream_repo)

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "already on newest version" in result.output

    def test_dry_run(self, work_repo: Path, upstream_repo: Path, git: GitRunner) -> None:
        before = git(work_repo, "rev-parse", "main")

        result = invoke(work_repo, upstream_repo, "--dry-run")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Update available" in result.output
        assert git(work_repo, "rev-parse", "main") == before

    def test_no_push(
        self, work_repo: Path, upstream_repo: Path, origin_repo: Path, git: GitRunner
    ) -> None:
        before = git(origin_repo, "rev-parse", "main")

        result = invoke(work_repo, upstream_repo, "--no-push")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Push skipped" in result.output
        assert git(origin_repo, "rev-parse", "main") == before
        assert git(work_repo, "log", "-1", "--pretty=%B") == "Sync to upstream w1-26"

    def test_upstream_url_from_env(
        self, work_repo: Path, upstream_repo: Path, monkeypatch, git: GitRunner
    ) -> None:
        monkeypatch.setenv("UPSTREAM_URL", str(upstream_repo))

        result = runner.invoke(app, ["-C", str(work_repo), "--no-push"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert git(work_repo, "remote", "get-url", "upstream") == str(upstream_repo)

    def test_no_matching_branches_exit_code(
        self, work_repo: Path, upstream_repo: Path, git: GitRunner
    ) -> None:
        before = git(work_repo, "rev-parse", "main")

        result = invoke(work_repo, upstream_repo, "--branch-prefix", "de-")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "de-<number>" in result.output
        assert git(work_repo, "rev-parse", "main") == before

    def test_not_a_git_repository(self, tmp_path: Path, upstream_repo: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        result = invoke(plain, upstream_repo)

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Not a git repository" in result.output

    def test_absolute_preserved_path_rejected(self, work_repo: Path, upstream_repo: Path) -> None:
        result = invoke(work_repo, upstream_repo, "--preserve", "/etc")

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Invalid configuration" in result.output

    def test_invalid_prefix_rejected(self, work_repo: Path, upstream_repo: Path) -> None:
        result = invoke(work_repo, upstream_repo, "--branch-prefix", "w1*")

        assert result.exit_code == ExitCode.USER_ERROR

    def test_project_config_file(
        self, work_repo: Path, upstream_repo: Path, git: GitRunner
    ) -> None:
        (work_repo / ".github" / "branchsync.json").write_text(
            '{"commit_message_template": "Mirror {revision}"}'
        )

        result = invoke(work_repo, upstream_repo, "--no-push")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert git(work_repo, "log", "-1", "--pretty=%B") == "Mirror w1-26"

    def test_project_config_found_from_subdirectory(
        self, work_repo: Path, upstream_repo: Path, git: GitRunner
    ) -> None:
        (work_repo / ".github" / "branchsync.json").write_text(
            '{"commit_message_template": "Mirror {revision}"}'
        )

        result = invoke(work_repo / "app", upstream_repo, "--no-push")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert git(work_repo, "log", "-1", "--pretty=%B") == "Mirror w1-26"

    def test_project_env_found_from_subdirectory(
        self, work_repo: Path, upstream_repo: Path, monkeypatch, git: GitRunner
    ) -> None:
        (work_repo / ".github" / "branchsync.env").write_text(f"UPSTREAM_URL={upstream_repo}\n")
        monkeypatch.setenv("UPSTREAM_URL", "placeholder")
        monkeypatch.delenv("UPSTREAM_URL")

        result = runner.invoke(app, ["-C", str(work_repo / "app"), "--dry-run"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert git(work_repo, "remote", "get-url", "upstream") == str(upstream_repo)

    def test_interrupt_exit_code(self, work_repo: Path, upstream_repo: Path) -> None:
        controller = MagicMock()
        controller.sync.side_effect = KeyboardInterrupt

        with patch("branchsync.cli.sync.build_controller", return_value=controller):
            result = invoke(work_repo, upstream_repo)

        assert result.exit_code == ExitCode.SIGINT
        assert "Interrupted" in result.output

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestStatusCommand:
    """Tests for branchsync status."""

    def test_update_needed(self, work_repo: Path, upstream_repo: Path, git: GitRunner) -> None:
        before = git(work_repo, "rev-parse", "main")

        result = invoke(work_repo, upstream_repo, "status")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "w1-24" in result.output
        assert "w1-26" in result.output
        assert "Update needed" in result.output
        assert git(work_repo, "rev-parse", "main") == before

    def test_up_to_date(self, work_repo: Path, upstream_repo: Path) -> None:
        invoke(work_repo, upstream_repo)

        result = invoke(work_repo, upstream_repo, "status")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Up to date" in result.output


class TestBranchesCommand:
    """Tests for branchsync branches."""

    def test_lists_revisions(self, work_repo: Path, upstream_repo: Path) -> None:
        result = invoke(work_repo, upstream_repo, "branches")

        assert result.exit_code == ExitCode.SUCCESS, result.output
        for label in ("w1-9", "w1-24", "w1-26", "latest"):
            assert label in result.output
        assert "feature-x" not in result.output

    def test_no_revisions(self, work_repo: Path, upstream_repo: Path) -> None:
        result = invoke(work_repo, upstream_repo, "--branch-prefix", "de-", "branches")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "No de-<number> branches" in result.output
