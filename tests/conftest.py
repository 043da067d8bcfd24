"""
Pytest configuration and shared fixtures.

Provides an isolated environment for every test plus throwaway git
repositories: an upstream repository with w1-* revision branches, a bare
origin, and a working clone of origin whose main branch records w1-24.
"""

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from branchsync.core.config import clear_cache

GitRunner = Callable[..., str]

# Contents of each upstream revision branch
UPSTREAM_TREES: dict[str, dict[str, str]] = {
    "w1-9": {
        "README.md": "# Base App 9\n",
        "app/codeunit.al": "codeunit 9\n",
    },
    "w1-24": {
        "README.md": "# Base App 24\n",
        "app/codeunit.al": "codeunit 24\n",
        "app/obsolete.al": "removed in 26\n",
    },
    "w1-26": {
        "README.md": "# Base App 26\n",
        "app/codeunit.al": "codeunit 26\n",
        "app/page.al": "page 26\n",
        ".github/upstream.yml": "upstream workflow, never copied\n",
    },
}

WORKFLOW = ".github/workflows/sync.yml"
WORKFLOW_CONTENT = "name: sync\non: schedule\n"


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep config files, env overrides and git identity out of the tests' way."""
    for name in (
        "UPSTREAM_URL",
        "BRANCH_PREFIX",
        "BRANCHSYNC_SOURCE_REMOTE",
        "BRANCHSYNC_TARGET_REMOTE",
        "BRANCHSYNC_TARGET_BRANCH",
        "BRANCHSYNC_PRESERVED_PATHS",
        "BRANCHSYNC_GIT_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)

    xdg = tmp_path / "xdg"
    xdg.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))

    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")

    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Git Helpers
# ==============================================================================


def run_git(repo: Path, *args: str) -> str:
    """Run git in repo and return stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def write_tree(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def commit_all(repo: Path, message: str) -> str:
    run_git(repo, "add", "-A")
    run_git(repo, "commit", "-q", "-m", message)
    return run_git(repo, "rev-parse", "HEAD")


@pytest.fixture
def git() -> GitRunner:
    """Provide the run_git helper to tests."""
    return run_git


# ==============================================================================
# Repository Fixtures
# ==============================================================================


@pytest.fixture
def upstream_repo(tmp_path: Path) -> Path:
    """Create an upstream repository with w1-9, w1-24, w1-26 and an unrelated branch."""
    repo = tmp_path / "upstream"
    repo.mkdir()
    run_git(repo, "init", "-q", "-b", "main")
    write_tree(repo, {"README.md": "# Upstream\n"})
    commit_all(repo, "Initial commit")

    for branch, files in UPSTREAM_TREES.items():
        run_git(repo, "checkout", "-q", "-b", branch, "main")
        run_git(repo, "rm", "-q", "-r", "--cached", ".")
        for path in list(repo.iterdir()):
            if path.name == ".git":
                continue
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
        write_tree(repo, files)
        commit_all(repo, f"Snapshot {branch}")

    run_git(repo, "checkout", "-q", "-b", "feature-x", "main")
    run_git(repo, "checkout", "-q", "main")
    return repo


@pytest.fixture
def origin_repo(tmp_path: Path) -> Path:
    """Create an empty bare repository acting as the target remote."""
    repo = tmp_path / "origin.git"
    repo.mkdir()
    run_git(repo, "init", "-q", "--bare", "-b", "main")
    return repo


@pytest.fixture
def empty_work_repo(tmp_path: Path, origin_repo: Path) -> Path:
    """Create a work repository with no commits whose origin is the empty bare repo."""
    repo = tmp_path / "work"
    repo.mkdir()
    run_git(repo, "init", "-q", "-b", "main")
    run_git(repo, "remote", "add", "origin", str(origin_repo))
    return repo


@pytest.fixture
def work_repo(empty_work_repo: Path) -> Path:
    """Create a work repository whose main already mirrors w1-24, pushed to origin."""
    repo = empty_work_repo
    files = {k: v for k, v in UPSTREAM_TREES["w1-24"].items() if not k.startswith(".github/")}
    files[WORKFLOW] = WORKFLOW_CONTENT
    write_tree(repo, files)
    commit_all(repo, "Sync to upstream w1-24")
    run_git(repo, "push", "-q", "-u", "origin", "main")
    return repo
