"""
Git implementation of the VersionControl protocol.

Runs the ``git`` executable through subprocess for every operation. The
repository itself is located with GitPython so that a project directory
nested inside a repository resolves to the repository's work tree.

The implementation uses:
- `git fetch` with explicit refspecs to mirror source branches
- `git for-each-ref` to list remote-tracking branches
- `git archive` streamed through tarfile to materialize a commit's tree
- `git push --porcelain` to detect non-fast-forward rejections
"""

from __future__ import annotations

import logging
import subprocess
import tarfile
from collections.abc import Iterable
from pathlib import Path

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

from branchsync.core.errors import GitError, NotAGitRepositoryError, PublishRejected

logger = logging.getLogger(__name__)

# Markers git prints when a push is refused because the remote moved
REJECTION_MARKERS = ("[rejected]", "non-fast-forward", "fetch first", "stale info")


def discover_work_tree(path: Path) -> Path | None:
    """Return the work tree root of the repository containing path, or None."""
    try:
        repo = Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None
    if repo.working_tree_dir is None:
        return None
    return Path(repo.working_tree_dir).resolve()


class GitBackend:
    """
    Version control backend driving the git command line.

    Example:
        >>> backend = GitBackend(Path("."))
        >>> backend.ensure_remote("upstream", "https://example.com/mirror.git")
        >>> backend.fetch_branches("upstream", ["w1-*"])
        >>> sorted(backend.list_branches("upstream"))
        ['w1-24', 'w1-26']
    """

    DEFAULT_TIMEOUT = 600

    def __init__(self, repo_path: Path | None = None, timeout: int = DEFAULT_TIMEOUT):
        """
        Initialize the backend.

        Args:
            repo_path: Path inside a git repository (defaults to current directory)
            timeout: Seconds before any single git command is abandoned

        Raises:
            NotAGitRepositoryError: If repo_path is not inside a git repository
        """
        self.repo_path = repo_path or Path.cwd()
        self.timeout = timeout

        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NotAGitRepositoryError(f"Not a git repository: {self.repo_path}") from e

        if self.repo.working_tree_dir is None:
            raise NotAGitRepositoryError(f"Repository has no work tree: {self.repo_path}")

        self._work_tree = Path(self.repo.working_tree_dir).resolve()

    @property
    def work_tree(self) -> Path:
        return self._work_tree

    def _run(
        self,
        args: list[str],
        *,
        input_data: str | None = None,
    ) -> subprocess.CompletedProcess[str]:
        cmd = ["git"] + args

        logger.debug("Running git command: %s", " ".join(cmd))

        try:
            return subprocess.run(
                cmd,
                cwd=self._work_tree,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                input=input_data,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            raise GitError("git not found in PATH", command=cmd) from e

    def _run_git(self, args: list[str], *, check: bool = True) -> str:
        """
        Run ``git <args>`` in the work tree and return stripped stdout.

        Raises:
            GitError: On a non-zero exit status, unless check is False.
        """
        result = self._run(args)

        if check and result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            raise GitError(
                f"Git command failed: git {' '.join(args)}",
                command=["git"] + args,
                stderr=stderr,
            )

        return result.stdout.strip() if result.stdout else ""

    def _ref_exists(self, ref: str) -> bool:
        return self._run(["show-ref", "--verify", "--quiet", ref]).returncode == 0

    @staticmethod
    def _branch_ref(branch: str, remote: str | None = None) -> str:
        if remote:
            return f"refs/remotes/{remote}/{branch}"
        return f"refs/heads/{branch}"

    # ------------------------------------------------------------------
    # Remotes
    # ------------------------------------------------------------------

    def ensure_remote(self, name: str, url: str) -> None:
        existing = self._run(["remote", "get-url", name])
        if existing.returncode != 0:
            self._run_git(["remote", "add", name, url])
            logger.info("Added remote %s: %s", name, url)
        elif existing.stdout.strip() != url:
            self._run_git(["remote", "set-url", name, url])
            logger.info("Updated remote %s: %s", name, url)
        else:
            logger.debug("Remote %s already points at %s", name, url)

    def fetch(self, remote: str) -> None:
        self._run_git(["fetch", "--quiet", remote])
        logger.info("Fetched %s", remote)

    def fetch_branches(self, remote: str, patterns: Iterable[str]) -> None:
        refspecs = [f"+refs/heads/{p}:refs/remotes/{remote}/{p}" for p in patterns]
        self._run_git(["fetch", "--quiet", "--no-tags", remote, *refspecs])
        logger.info("Fetched %s branches from %s", ", ".join(patterns), remote)

    def list_branches(self, remote: str) -> set[str]:
        prefix = f"refs/remotes/{remote}/"
        output = self._run_git(["for-each-ref", "--format=%(refname)", prefix])

        branches: set[str] = set()
        for line in output.splitlines():
            line = line.strip()
            if not line.startswith(prefix):
                continue
            name = line[len(prefix) :]
            if name != "HEAD":
                branches.add(name)
        return branches

    def resolve_revision(self, remote: str, branch: str) -> str:
        ref = self._branch_ref(branch, remote)
        return self._run_git(["rev-parse", "--verify", f"{ref}^{{commit}}"])

    # ------------------------------------------------------------------
    # Trees and branches
    # ------------------------------------------------------------------

    def get_tree_snapshot(self, revision: str, dest: Path) -> None:
        """
        Extract the tree of ``revision`` into ``dest`` via ``git archive``.

        The archive is streamed straight into tarfile so the whole tree is
        never buffered in memory.
        """
        cmd = ["git", "archive", "--format=tar", revision]
        logger.debug("Running git command: %s", " ".join(cmd))

        try:
            proc = subprocess.Popen(
                cmd,
                cwd=self._work_tree,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitError("git not found in PATH", command=cmd) from e

        assert proc.stdout is not None and proc.stderr is not None
        try:
            with tarfile.open(fileobj=proc.stdout, mode="r|") as archive:
                archive.extractall(dest, filter="tar")
        except tarfile.TarError as e:
            proc.kill()
            proc.wait()
            stderr = proc.stderr.read().decode(errors="replace").strip()
            raise GitError(
                f"Failed to extract archive of {revision}: {e}",
                command=cmd,
                stderr=stderr,
            ) from e
        finally:
            proc.stdout.close()

        try:
            returncode = proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            raise GitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e

        stderr = proc.stderr.read().decode(errors="replace").strip()
        proc.stderr.close()
        if returncode != 0:
            raise GitError(f"Git command failed: {' '.join(cmd)}", command=cmd, stderr=stderr)

        logger.info("Extracted %s into %s", revision[:12], dest)

    def branch_exists(self, branch: str, remote: str | None = None) -> bool:
        return self._ref_exists(self._branch_ref(branch, remote))

    def get_tip_commit_message(self, branch: str, remote: str | None = None) -> str | None:
        ref = self._branch_ref(branch, remote)
        if not self._ref_exists(ref):
            return None
        return self._run_git(["log", "-1", "--pretty=%B", ref])

    def checkout(self, branch: str, remote: str | None = None) -> None:
        head = self._run(["symbolic-ref", "--quiet", "HEAD"])
        # HEAD can name a branch that has no commits yet in a fresh repository
        on_branch = head.returncode == 0 and head.stdout.strip() == self._branch_ref(branch)

        if remote and self.branch_exists(branch, remote):
            # -B resets an existing local branch, discarding unpublished commits
            self._run_git(["checkout", "--quiet", "-B", branch, "--track", f"{remote}/{branch}"])
            logger.info("Checked out %s at %s/%s", branch, remote, branch)
        elif self.branch_exists(branch):
            if on_branch:
                logger.debug("Already on %s", branch)
                return
            self._run_git(["checkout", "--quiet", branch])
            logger.info("Checked out %s", branch)
        elif on_branch:
            logger.debug("On unborn branch %s", branch)
        else:
            self._run_git(["checkout", "--quiet", "--orphan", branch])
            logger.info("Created orphan branch %s", branch)

    # ------------------------------------------------------------------
    # Index, commit, publish
    # ------------------------------------------------------------------

    def stage_all(self) -> None:
        self._run_git(["add", "-A"])

    def diff_cached_is_empty(self) -> bool:
        result = self._run(["diff", "--cached", "--quiet"])
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise GitError(
            "Git command failed: git diff --cached --quiet",
            command=["git", "diff", "--cached", "--quiet"],
            stderr=result.stderr.strip(),
        )

    def diff_cached_name_status(self) -> list[str]:
        output = self._run_git(["diff", "--cached", "--name-status"])
        return [line for line in output.splitlines() if line.strip()]

    def commit(self, message: str) -> str:
        self._run_git(["commit", "--quiet", "-m", message])
        sha = self._run_git(["rev-parse", "HEAD"])
        logger.info("Committed %s: %s", sha[:8], message)
        return sha

    def push(self, remote: str, branch: str) -> None:
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        result = self._run(["push", "--porcelain", remote, refspec])

        if result.returncode == 0:
            logger.info("Pushed %s to %s", branch, remote)
            return

        output = f"{result.stdout}\n{result.stderr}".strip()
        if any(marker in output for marker in REJECTION_MARKERS):
            raise PublishRejected(remote, branch, stderr=output)

        raise GitError(
            f"Git command failed: git push {remote} {branch}",
            command=["git", "push", "--porcelain", remote, refspec],
            stderr=result.stderr.strip(),
        )
