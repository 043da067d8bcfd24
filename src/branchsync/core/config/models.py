"""
Configuration data models for branchsync.

These models define the structure of .github/branchsync.json and
~/.config/branchsync/config.json files, with validation and type safety
via Pydantic.
"""

from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_UPSTREAM_URL = "https://github.com/StefanMaron/MSDyn365BC.Code.History.git"
DEFAULT_BRANCH_PREFIX = "w1-"


class SyncConfig(BaseModel):
    """
    Settings for mirroring the newest upstream revision branch.

    Example:
        >>> config = SyncConfig(branch_prefix="de-")
        >>> config.commit_message("de-26")
        'Sync to upstream de-26'
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    source_url: str = Field(
        default=DEFAULT_UPSTREAM_URL,
        min_length=1,
        description="URL of the upstream repository holding the revision branches",
    )
    branch_prefix: str = Field(
        default=DEFAULT_BRANCH_PREFIX,
        min_length=1,
        description="Prefix of revision branches; the rest of the name is the number",
    )
    source_remote: str = Field(
        default="upstream",
        min_length=1,
        description="Remote name used for the upstream repository",
    )
    target_remote: str = Field(
        default="origin",
        min_length=1,
        description="Remote the target branch is published to",
    )
    target_branch: str = Field(
        default="main",
        min_length=1,
        description="Branch that receives the mirrored tree",
    )
    preserved_paths: list[str] = Field(
        default_factory=lambda: [".github"],
        description="Relative path prefixes never deleted or overwritten during sync",
    )
    commit_message_template: str = Field(
        default="Sync to upstream {revision}",
        description="Commit message; {revision} is replaced by the synced revision",
    )
    git_timeout: int = Field(
        default=600,
        ge=1,
        description="Seconds before a single git command is abandoned",
    )

    @field_validator("preserved_paths")
    @classmethod
    def validate_preserved_paths(cls, v: list[str]) -> list[str]:
        """Normalize preserved paths to relative POSIX prefixes."""
        normalized: list[str] = []
        for raw in v:
            stripped = raw.strip()
            if stripped.startswith("/"):
                raise ValueError(f"Preserved path must be relative: {raw!r}")
            path = PurePosixPath(stripped.strip("/"))
            if ".." in path.parts:
                raise ValueError(f"Preserved path must not contain '..': {raw!r}")
            cleaned = str(path)
            if cleaned in ("", "."):
                raise ValueError("Preserved path must not be empty or '.'")
            if cleaned == ".git" or cleaned.startswith(".git/"):
                # .git is always preserved, listing it is redundant
                continue
            if cleaned not in normalized:
                normalized.append(cleaned)
        return normalized

    @field_validator("commit_message_template")
    @classmethod
    def validate_commit_message_template(cls, v: str) -> str:
        """The revision must appear in the message; it is the only record of sync state."""
        if "{revision}" not in v:
            raise ValueError("commit_message_template must contain '{revision}'")
        try:
            v.format(revision="x")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Invalid commit_message_template: {e}") from e
        return v

    @field_validator("branch_prefix")
    @classmethod
    def validate_branch_prefix(cls, v: str) -> str:
        if any(ch in v for ch in " *?[~^:\\"):
            raise ValueError(f"branch_prefix contains characters invalid in a branch name: {v!r}")
        return v

    def commit_message(self, revision: str) -> str:
        return self.commit_message_template.format(revision=revision)

    @property
    def branch_pattern(self) -> str:
        """Glob matching all candidate revision branches."""
        return f"{self.branch_prefix}*"
