"""Core sync logic for branchsync."""
