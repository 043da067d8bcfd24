"""Allow ``python -m branchsync``."""

from branchsync.cli import cli_main

cli_main()
