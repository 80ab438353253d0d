"""
Pre-requisite checks.

Verifies the local command line tools used by the stage scripts are
installed before anything touches the cloud.
"""

import shutil
from typing import Callable, Iterable, Optional

from streambench.errors import PreflightError


def check_prerequisites(
    tools: Iterable[str],
    which: Callable[[str], Optional[str]] = shutil.which,
) -> None:
    """
    Check that every required tool can be invoked.

    Tools are checked in order and the first missing one stops the check.

    Args:
        tools: Executable names, e.g. ["az", "jq"]
        which: Resolver returning the tool's path or None (shutil.which)

    Raises:
        PreflightError: Naming the first tool that is not found
    """
    for tool in tools:
        if not which(tool):
            raise PreflightError(tool)
