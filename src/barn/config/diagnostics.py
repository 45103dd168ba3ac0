"""Startup checks and access report for the executables' root.

Nothing here runs per request. The CLI calls these once after loading
the settings to fail fast on an unusable root, to warn about users
assigned to groups that do not exist, and to print which groups may run
each file.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from barn.config.settings import ConfigError, Settings

logger = logging.getLogger(__name__)


class ExecutableAccess(BaseModel):
    """Which groups may run one file in the root."""

    model_config = ConfigDict(frozen=True)

    filename: str
    groups: tuple[str, ...] = ()
    executable: bool = True

    def describe(self) -> str:
        if not self.executable:
            return "not an executable file"
        if not self.groups:
            return "not executable by any groups"
        return ", ".join(self.groups)


def check_executables_root(root: Path) -> None:
    """Verify the root is a directory we may execute files in.

    Raises:
        ConfigError: If the root is missing, not a directory, or lacks
            the owner execute bit.
    """
    if not root.is_dir():
        raise ConfigError(f"'{root}' either doesn't exist or isn't a directory")

    try:
        mode = root.stat().st_mode
    except OSError as e:
        raise ConfigError(f"Unable to get metadata for root dir: {e}") from e

    if os.name == "posix" and not mode & stat.S_IXUSR:
        raise ConfigError(f"No execute permission inside '{root}'")


def find_unknown_groups(settings: Settings) -> list[tuple[str, str]]:
    """Return ``(username, group)`` pairs naming a group that isn't configured."""
    known = {group.name for group in settings.groups}
    return [
        (user.username, name)
        for user in settings.users
        for name in sorted(user.groups)
        if name not in known
    ]


def describe_executables(settings: Settings) -> list[ExecutableAccess]:
    """List every regular file in the root with the groups that match it."""
    entries = []
    for path in sorted(settings.options.root.iterdir()):
        if not path.is_file():
            continue
        if os.name == "posix" and not path.stat().st_mode & stat.S_IXUSR:
            entries.append(ExecutableAccess(filename=path.name, executable=False))
            continue
        groups = tuple(g.name for g in settings.groups if g.matches(path.name))
        entries.append(ExecutableAccess(filename=path.name, groups=groups))
    return entries


def report(settings: Settings, location: str) -> None:
    """Print the startup summary and log any configuration warnings."""
    unknown = find_unknown_groups(settings)
    for username, group in unknown:
        logger.warning(
            "The user '%s' has been assigned a non-existent group '%s'", username, group
        )

    print("Groups allowed to run:")
    for entry in describe_executables(settings):
        print(f"  {entry.filename}: {entry.describe()}")

    options = settings.options
    try:
        root = options.root.resolve(strict=True)
    except OSError:
        root = options.root
    print(f"\nConfig path: {location}")
    print(f"Running on: {options.host}:{options.port}")
    print(f"Executables' root: {root}")
