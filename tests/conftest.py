"""Shared test fixtures for the barn test suite.

Provides a temporary executables' root populated with small shell
scripts, and settings describing users and groups over it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from barn.config.settings import OptionsConfig, Settings
from barn.domain.models import Group, User


# ---------------------------------------------------------------------------
# Executable Fixtures
# ---------------------------------------------------------------------------


def write_script(root: Path, name: str, body: str, mode: int = 0o755) -> Path:
    """Write a /bin/sh script into ``root`` with the given permissions."""
    path = root / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(mode)
    return path


@pytest.fixture
def exec_root(tmp_path: Path) -> Path:
    """A root directory holding the scripts used across the suite."""
    root = tmp_path / "bin"
    root.mkdir()
    write_script(root, "backup.sh", "echo 'backing up'\necho 'warning: disk' 1>&2\necho done\n")
    write_script(root, "status.sh", "echo ok\n")
    write_script(root, "deploy.sh", "echo deploying\n")
    write_script(root, "broken.sh", "echo never\n", mode=0o644)
    (root / "subdir").mkdir()
    return root


@pytest.fixture
def make_script(exec_root: Path) -> Callable[..., Path]:
    """Factory adding extra scripts to ``exec_root``."""

    def _make(name: str, body: str, mode: int = 0o755) -> Path:
        return write_script(exec_root, name, body, mode)

    return _make


# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_users() -> list[User]:
    return [
        User(username="alice", password="pw1", groups=frozenset({"g1"})),
        User(username="bob", password="pw2", groups=frozenset({"deployers", "ghosts"})),
        User(username="carol", password="pw3", groups=frozenset()),
    ]


@pytest.fixture
def sample_groups() -> list[Group]:
    return [
        Group(name="g1", regex=r"^backup.*\.sh$"),
        Group(name="deployers", regex=r"deploy"),
        Group(name="everything", regex=r".*"),
        Group(name="passwordless", regex=r"^status\.sh$"),
    ]


@pytest.fixture
def settings(exec_root: Path, sample_users: list[User], sample_groups: list[Group]) -> Settings:
    """Settings over ``exec_root`` with alice in g1 and a passwordless status.sh."""
    return Settings(
        options=OptionsConfig(root=exec_root),
        users=sample_users,
        groups=sample_groups,
    )
