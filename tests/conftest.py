"""Shared pytest fixtures for symshare tests."""
import errno
import os
from pathlib import Path
from typing import Dict, List, Set

import pytest

from symshare.core.logging import Logger
from symshare.grants.probe import FilesystemProbe
from symshare.grants.reconciler import DirectoryReconciler

PRIMARY = "/srv/dirs"
READ_ROOT = "/srv/links/read"
WRITE_ROOT = "/srv/links/write"


class FakeProbe(FilesystemProbe):
    """Scripted in-memory probe.

    Directories to be listed are registered with their child names; every
    other query is answered from the sets below. Each call is recorded.
    """

    def __init__(self):
        self.listings: Dict[str, List[str]] = {}
        self.directories: Set[str] = set()
        self.symlinks: Dict[str, str] = {}
        self.resolvable: Set[str] = set()
        self.calls: List[tuple] = []

    # Scripting helpers

    def _child(self, root: str, name: str) -> str:
        self.listings.setdefault(root, [])
        self.listings[root].append(name)
        return f"{root}/{name}"

    def listing(self, root: str, *names: str) -> "FakeProbe":
        self.listings.setdefault(root, [])
        for name in names:
            self._child(root, name)
        return self

    def directory(self, root: str, name: str) -> str:
        path = self._child(root, name)
        self.directories.add(path)
        self.resolvable.add(path)
        return path

    def plain_file(self, root: str, name: str) -> str:
        path = self._child(root, name)
        self.resolvable.add(path)
        return path

    def symlink(self, root: str, name: str, target: str, exists: bool = True, is_dir: bool = False) -> str:
        path = self._child(root, name)
        self.symlinks[path] = target
        if exists:
            self.resolvable.add(path)
        if is_dir:
            self.directories.add(path)
        return path

    # FilesystemProbe

    def list_directory(self, path: str) -> List[str]:
        self.calls.append(("list_directory", path))
        if path not in self.listings:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        return [f"{path}/{name}" for name in self.listings[path]]

    def is_symlink(self, path: str) -> bool:
        self.calls.append(("is_symlink", path))
        return path in self.symlinks

    def is_directory(self, path: str) -> bool:
        self.calls.append(("is_directory", path))
        return path in self.directories

    def symlink_target(self, path: str) -> str:
        self.calls.append(("symlink_target", path))
        if path not in self.symlinks:
            raise OSError(errno.EINVAL, os.strerror(errno.EINVAL), path)
        return self.symlinks[path]

    def target_exists(self, path: str) -> bool:
        self.calls.append(("target_exists", path))
        return path in self.resolvable


@pytest.fixture
def probe() -> FakeProbe:
    """Fake probe with the three roots present and empty."""
    return FakeProbe().listing(PRIMARY).listing(READ_ROOT).listing(WRITE_ROOT)


@pytest.fixture
def quiet_logger() -> Logger:
    """Logger that only reports errors."""
    return Logger("symshare.test", level="ERROR")


@pytest.fixture
def reconciler(probe: FakeProbe, quiet_logger: Logger) -> DirectoryReconciler:
    """Reconciler over the fake probe."""
    return DirectoryReconciler(probe, PRIMARY, READ_ROOT, WRITE_ROOT, logger=quiet_logger)


@pytest.fixture
def share_roots(tmp_path: Path) -> Dict[str, str]:
    """Real primary, read and write roots under a temporary directory."""
    roots = {
        "primary": str(tmp_path / "dirs"),
        "read": str(tmp_path / "symlinks" / "read"),
        "write": str(tmp_path / "symlinks" / "write"),
    }
    for root in roots.values():
        os.makedirs(root)
    return roots
