"""
symshare Grants: Filesystem Probe.

The handful of raw filesystem queries the classifier and the reconciler
need, behind an abstract interface so both can be exercised against a
scripted fake instead of real directories.

All probes are read-only: nothing here creates, removes or follows a
symlink for any purpose other than answering a query.
"""

import os
from abc import ABC, abstractmethod
from typing import List


class FilesystemProbe(ABC):
    """Read-only filesystem queries consumed by the reconciliation engine."""

    @abstractmethod
    def list_directory(self, path: str) -> List[str]:
        """
        List the immediate children of a directory.

        Args:
            path: Directory to list

        Returns:
            Child paths (``path`` joined with each entry name), in whatever
            order the underlying storage returns them

        Raises:
            OSError: If the directory is absent or unreadable
        """

    @abstractmethod
    def is_symlink(self, path: str) -> bool:
        """Check whether ``path`` itself is a symlink (not followed)."""

    @abstractmethod
    def is_directory(self, path: str) -> bool:
        """Check whether ``path`` is a directory, following symlinks."""

    @abstractmethod
    def symlink_target(self, path: str) -> str:
        """
        Return the literal target text stored in a symlink.

        The target is returned as-is: not canonicalized and not resolved
        against the filesystem root.

        Raises:
            OSError: If ``path`` is not a symlink or cannot be read
        """

    @abstractmethod
    def target_exists(self, path: str) -> bool:
        """Check whether anything exists at ``path`` once symlinks are followed."""


class LocalProbe(FilesystemProbe):
    """Probe backed by the local filesystem via :mod:`os`."""

    def list_directory(self, path: str) -> List[str]:
        with os.scandir(path) as entries:
            return [os.path.join(path, entry.name) for entry in entries]

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def is_directory(self, path: str) -> bool:
        return os.path.isdir(path)

    def symlink_target(self, path: str) -> str:
        return os.readlink(path)

    def target_exists(self, path: str) -> bool:
        # os.path.exists follows the link and reports False for dangling
        # links, loops and permission errors alike.
        return os.path.exists(path)
