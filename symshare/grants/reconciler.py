"""
symshare Grants: Directory Reconciler.

Merges the three directory listings by folder name, strictly in order:

    1. primary catalogue    -> classify_primary
    2. read-grant overlay   -> overlay_read    (or classify_secondary, read side)
    3. write-grant overlay  -> overlay_write   (or classify_secondary, write side)

A grant entry landing on a name that cannot take it (a read grant on a
non-directory, a write grant without a usable read grant) is recorded on
that entry via annotate_read/annotate_write and logged as a warning.

Every pass is computed from scratch; nothing is cached between passes.
Names not visited by a later stage are carried forward unchanged, so the
result holds exactly one classification per name in the union of the
three listings.

Example:
    >>> reconciler = DirectoryReconciler(LocalProbe(), "/srv/dirs", "/srv/read", "/srv/write")
    >>> entries = reconciler.reconcile()
    >>> readable_folders(entries)
    ['docs', 'photos']
"""

import errno
from collections import Counter
from typing import Callable, Dict, Optional

from symshare.core.constants import ErrorCode
from symshare.core.logging import Logger, get_logger
from symshare.grants.classifier import EntryClassifier, folder_name
from symshare.grants.entries import (
    Classification,
    EntriesMap,
    PrimaryOnly,
    PrimaryReadOnly,
    is_incorrect,
    is_readable,
    is_writable,
)
from symshare.grants.probe import FilesystemProbe
from symshare.grants.write_names import WriteNamePolicy


class ReconcileError(Exception):
    """A directory listing or symlink read failed; the pass was aborted."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.path = path
        self.error_code = error_code
        super().__init__(message)

    @classmethod
    def from_os_error(cls, stage: str, exc: OSError) -> "ReconcileError":
        if exc.errno == errno.ENOENT:
            code = ErrorCode.NOT_FOUND
        elif exc.errno in (errno.EACCES, errno.EPERM):
            code = ErrorCode.PERMISSION_DENIED
        else:
            code = ErrorCode.INTERNAL_ERROR
        return cls(f"{stage} stage failed: {exc}", path=exc.filename, error_code=code)


class DirectoryReconciler:
    """
    Computes the folder name -> classification map for three directory roots.

    Attributes:
        probe: Filesystem queries, including directory listing
        primary_root: Primary catalogue directory
        read_root: Read-grant overlay directory
        write_root: Write-grant overlay directory
        classifier: Entry classifier bound to the overlay roots
    """

    def __init__(
        self,
        probe: FilesystemProbe,
        primary_root: str,
        read_root: str,
        write_root: str,
        write_name_policy: Optional[WriteNamePolicy] = None,
        logger: Optional[Logger] = None,
    ):
        self.probe = probe
        self.primary_root = primary_root
        self.read_root = read_root
        self.write_root = write_root
        self.classifier = EntryClassifier(probe, read_root, write_root, write_name_policy)
        self.logger = logger or get_logger("symshare.reconciler")

    def reconcile(self) -> EntriesMap:
        """
        Run one full reconciliation pass.

        Returns:
            Folder name -> classification, covering every name found in any
            of the three directories

        Raises:
            ReconcileError: If any directory cannot be listed or any symlink
                cannot be read. No partial map is returned.
            ClassificationStateError: If the stage order was broken (a bug)
        """
        primaries = self._run_stage("primary", self._primary_stage)
        after_read = self._run_stage("read", self._read_stage, primaries)
        entries = self._run_stage("write", self._write_stage, after_read)

        self._log_summary(entries)
        return entries

    def _run_stage(self, stage: str, step: Callable[..., EntriesMap], *args) -> EntriesMap:
        with self.logger.add_context(stage=stage):
            try:
                return step(*args)
            except OSError as e:
                self.logger.error("Reconciliation aborted", error=str(e))
                raise ReconcileError.from_os_error(stage, e) from e

    def _primary_stage(self) -> EntriesMap:
        entries: EntriesMap = {}
        for path in self.probe.list_directory(self.primary_root):
            entry = self.classifier.classify_primary(path)
            entries[entry.name] = entry

        self.logger.debug("Listed primary catalogue", root=self.primary_root, count=len(entries))
        return entries

    def _read_stage(self, primaries: EntriesMap) -> EntriesMap:
        entries: EntriesMap = dict(primaries)
        for path in self.probe.list_directory(self.read_root):
            name = folder_name(path)
            existing = primaries.get(name)

            if existing is None:
                entries[name] = self.classifier.classify_secondary(path, is_read_side=True)
            elif isinstance(existing, PrimaryOnly):
                entries[name] = self.classifier.overlay_read(existing, path)
            else:
                entries[name] = self.classifier.annotate_read(existing, path)
                self.logger.warning("Read grant on a non-directory", name=name, path=path)

        self.logger.debug("Overlaid read grants", root=self.read_root, count=len(entries))
        return entries

    def _write_stage(self, after_read: EntriesMap) -> EntriesMap:
        entries: EntriesMap = dict(after_read)
        for path in self.probe.list_directory(self.write_root):
            name = folder_name(path)
            existing = after_read.get(name)

            if existing is None:
                entries[name] = self.classifier.classify_secondary(path, is_read_side=False)
            elif isinstance(existing, (PrimaryOnly, PrimaryReadOnly)):
                entries[name] = self.classifier.overlay_write(existing, path)
            else:
                entries[name] = self.classifier.annotate_write(existing, path)
                self.logger.warning(
                    "Write grant on a folder without a usable read grant",
                    name=name,
                    kind=type(existing).__name__,
                )

        self.logger.debug("Overlaid write grants", root=self.write_root, count=len(entries))
        return entries

    def _log_summary(self, entries: EntriesMap) -> None:
        counts: Dict[str, int] = Counter()
        for entry in entries.values():
            if is_writable(entry):
                counts["writable"] += 1
            elif is_readable(entry):
                counts["readable"] += 1
            elif is_incorrect(entry):
                counts["incorrect"] += 1
            else:
                counts["unshared"] += 1

        self.logger.info(
            "Reconciled shared folders",
            total=len(entries),
            writable=counts["writable"],
            readonly=counts["readable"],
            incorrect=counts["incorrect"],
            unshared=counts["unshared"],
        )

    def classification_of(self, name: str) -> Optional[Classification]:
        """Classification of a single folder from a fresh pass (None if unknown)."""
        return self.reconcile().get(name)
