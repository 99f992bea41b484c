"""
symshare Grants - Reconciliation of shared folders and their grant symlinks.

Public API:
-----------

Probe:
    FilesystemProbe: Abstract read-only filesystem queries
    LocalProbe: Probe backed by the local filesystem

Classification model:
    PrimaryOnly, PrimaryReadOnly, PrimaryReadWrite, PrimaryIncorrect,
    PrimaryNonDirectory, SecondaryIncorrect
    is_readable, is_writable, display_name, write_name, describe, as_record

Engine:
    EntryClassifier: Pure state transitions per entry
    DirectoryReconciler: Three-stage merge of the directory listings

Usage Example:
--------------

    from symshare.grants import DirectoryReconciler, LocalProbe, writable_folders

    reconciler = DirectoryReconciler(
        LocalProbe(), "/tmp/wdav_dirs", "/tmp/wdav_symlinks/read", "/tmp/wdav_symlinks/write"
    )
    entries = reconciler.reconcile()
    print(writable_folders(entries))
"""

from symshare.grants.classifier import EntryClassifier, folder_name
from symshare.grants.entries import (
    Classification,
    ClassificationStateError,
    EntriesMap,
    IncorrectKind,
    NonSymlink,
    OrphanOrDifferentSymlink,
    PrimaryIncorrect,
    PrimaryNonDirectory,
    PrimaryOnly,
    PrimaryReadOnly,
    PrimaryReadWrite,
    ReadIncorrect,
    ReadObservation,
    ReadOkWriteIncorrect,
    SecondaryIncorrect,
    SymlinkProblem,
    WriteObservation,
    WriteOnly,
    WriteOnlyIncorrect,
    as_record,
    describe,
    display_name,
    is_incorrect,
    is_readable,
    is_writable,
    readable_folders,
    writable_folders,
    write_name,
)
from symshare.grants.probe import FilesystemProbe, LocalProbe
from symshare.grants.reconciler import DirectoryReconciler, ReconcileError
from symshare.grants.write_names import WriteNamePolicy, checked, identity_write_name

__all__ = [
    # Probe
    "FilesystemProbe",
    "LocalProbe",
    # Classifications
    "Classification",
    "EntriesMap",
    "PrimaryOnly",
    "PrimaryReadOnly",
    "PrimaryReadWrite",
    "PrimaryIncorrect",
    "PrimaryNonDirectory",
    "SecondaryIncorrect",
    # Incorrectness detail
    "IncorrectKind",
    "ReadIncorrect",
    "ReadOkWriteIncorrect",
    "WriteOnly",
    "WriteOnlyIncorrect",
    "ReadObservation",
    "WriteObservation",
    "SymlinkProblem",
    "OrphanOrDifferentSymlink",
    "NonSymlink",
    # Predicates
    "is_readable",
    "is_writable",
    "is_incorrect",
    "display_name",
    "write_name",
    "readable_folders",
    "writable_folders",
    "describe",
    "as_record",
    # Engine
    "EntryClassifier",
    "DirectoryReconciler",
    "folder_name",
    "ReconcileError",
    "ClassificationStateError",
    # Write names
    "WriteNamePolicy",
    "identity_write_name",
    "checked",
]
