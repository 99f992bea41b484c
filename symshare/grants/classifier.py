"""
symshare Grants: Entry Classifier.

Pure state transitions from one classification to the next. The classifier
owns no filesystem access of its own: every observation comes from the
injected :class:`FilesystemProbe`, and only when a path that may hold a
symlink must be inspected.

Transitions follow the fixed pipeline order:

    classify_primary     path                 -> PrimaryOnly | PrimaryNonDirectory
    overlay_read         PrimaryOnly          -> PrimaryReadOnly | PrimaryIncorrect
    overlay_write        PrimaryReadOnly      -> PrimaryReadWrite | PrimaryIncorrect
                         PrimaryOnly          -> PrimaryIncorrect (write without read)
    annotate_read        PrimaryNonDirectory  -> same, with read grant recorded
    annotate_write       PrimaryIncorrect(ReadIncorrect) | PrimaryNonDirectory
                         | SecondaryIncorrect (read side) -> same, with write recorded
    classify_secondary   path, side           -> SecondaryIncorrect

Expected symlink targets are compared to the literal symlink text with
plain string equality. "/srv/read/docs/" does not match "/srv/read/docs".
"""

from dataclasses import replace
from pathlib import PurePosixPath
from typing import Optional, Union

from symshare.core.validators import ValidationError, validate_folder_name
from symshare.grants.entries import (
    Classification,
    ClassificationStateError,
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
)
from symshare.grants.probe import FilesystemProbe
from symshare.grants.write_names import WriteNamePolicy, checked, identity_write_name


def folder_name(path: str) -> str:
    """Folder name of ``path``: its final component.

    Raises:
        ClassificationStateError: If the final component is empty or ``..``
    """
    name = PurePosixPath(path).name
    try:
        validate_folder_name(name)
    except ValidationError as e:
        raise ClassificationStateError(f"Invalid folder path {path!r}: {e}")
    return name


class EntryClassifier:
    """
    Classifies catalogue and overlay entries for one set of directory roots.

    Attributes:
        probe: Filesystem queries
        read_root: Read-grant overlay directory (no trailing slash)
        write_root: Write-grant overlay directory (no trailing slash)
        write_name_policy: Derives a folder's write name from its name
    """

    def __init__(
        self,
        probe: FilesystemProbe,
        read_root: str,
        write_root: str,
        write_name_policy: Optional[WriteNamePolicy] = None,
    ):
        self.probe = probe
        self.read_root = read_root
        self.write_root = write_root
        self.write_name_policy = checked(write_name_policy) if write_name_policy else identity_write_name

    def expected_read_target(self, name: str) -> str:
        """Literal target a correct read-grant symlink for ``name`` holds."""
        return f"{self.read_root}/{name}"

    def expected_write_target(self, write_name: str) -> str:
        """Literal target a correct write-grant symlink for ``write_name`` holds."""
        return f"{self.write_root}/{write_name}"

    def _inspect(self, path: str, expected_target: str) -> Optional[SymlinkProblem]:
        """Compare the overlay entry at ``path`` with ``expected_target``.

        Returns:
            None if ``path`` is a symlink holding exactly ``expected_target``,
            otherwise the problem found
        """
        if not self.probe.is_symlink(path):
            return NonSymlink(is_dir=self.probe.is_directory(path))

        target = self.probe.symlink_target(path)
        if target == expected_target:
            return None
        return OrphanOrDifferentSymlink(target=target, is_orphan=not self.probe.target_exists(path))

    def _problem_of(self, path: str) -> SymlinkProblem:
        """Inspect an overlay entry for which no target is correct."""
        if not self.probe.is_symlink(path):
            return NonSymlink(is_dir=self.probe.is_directory(path))
        target = self.probe.symlink_target(path)
        return OrphanOrDifferentSymlink(target=target, is_orphan=not self.probe.target_exists(path))

    def classify_primary(self, path: str) -> Union[PrimaryOnly, PrimaryNonDirectory]:
        """Classify an entry found directly under the primary catalogue."""
        name = folder_name(path)
        if self.probe.is_directory(path):
            return PrimaryOnly(name=name)
        return PrimaryNonDirectory(name=name, path=path)

    def overlay_read(self, existing: Classification, path: str) -> Classification:
        """
        Layer the read-grant overlay entry at ``path`` onto ``existing``.

        Args:
            existing: Must be :class:`PrimaryOnly`
            path: Overlay entry with the same folder name

        Raises:
            ClassificationStateError: If ``existing`` is not PrimaryOnly
        """
        if not isinstance(existing, PrimaryOnly):
            raise ClassificationStateError(
                f"overlay_read expects PrimaryOnly, got {existing!r}"
            )

        name = existing.name
        problem = self._inspect(path, self.expected_read_target(name))
        if problem is None:
            return PrimaryReadOnly(name=name)
        return PrimaryIncorrect(name=name, kind=ReadIncorrect(read=problem))

    def overlay_write(self, existing: Classification, path: str) -> Classification:
        """
        Layer the write-grant overlay entry at ``path`` onto ``existing``.

        A correct write grant promotes read-only to read-write. On a folder
        without a read grant it only flags write-without-read.

        Args:
            existing: Must be :class:`PrimaryReadOnly` or :class:`PrimaryOnly`
            path: Overlay entry with the same folder name

        Raises:
            ClassificationStateError: If ``existing`` is in any other state
        """
        if not isinstance(existing, (PrimaryReadOnly, PrimaryOnly)):
            raise ClassificationStateError(
                f"overlay_write expects PrimaryReadOnly or PrimaryOnly, got {existing!r}"
            )

        name = existing.name
        write_name = self.write_name_policy(name)
        problem = self._inspect(path, self.expected_write_target(write_name))

        if isinstance(existing, PrimaryReadOnly):
            if problem is None:
                return PrimaryReadWrite(name=name, write_name=write_name)
            return PrimaryIncorrect(
                name=name, kind=ReadOkWriteIncorrect(write_name=write_name, write=problem)
            )

        if problem is None:
            return PrimaryIncorrect(name=name, kind=WriteOnly(write_name=write_name))
        return PrimaryIncorrect(
            name=name, kind=WriteOnlyIncorrect(write_name=write_name, write=problem)
        )

    def annotate_read(self, existing: Classification, path: str) -> Classification:
        """
        Record a read-grant overlay entry on a catalogue non-directory.

        Raises:
            ClassificationStateError: Unless ``existing`` is a PrimaryNonDirectory
                with no read observation yet
        """
        if not (isinstance(existing, PrimaryNonDirectory) and existing.read is None):
            raise ClassificationStateError(
                f"annotate_read expects a non-directory entry, got {existing!r}"
            )

        problem = self._inspect(path, self.expected_read_target(existing.name))
        return replace(existing, read=ReadObservation(problem=problem))

    def annotate_write(self, existing: Classification, path: str) -> Classification:
        """
        Record a write-grant overlay entry on a folder that cannot take one.

        The entry keeps its classification; the write observation is kept for
        display. Accepted states are an incorrect read grant, a catalogue
        non-directory, and a read-side entry without a folder.

        Raises:
            ClassificationStateError: For any other state, or if a write
                observation was already recorded
        """
        if isinstance(existing, PrimaryIncorrect) and isinstance(existing.kind, ReadIncorrect):
            recorded = existing.kind.write
        elif isinstance(existing, PrimaryNonDirectory):
            recorded = existing.write
        elif isinstance(existing, SecondaryIncorrect) and existing.is_read:
            recorded = existing.write
        else:
            raise ClassificationStateError(
                f"annotate_write expects an entry without a usable read grant, got {existing!r}"
            )
        if recorded is not None:
            raise ClassificationStateError(f"write grant already recorded on {existing!r}")

        write_name = self.write_name_policy(existing.name)
        observation = WriteObservation(
            write_name=write_name,
            problem=self._inspect(path, self.expected_write_target(write_name)),
        )
        if isinstance(existing, PrimaryIncorrect):
            return replace(existing, kind=replace(existing.kind, write=observation))
        return replace(existing, write=observation)

    def classify_secondary(self, path: str, is_read_side: bool) -> SecondaryIncorrect:
        """Classify an overlay entry that has no catalogue entry."""
        return SecondaryIncorrect(
            name=folder_name(path), is_read=is_read_side, problem=self._problem_of(path)
        )
