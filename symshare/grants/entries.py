"""
symshare Grants: Classification Model.

One immutable classification per shared folder name, computed from the
primary catalogue and the read-grant/write-grant symlink overlays.

The model is a closed set of frozen dataclasses at three levels, combined
with ``Union`` rather than a class hierarchy:

    Classification      PrimaryOnly | PrimaryReadOnly | PrimaryReadWrite
                        | PrimaryIncorrect | PrimaryNonDirectory
                        | SecondaryIncorrect
    IncorrectKind       ReadIncorrect | ReadOkWriteIncorrect | WriteOnly
                        | WriteOnlyIncorrect
    SymlinkProblem      OrphanOrDifferentSymlink | NonSymlink

Every function dispatching on these ends in ``assert_never`` so that a
type checker flags any variant added without being handled.

Incorrect states are data, not errors: they are reported for display and
make a folder unservable for the capability it lacks.
"""

from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Dict, List, Mapping, Optional, Union, assert_never

from symshare.core.constants import ErrorCode


class ClassificationStateError(RuntimeError):
    """A classification was used in a state its operation does not accept.

    Raised for programming-contract violations only (for example overlaying
    a read grant twice). Never caught by the reconciler: it aborts the pass.
    """

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        super().__init__(message)
        self.error_code = error_code


# =============================================================================
# Symlink problems
# =============================================================================


@dataclass(frozen=True)
class OrphanOrDifferentSymlink:
    """A symlink whose literal target differs from the expected one.

    Attributes:
        target: Literal (non-canonicalized) target text
        is_orphan: True when nothing exists at the target
    """

    target: str
    is_orphan: bool


@dataclass(frozen=True)
class NonSymlink:
    """An overlay entry that is not a symlink at all."""

    is_dir: bool


SymlinkProblem = Union[OrphanOrDifferentSymlink, NonSymlink]


@dataclass(frozen=True)
class ReadObservation:
    """Read-grant entry seen on a folder that cannot take a read grant.

    ``problem`` is None when the symlink holds the expected target.
    """

    problem: Optional[SymlinkProblem] = None


@dataclass(frozen=True)
class WriteObservation:
    """Write-grant entry seen on a folder that cannot take a write grant.

    Recorded on an incorrect read grant, a catalogue non-directory, or a
    read-side entry without a folder. ``problem`` is None when the write
    symlink itself is correct.
    """

    write_name: str
    problem: Optional[SymlinkProblem] = None


# =============================================================================
# Incorrectness kinds (primary entry present)
# =============================================================================


@dataclass(frozen=True)
class ReadIncorrect:
    """Read grant is wrong, orphaned or not a symlink."""

    read: SymlinkProblem
    write: Optional[WriteObservation] = None


@dataclass(frozen=True)
class ReadOkWriteIncorrect:
    """Read grant is correct; write grant is wrong, orphaned or not a symlink."""

    write_name: str
    write: SymlinkProblem


@dataclass(frozen=True)
class WriteOnly:
    """Correct write grant without the read grant it requires."""

    write_name: str


@dataclass(frozen=True)
class WriteOnlyIncorrect:
    """Write grant without a read grant, and the write grant is itself wrong."""

    write_name: str
    write: SymlinkProblem


IncorrectKind = Union[ReadIncorrect, ReadOkWriteIncorrect, WriteOnly, WriteOnlyIncorrect]


# =============================================================================
# Classifications
# =============================================================================


@dataclass(frozen=True)
class PrimaryOnly:
    """Catalogue directory with no grant symlinks observed."""

    name: str


@dataclass(frozen=True)
class PrimaryReadOnly:
    """Catalogue directory with a correct read grant."""

    name: str


@dataclass(frozen=True)
class PrimaryReadWrite:
    """Catalogue directory with correct read and write grants."""

    name: str
    write_name: str


@dataclass(frozen=True)
class PrimaryIncorrect:
    """Catalogue directory whose grants are inconsistent."""

    name: str
    kind: IncorrectKind


@dataclass(frozen=True)
class PrimaryNonDirectory:
    """Catalogue slot that is not a directory.

    Never servable. Grant entries of the same name are recorded in ``read``
    and ``write`` so the listing can show them.
    """

    name: str
    path: str
    read: Optional[ReadObservation] = None
    write: Optional[WriteObservation] = None


@dataclass(frozen=True)
class SecondaryIncorrect:
    """Overlay entry with no catalogue entry of the same name.

    Attributes:
        name: Folder name
        is_read: True if found under the read-grant overlay, False for write
        problem: What was found there
        write: Write-grant entry of the same name, for a read-side entry
    """

    name: str
    is_read: bool
    problem: SymlinkProblem
    write: Optional[WriteObservation] = None


Classification = Union[
    PrimaryOnly,
    PrimaryReadOnly,
    PrimaryReadWrite,
    PrimaryIncorrect,
    PrimaryNonDirectory,
    SecondaryIncorrect,
]

EntriesMap = Dict[str, Classification]


# =============================================================================
# Predicates
# =============================================================================


def is_readable(entry: Classification) -> bool:
    """True if the folder is fully usable for reading."""
    return isinstance(entry, (PrimaryReadOnly, PrimaryReadWrite))


def is_writable(entry: Classification) -> bool:
    """True if the folder is fully usable for writing."""
    return isinstance(entry, PrimaryReadWrite)


def is_incorrect(entry: Classification) -> bool:
    """True for any classification that indicates a broken grant."""
    return isinstance(entry, (PrimaryIncorrect, PrimaryNonDirectory, SecondaryIncorrect))


def display_name(entry: Classification) -> str:
    """Folder name shown to administrators."""
    return entry.name


def write_name(entry: Classification) -> str:
    """Write-capability name of a read-write folder.

    Raises:
        ClassificationStateError: If ``entry`` is not read-write
    """
    if isinstance(entry, PrimaryReadWrite):
        return entry.write_name
    raise ClassificationStateError(
        f"write_name() requires a read-write classification, got {entry!r}"
    )


def readable_folders(entries: Mapping[str, Classification]) -> List[str]:
    """Sorted names of folders servable read-only (or better)."""
    return sorted(name for name, entry in entries.items() if is_readable(entry))


def writable_folders(entries: Mapping[str, Classification]) -> List[str]:
    """Sorted names of folders servable read-write."""
    return sorted(name for name, entry in entries.items() if is_writable(entry))


# =============================================================================
# Presentation
# =============================================================================


def describe_problem(problem: SymlinkProblem) -> str:
    if isinstance(problem, OrphanOrDifferentSymlink):
        if problem.is_orphan:
            return f"orphan symlink to '{problem.target}'"
        return f"symlink to unexpected target '{problem.target}'"
    elif isinstance(problem, NonSymlink):
        return "not a symlink (directory)" if problem.is_dir else "not a symlink (not a directory)"
    else:
        assert_never(problem)


def _observed(side: str, observation: Union[ReadObservation, WriteObservation, None]) -> str:
    if observation is None:
        return ""
    if observation.problem is None:
        return f"; {side} grant present"
    return f"; {side} grant incorrect: {describe_problem(observation.problem)}"


def describe_kind(kind: IncorrectKind) -> str:
    if isinstance(kind, ReadIncorrect):
        return f"read grant incorrect: {describe_problem(kind.read)}" + _observed("write", kind.write)
    elif isinstance(kind, ReadOkWriteIncorrect):
        return f"read ok but write grant incorrect: {describe_problem(kind.write)}"
    elif isinstance(kind, WriteOnly):
        return "write grant without read grant"
    elif isinstance(kind, WriteOnlyIncorrect):
        return f"write grant without read grant, and incorrect: {describe_problem(kind.write)}"
    else:
        assert_never(kind)


def describe(entry: Classification) -> str:
    """Human-readable status of one folder, as shown on the admin listing."""
    if isinstance(entry, PrimaryOnly):
        return "no grants"
    elif isinstance(entry, PrimaryReadOnly):
        return "read-only"
    elif isinstance(entry, PrimaryReadWrite):
        return f"read-write (write name '{entry.write_name}')"
    elif isinstance(entry, PrimaryIncorrect):
        return describe_kind(entry.kind)
    elif isinstance(entry, PrimaryNonDirectory):
        return (
            f"not a directory: {entry.path}"
            + _observed("read", entry.read)
            + _observed("write", entry.write)
        )
    elif isinstance(entry, SecondaryIncorrect):
        side = "read" if entry.is_read else "write"
        text = f"{side} grant without folder: {describe_problem(entry.problem)}"
        return text + _observed("write", entry.write)
    else:
        assert_never(entry)


def _tagged(value: Any) -> Any:
    if is_dataclass(value):
        record = {"type": type(value).__name__}
        for f in fields(value):
            record[f.name] = _tagged(getattr(value, f.name))
        return record
    return value


def as_record(entry: Classification) -> Dict[str, Any]:
    """JSON-friendly record of one classification.

    Every nested variant carries a ``type`` tag with its class name.
    """
    record = _tagged(entry)
    record["readable"] = is_readable(entry)
    record["writable"] = is_writable(entry)
    record["status"] = describe(entry)
    return record
