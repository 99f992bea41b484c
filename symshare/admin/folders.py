"""Directory creation issued by an administrator.

These are the only operations in symshare that modify the filesystem. The
reconciler itself only reads.
"""

import errno
import os
from typing import Iterable

from symshare.core.constants import ErrorCode
from symshare.core.validators import ValidationError, validate_folder_name


class FolderError(Exception):
    """Creating a folder or directory root failed."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def create_folder(primary_root: str, name: str) -> str:
    """Create a new shared folder directly under the primary catalogue.

    Args:
        primary_root: Primary catalogue directory
        name: New folder name

    Returns:
        Path of the created directory

    Raises:
        FolderError: INVALID_INPUT for a bad name, CONFLICT if it exists,
            NOT_FOUND/PERMISSION_DENIED/INTERNAL_ERROR on other failures
    """
    try:
        validate_folder_name(name)
    except ValidationError as e:
        raise FolderError(str(e), e.error_code)

    path = f"{primary_root}/{name}"
    try:
        os.mkdir(path)
    except FileExistsError:
        raise FolderError(f"Folder already exists: {name}", ErrorCode.CONFLICT)
    except OSError as e:
        if e.errno == errno.ENOENT:
            code = ErrorCode.NOT_FOUND
        elif e.errno in (errno.EACCES, errno.EPERM):
            code = ErrorCode.PERMISSION_DENIED
        else:
            code = ErrorCode.INTERNAL_ERROR
        raise FolderError(f"Failed to create folder {name}: {e}", code)
    return path


def ensure_directories(roots: Iterable[str]) -> None:
    """Create each directory root (and its parents) if missing.

    Raises:
        FolderError: If a root cannot be created
    """
    for root in roots:
        try:
            os.makedirs(root, exist_ok=True)
        except OSError as e:
            raise FolderError(f"Failed to create directory {root}: {e}")
