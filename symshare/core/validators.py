"""
symshare Core: Input Validators.

This module provides validation for folder names and the configuration
structure consumed by the reconciler and the admin server.
"""
from typing import Any, Dict

from symshare.core.constants import PARENT_DIR_MARKER, ErrorCode, Limits


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_folder_name(name: Any) -> bool:
    """Validate a shared folder name.

    A folder name is a single path component: non-empty, not the parent
    directory marker, without separators or NUL bytes.

    Args:
        name: Candidate folder name

    Returns:
        True if valid

    Raises:
        ValidationError: If the name is invalid
    """
    if not isinstance(name, str):
        raise ValidationError(f"Folder name must be a string: {name!r}")

    if not name:
        raise ValidationError("Folder name must not be empty")

    if name == PARENT_DIR_MARKER:
        raise ValidationError("Folder name must not be '..'")

    if name == ".":
        raise ValidationError("Folder name must not be '.'")

    if "/" in name or "\0" in name:
        raise ValidationError(f"Folder name must be a single path component: {name!r}")

    if len(name) > Limits.MAX_FOLDER_NAME_LENGTH:
        raise ValidationError(
            f"Folder name too long: {len(name)} > {Limits.MAX_FOLDER_NAME_LENGTH}"
        )

    return True


def validate_directory_root(path: Any) -> bool:
    """Validate a configured directory root.

    Roots must be absolute and carry no trailing slash, since expected
    symlink targets are built by plain string concatenation.

    Args:
        path: Directory root path

    Returns:
        True if valid

    Raises:
        ValidationError: If the root is invalid
    """
    if not isinstance(path, str) or not path:
        raise ValidationError(f"Directory root must be a non-empty string: {path!r}")

    if not path.startswith("/"):
        raise ValidationError(f"Directory root must be absolute: {path}")

    if len(path) > 1 and path.endswith("/"):
        raise ValidationError(f"Directory root must not end with '/': {path}")

    if "\0" in path or len(path) > Limits.MAX_PATH_LENGTH:
        raise ValidationError(f"Invalid directory root: {path!r}")

    return True


def validate_port(port: Any) -> bool:
    """Validate a TCP port number (0 lets the OS pick one)."""
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
        raise ValidationError(f"Port must be an integer in 0-65535: {port!r}")
    return True


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate symshare configuration structure.

    Args:
        config: Merged configuration dictionary (with the ``symshare`` section)

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    section = config.get("symshare", {})
    if not isinstance(section, dict):
        raise ValidationError("'symshare' section must be a dictionary")

    paths = section.get("paths", {})
    if not isinstance(paths, dict):
        raise ValidationError("'paths' must be a dictionary")

    for key in ("primary", "read", "write"):
        if key in paths:
            try:
                validate_directory_root(paths[key])
            except ValidationError as e:
                raise ValidationError(f"Invalid paths.{key}: {e}")

    roots = [paths[key] for key in ("primary", "read", "write") if key in paths]
    if len(set(roots)) != len(roots):
        raise ValidationError("Primary, read and write roots must be distinct")

    admin = section.get("admin", {})
    if not isinstance(admin, dict):
        raise ValidationError("'admin' must be a dictionary")
    if "port" in admin:
        validate_port(admin["port"])
    if "host" in admin and not isinstance(admin["host"], str):
        raise ValidationError(f"Admin host must be a string: {admin['host']!r}")

    logging_cfg = section.get("logging", {})
    if not isinstance(logging_cfg, dict):
        raise ValidationError("'logging' must be a dictionary")
    level = logging_cfg.get("level")
    if level is not None and str(level).upper() not in (
        "DEBUG",
        "INFO",
        "WARNING",
        "ERROR",
        "CRITICAL",
    ):
        raise ValidationError(f"Invalid log level: {level}")

    return True
