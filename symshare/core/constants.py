"""
symshare Core: Constants and Type Definitions

This module provides system-wide constants, error codes, well-known directory
roots and limits shared by the reconciliation engine and its collaborators.
"""
from enum import IntEnum

# Version information
SYMSHARE_VERSION = "1.0.0"


class ErrorCode(IntEnum):
    """Error codes carried by symshare exceptions."""

    INVALID_INPUT = 1  # Bad folder name, invalid configuration
    NOT_FOUND = 2  # Directory or resource doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Resource already exists
    INTERNAL_ERROR = 6  # Unexpected I/O failure or bug in symshare


# Well-known directory roots. No trailing slash: expected symlink targets are
# built as f"{root}/{name}" and compared literally.
TMP = "/tmp"
DIRS = f"{TMP}/wdav_dirs"
SYMLINKS = f"{TMP}/wdav_symlinks"

# Leading URL segments, also the names of the overlay directories
READ = "read"
WRITE = "write"
ADMIN = "admin"
ADD = "add"

SYMLINKS_READ = f"{SYMLINKS}/{READ}"
SYMLINKS_WRITE = f"{SYMLINKS}/{WRITE}"

PARENT_DIR_MARKER = ".."


class Limits:
    """System limits and default values."""

    MAX_FOLDER_NAME_LENGTH = 255
    MAX_PATH_LENGTH = 4096

    # Admin server
    DEFAULT_ADMIN_HOST = "127.0.0.1"
    DEFAULT_ADMIN_PORT = 8080
    MAX_REQUEST_BODY = 1024 * 16  # bytes


# Configuration keys
class ConfigKey:
    """Configuration key constants (dot paths under the root section)."""

    ROOT = "symshare"

    PATHS_PRIMARY = "symshare.paths.primary"
    PATHS_READ = "symshare.paths.read"
    PATHS_WRITE = "symshare.paths.write"

    ADMIN_HOST = "symshare.admin.host"
    ADMIN_PORT = "symshare.admin.port"

    LOGGING_LEVEL = "symshare.logging.level"
    LOGGING_FILE = "symshare.logging.file"


# Default configuration values
DEFAULT_CONFIG = {
    "symshare": {
        "paths": {
            "primary": DIRS,
            "read": SYMLINKS_READ,
            "write": SYMLINKS_WRITE,
        },
        "admin": {
            "host": Limits.DEFAULT_ADMIN_HOST,
            "port": Limits.DEFAULT_ADMIN_PORT,
        },
        "logging": {
            "level": "INFO",
            "file": None,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }
}
