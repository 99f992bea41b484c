"""symshare - Shared folders with read/write capability granted by symlinks."""

from symshare.core.constants import SYMSHARE_VERSION

__version__ = SYMSHARE_VERSION
