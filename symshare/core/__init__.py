"""symshare Core - Shared utilities.

Import specific functions from submodules:
    from symshare.core.config import ConfigManager
    from symshare.core import constants
    from symshare.core import logging
    from symshare.core import validators
"""

from symshare.core import config, constants, logging, validators

__all__ = [
    "config",
    "constants",
    "logging",
    "validators",
]
