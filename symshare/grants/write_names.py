"""
symshare Grants: Write-name policies.

A write name is the identifier a write-grant symlink must point at. It is
meant to be capability-opaque, so that knowing a folder's read link does
not reveal its write link. The derivation is injected into the classifier;
the only policy shipped maps a folder name to itself.
"""

from typing import Callable

from symshare.core.validators import validate_folder_name

WriteNamePolicy = Callable[[str], str]


def identity_write_name(name: str) -> str:
    """Placeholder policy: the write name is the folder name."""
    return name


def checked(policy: WriteNamePolicy) -> WriteNamePolicy:
    """Wrap ``policy`` so every derived write name is a valid folder name.

    Raises:
        ValidationError: From the wrapped call, if the policy derives an
            empty name, ``..``, or a name containing a separator
    """

    def derive(name: str) -> str:
        derived = policy(name)
        validate_folder_name(derived)
        return derived

    derive.__name__ = getattr(policy, "__name__", "derive")
    return derive
