"""symshare Admin - Administrative listing and folder creation over HTTP."""

from symshare.admin.control import AdminRequestHandler, AdminServer, AdminServerError
from symshare.admin.folders import FolderError, create_folder, ensure_directories
from symshare.admin.listing import ListingRenderer, listing_rows, render_listing

__all__ = [
    "AdminRequestHandler",
    "AdminServer",
    "AdminServerError",
    "FolderError",
    "ListingRenderer",
    "create_folder",
    "ensure_directories",
    "listing_rows",
    "render_listing",
]
