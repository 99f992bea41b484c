#!/usr/bin/env python3
"""Administrative HTTP server for symshare.

Endpoints:
- GET  /                 endpoint help (JSON)
- GET  /status           directory roots and server state (JSON)
- GET  /admin            HTML listing of every folder and its grant status
- GET  /admin/entries    the same classifications as JSON records
- POST /admin/add/<name> create a folder under the primary catalogue,
                         then redirect (303) to /admin

Every listing request runs a fresh reconciliation pass. The server runs
in a background thread.

Example:
    >>> server = AdminServer(reconciler, port=8080)
    >>> server.start()
"""

import http.server
import json
import threading
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from symshare.admin.folders import FolderError, create_folder
from symshare.admin.listing import ListingRenderer
from symshare.core.constants import ADD, ADMIN, SYMSHARE_VERSION, ErrorCode, Limits
from symshare.core.logging import Logger
from symshare.grants.entries import as_record
from symshare.grants.reconciler import DirectoryReconciler, ReconcileError

ADD_PREFIX = f"/{ADMIN}/{ADD}/"

HTTP_STATUS_BY_CODE = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
}


class AdminServerError(Exception):
    """Exception raised for admin server errors."""

    pass


def http_status_for(error_code: ErrorCode) -> int:
    return HTTP_STATUS_BY_CODE.get(error_code, 500)


class AdminRequestHandler(http.server.BaseHTTPRequestHandler):
    """HTTP request handler for the admin server."""

    def log_message(self, format, *args):
        """Route access logs through our logger instead of stderr."""
        if hasattr(self.server, "logger"):
            self.server.logger.debug(format % args)

    def _send_body(self, body: bytes, content_type: str, status: int = 200) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_json_response(self, data: Any, status: int = 200) -> None:
        self._send_body(json.dumps(data, indent=2).encode("utf-8"), "application/json", status)

    def _send_html_response(self, html: str, status: int = 200) -> None:
        self._send_body(html.encode("utf-8"), "text/html; charset=utf-8", status)

    def _send_error_response(self, message: str, status: int = 400) -> None:
        self._send_json_response({"error": message, "success": False}, status)

    def _send_see_other(self, location: str) -> None:
        self.send_response(303)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        """Handle GET requests."""
        try:
            path = urlparse(self.path).path

            if path == "/":
                self._handle_root()
            elif path == "/status":
                self._handle_status()
            elif path in (f"/{ADMIN}", f"/{ADMIN}/"):
                self._handle_listing()
            elif path == f"/{ADMIN}/entries":
                self._handle_entries()
            else:
                self._send_error_response(f"Unknown endpoint: {path}", 404)

        except ReconcileError as e:
            self.server.logger.error("Reconciliation failed", error=e.message, path=e.path)
            self._send_error_response(e.message, 500)
        except Exception as e:
            self.server.logger.exception("Error handling GET request", e, path=self.path)
            self._send_error_response(str(e), 500)

    def do_POST(self):
        """Handle POST requests."""
        try:
            path = urlparse(self.path).path

            try:
                content_length = int(self.headers.get("Content-Length", 0) or 0)
            except ValueError:
                content_length = -1
            if content_length < 0:
                self._send_error_response("Invalid Content-Length", 400)
                return
            if content_length > Limits.MAX_REQUEST_BODY:
                self._send_error_response("Request body too large", 413)
                return
            if content_length > 0:
                self.rfile.read(content_length)

            if path.startswith(ADD_PREFIX):
                self._handle_add(unquote(path[len(ADD_PREFIX):]))
            else:
                self._send_error_response(f"Unknown endpoint: {path}", 404)

        except Exception as e:
            self.server.logger.exception("Error handling POST request", e, path=self.path)
            self._send_error_response(str(e), 500)

    # =========================================================================
    # GET Handlers
    # =========================================================================

    def _handle_root(self):
        endpoints = {
            "GET": {
                "/": "Show this help",
                "/status": "Get server status",
                f"/{ADMIN}": "List shared folders (HTML)",
                f"/{ADMIN}/entries": "List shared folders (JSON)",
            },
            "POST": {
                f"{ADD_PREFIX}<name>": "Create a shared folder",
            },
        }
        self._send_json_response({"endpoints": endpoints, "version": SYMSHARE_VERSION})

    def _handle_status(self):
        reconciler: DirectoryReconciler = self.server.reconciler
        self._send_json_response(
            {
                "running": True,
                "primary": reconciler.primary_root,
                "read": reconciler.read_root,
                "write": reconciler.write_root,
            }
        )

    def _handle_listing(self):
        entries = self.server.reconciler.reconcile()
        self._send_html_response(self.server.renderer.render(entries))

    def _handle_entries(self):
        entries = self.server.reconciler.reconcile()
        records = [as_record(entries[name]) for name in sorted(entries)]
        self._send_json_response({"entries": records, "count": len(records)})

    # =========================================================================
    # POST Handlers
    # =========================================================================

    def _handle_add(self, name: str):
        try:
            created = create_folder(self.server.reconciler.primary_root, name)
        except FolderError as e:
            self.server.logger.warning("Failed to add folder", name=name, error=e.message)
            self._send_error_response(e.message, http_status_for(e.error_code))
            return

        self.server.logger.info("Added folder", name=name, path=created)
        self._send_see_other(f"/{ADMIN}")


class AdminServer:
    """
    HTTP admin server running in a background thread.

    Attributes:
        reconciler: Reconciler run on every listing request
        host: Bind address
        port: Bind port (0 lets the OS pick one)
    """

    def __init__(
        self,
        reconciler: DirectoryReconciler,
        host: str = Limits.DEFAULT_ADMIN_HOST,
        port: int = Limits.DEFAULT_ADMIN_PORT,
        renderer: Optional[ListingRenderer] = None,
        logger: Optional[Logger] = None,
    ):
        self.reconciler = reconciler
        self.host = host
        self.port = port
        self.renderer = renderer or ListingRenderer()
        self.logger = logger or Logger("symshare.admin", level="INFO")

        self.server: Optional[http.server.ThreadingHTTPServer] = None
        self.server_thread: Optional[threading.Thread] = None
        self.running = False

    def start(self) -> None:
        """
        Start the server in a background thread.

        Raises:
            AdminServerError: If the server fails to bind
        """
        if self.running:
            self.logger.warning("Admin server already running")
            return

        try:
            self.server = http.server.ThreadingHTTPServer((self.host, self.port), AdminRequestHandler)
        except OSError as e:
            raise AdminServerError(f"Failed to start admin server: {e}")

        # Handlers reach our collaborators through the server object
        self.server.reconciler = self.reconciler
        self.server.renderer = self.renderer
        self.server.logger = self.logger

        self.server_thread = threading.Thread(
            target=self._run_server, daemon=True, name="AdminServer"
        )
        self.server_thread.start()

        self.running = True
        self.logger.info("Admin server started", url=self.get_url())

    def _run_server(self) -> None:
        try:
            self.server.serve_forever()
        except Exception as e:
            self.logger.error("Admin server error", error=str(e))
            self.running = False

    def stop(self) -> None:
        """Stop the server and wait for its thread."""
        if not self.running:
            return

        self.logger.info("Stopping admin server...")

        if self.server:
            self.server.shutdown()
            self.server.server_close()

        if self.server_thread:
            self.server_thread.join(timeout=5.0)

        self.running = False
        self.logger.info("Admin server stopped")

    def get_url(self) -> str:
        """Base URL, using the bound port once started."""
        port = self.server.server_address[1] if self.server else self.port
        return f"http://{self.host}:{port}"

    def is_running(self) -> bool:
        return self.running

    def status(self) -> Dict[str, Any]:
        return {"running": self.running, "url": self.get_url()}
