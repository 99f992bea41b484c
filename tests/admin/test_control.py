"""Tests for the admin HTTP server."""

import http.client
import json
import os
from unittest.mock import MagicMock, patch

import pytest

from symshare.admin.control import AdminServer, AdminServerError, http_status_for
from symshare.core.constants import ErrorCode, Limits
from symshare.grants.entries import ClassificationStateError
from symshare.grants.probe import LocalProbe
from symshare.grants.reconciler import DirectoryReconciler, ReconcileError


@pytest.fixture
def local_reconciler(share_roots, quiet_logger):
    return DirectoryReconciler(
        LocalProbe(),
        share_roots["primary"],
        share_roots["read"],
        share_roots["write"],
        logger=quiet_logger,
    )


@pytest.fixture
def server(local_reconciler, quiet_logger):
    admin = AdminServer(local_reconciler, host="127.0.0.1", port=0, logger=quiet_logger)
    admin.start()
    yield admin
    admin.stop()


def request(server, method, path, body=None, headers=None):
    """Issue one request and return (status, headers, body). Redirects are not followed."""
    host, port = server.server.server_address[:2]
    conn = http.client.HTTPConnection(host, port, timeout=5)
    try:
        conn.request(method, path, body=body, headers=headers or {})
        response = conn.getresponse()
        return response.status, dict(response.getheaders()), response.read()
    finally:
        conn.close()


class TestHttpStatus:
    """Tests for http_status_for()."""

    @pytest.mark.parametrize(
        "code,status",
        [
            (ErrorCode.INVALID_INPUT, 400),
            (ErrorCode.PERMISSION_DENIED, 403),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.CONFLICT, 409),
            (ErrorCode.INTERNAL_ERROR, 500),
        ],
    )
    def test_mapping(self, code, status):
        assert http_status_for(code) == status


class TestAdminServerLifecycle:
    """Start/stop behaviour."""

    def test_start_stop(self, local_reconciler, quiet_logger):
        admin = AdminServer(local_reconciler, port=0, logger=quiet_logger)
        assert not admin.is_running()
        admin.start()
        assert admin.is_running()
        assert admin.status()["url"].startswith("http://127.0.0.1:")
        admin.stop()
        assert not admin.is_running()

    def test_start_twice_is_noop(self, server):
        first = server.server
        server.start()
        assert server.server is first

    def test_stop_when_not_running(self, local_reconciler, quiet_logger):
        AdminServer(local_reconciler, port=0, logger=quiet_logger).stop()

    def test_bind_failure(self, local_reconciler, quiet_logger):
        admin = AdminServer(local_reconciler, port=0, logger=quiet_logger)
        with patch(
            "http.server.ThreadingHTTPServer",
            side_effect=OSError(98, "Address already in use"),
        ):
            with pytest.raises(AdminServerError, match="Failed to start"):
                admin.start()
        assert not admin.is_running()

    def test_get_url_before_start(self, local_reconciler, quiet_logger):
        admin = AdminServer(local_reconciler, host="0.0.0.0", port=9123, logger=quiet_logger)
        assert admin.get_url() == "http://0.0.0.0:9123"


class TestGetEndpoints:
    """GET routes."""

    def test_root_lists_endpoints(self, server):
        status, _, body = request(server, "GET", "/")
        data = json.loads(body)
        assert status == 200
        assert "/admin" in data["endpoints"]["GET"]

    def test_status(self, server, share_roots):
        status, _, body = request(server, "GET", "/status")
        data = json.loads(body)
        assert status == 200
        assert data["primary"] == share_roots["primary"]
        assert data["running"] is True

    def test_listing_html(self, server, share_roots):
        os.mkdir(os.path.join(share_roots["primary"], "docs"))
        os.symlink(f"{share_roots['read']}/docs", os.path.join(share_roots["read"], "docs"))
        status, headers, body = request(server, "GET", "/admin")
        assert status == 200
        assert headers["Content-Type"].startswith("text/html")
        assert b'href="/read/docs/"' in body

    def test_listing_trailing_slash(self, server):
        status, _, _ = request(server, "GET", "/admin/")
        assert status == 200

    def test_entries_json(self, server, share_roots):
        os.mkdir(os.path.join(share_roots["primary"], "b"))
        os.mkdir(os.path.join(share_roots["primary"], "a"))
        status, _, body = request(server, "GET", "/admin/entries")
        data = json.loads(body)
        assert status == 200
        assert data["count"] == 2
        assert [record["name"] for record in data["entries"]] == ["a", "b"]
        assert data["entries"][0]["type"] == "PrimaryOnly"

    def test_unknown_path(self, server):
        status, _, body = request(server, "GET", "/nope")
        assert status == 404
        assert json.loads(body)["success"] is False

    def test_reconcile_failure_is_500(self, server, share_roots):
        os.rmdir(share_roots["write"])
        status, _, body = request(server, "GET", "/admin")
        assert status == 500
        assert "write stage failed" in json.loads(body)["error"]


class TestAddFolder:
    """POST /admin/add/<name>."""

    def test_add_redirects_to_listing(self, server, share_roots):
        status, headers, _ = request(server, "POST", "/admin/add/docs")
        assert status == 303
        assert headers["Location"] == "/admin"
        assert os.path.isdir(os.path.join(share_roots["primary"], "docs"))

    def test_added_folder_is_listed_unshared(self, server):
        request(server, "POST", "/admin/add/docs")
        _, _, body = request(server, "GET", "/admin/entries")
        record = json.loads(body)["entries"][0]
        assert record["name"] == "docs"
        assert record["readable"] is False

    def test_percent_encoded_name(self, server, share_roots):
        status, _, _ = request(server, "POST", "/admin/add/my%20docs")
        assert status == 303
        assert os.path.isdir(os.path.join(share_roots["primary"], "my docs"))

    def test_existing_folder(self, server):
        request(server, "POST", "/admin/add/docs")
        status, _, _ = request(server, "POST", "/admin/add/docs")
        assert status == 409

    @pytest.mark.parametrize("path", ["/admin/add/", "/admin/add/..", "/admin/add/a%2Fb"])
    def test_invalid_name(self, server, path):
        status, _, _ = request(server, "POST", path)
        assert status == 400

    def test_body_too_large(self, server):
        headers = {"Content-Length": str(Limits.MAX_REQUEST_BODY + 1)}
        status, _, _ = request(server, "POST", "/admin/add/docs", headers=headers)
        assert status == 413

    def test_body_is_ignored(self, server):
        status, _, _ = request(server, "POST", "/admin/add/docs", body=b"folder=other")
        assert status == 303

    def test_unknown_post(self, server):
        status, _, _ = request(server, "POST", "/admin/remove/docs")
        assert status == 404

    @pytest.mark.parametrize("length", ["abc", "-5"])
    def test_bad_content_length(self, server, share_roots, length):
        status, _, body = request(server, "POST", "/admin/add/docs", headers={"Content-Length": length})
        assert status == 400
        assert json.loads(body)["error"] == "Invalid Content-Length"
        assert not os.path.exists(os.path.join(share_roots["primary"], "docs"))


class TestHandlerWithMockReconciler:
    """Handler behaviour with a scripted reconciler."""

    def test_reconcile_error_logged(self):
        reconciler = MagicMock()
        reconciler.reconcile.side_effect = ReconcileError("primary stage failed: boom", path="/x")
        logger = MagicMock()
        admin = AdminServer(reconciler, port=0, logger=logger)
        admin.start()
        try:
            status, _, _ = request(admin, "GET", "/admin/entries")
        finally:
            admin.stop()
        assert status == 500
        logger.error.assert_any_call(
            "Reconciliation failed", error="primary stage failed: boom", path="/x"
        )

    def test_unexpected_error_on_get_is_500(self):
        reconciler = MagicMock()
        reconciler.reconcile.side_effect = ClassificationStateError("stage out of order")
        logger = MagicMock()
        admin = AdminServer(reconciler, port=0, logger=logger)
        admin.start()
        try:
            status, _, body = request(admin, "GET", "/admin")
        finally:
            admin.stop()
        assert status == 500
        assert json.loads(body) == {"error": "stage out of order", "success": False}
        message, exc = logger.exception.call_args[0]
        assert message == "Error handling GET request"
        assert isinstance(exc, ClassificationStateError)

    def test_unexpected_error_on_post_is_500(self, tmp_path):
        reconciler = MagicMock()
        reconciler.primary_root = str(tmp_path)
        logger = MagicMock()
        admin = AdminServer(reconciler, port=0, logger=logger)
        admin.start()
        try:
            with patch("symshare.admin.control.create_folder", side_effect=RuntimeError("disk on fire")):
                status, _, body = request(admin, "POST", "/admin/add/docs")
        finally:
            admin.stop()
        assert status == 500
        assert json.loads(body)["error"] == "disk on fire"
        assert logger.exception.call_args[0][0] == "Error handling POST request"
